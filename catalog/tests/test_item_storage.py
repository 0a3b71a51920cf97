import pytest
from catalog.storage import delete_item_image, sanitize_filename, storage_name_for, upload_item_image
from django.core.files.uploadedfile import SimpleUploadedFile
from users.tests.factories import LogsUserFactory, UserFactory

pytestmark = pytest.mark.django_db


@pytest.fixture
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    settings.MEDIA_URL = "/media/"
    return tmp_path


def _png(name="mic.png", size=16, content_type="image/png"):
    return SimpleUploadedFile(name, b"\x89PNG" + b"0" * size, content_type=content_type)


def test_upload_stores_file_under_image_dir(media_root):
    result = upload_item_image(LogsUserFactory(), _png("stage mic (1).png"))

    assert result.success
    assert result.data["url"].startswith("/media/item-images/")
    assert result.data["url"].endswith("-stage_mic__1_.png")
    assert (media_root / result.data["name"]).exists()


def test_upload_rejects_wrong_type_and_missing_file(media_root):
    loggie = LogsUserFactory()

    wrong = upload_item_image(loggie, _png("notes.pdf", content_type="application/pdf"))
    missing = upload_item_image(loggie, None)

    assert wrong.code == "invalid"
    assert "photo" in wrong.errors
    assert missing.code == "invalid"
    assert not any(media_root.rglob("*.pdf"))


def test_upload_rejects_oversized_file(media_root, settings):
    settings.ITEM_IMAGE_MAX_BYTES = 8

    result = upload_item_image(LogsUserFactory(), _png(size=64))

    assert result.code == "invalid"
    assert "File too large" in result.error


def test_upload_requires_logs_role(media_root):
    result = upload_item_image(UserFactory(), _png())

    assert result.code == "forbidden"


def test_delete_removes_stored_file(media_root):
    stored = upload_item_image(LogsUserFactory(), _png()).data

    result = delete_item_image(stored["url"])

    assert result.success
    assert not (media_root / stored["name"]).exists()


def test_delete_ignores_foreign_or_missing_files(media_root):
    assert delete_item_image("https://cdn.example.com/other/pic.png").success
    assert delete_item_image("/media/item-images/gone.png").success
    assert delete_item_image(None).success


def test_storage_name_and_filename_helpers():
    assert storage_name_for("/media/item-images/123-a.png?v=2") == "item-images/123-a.png"
    assert storage_name_for("https://cdn.example.com/x.png") is None
    assert sanitize_filename("../../etc/pass wd") == "pass_wd"
    assert sanitize_filename("") == "image"
