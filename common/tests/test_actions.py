import pytest
from catalog.models import Sloc
from catalog.tests.factories import SlocFactory
from common.actions import guarded_action, require_capability
from common.choices import UserRole
from common.exceptions import AuthorizationError, BusinessRuleError, ValidationFailed, http_status_for
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError as DjangoValidationError
from users.permissions import Capability
from users.tests.factories import LogsUserFactory, UserFactory

pytestmark = pytest.mark.django_db


@guarded_action(Capability.MANAGE_LOCATIONS, "test.rename")
def rename_sloc(actor, sloc_id, name, *, fail_with=None):
    sloc = Sloc.objects.get(sloc_id=sloc_id)
    sloc.sloc_name = name
    sloc.save()
    if fail_with is not None:
        raise fail_with
    return {"sloc_id": sloc.sloc_id}


def _strip(**kwargs):
    if not kwargs["name"].strip():
        raise ValidationFailed("Name is required", errors={"name": ["Name is required"]})
    return {"name": kwargs["name"].strip()}


@guarded_action(Capability.MANAGE_LOCATIONS, "test.cleaned", clean=_strip)
def cleaned_name(actor, *, name):
    return name


def test_success_returns_data():
    sloc = SlocFactory(sloc_name="Old")

    result = rename_sloc(LogsUserFactory(), sloc.sloc_id, "New")

    assert result.success
    assert result.data == {"sloc_id": sloc.sloc_id}
    sloc.refresh_from_db()
    assert sloc.sloc_name == "New"


@pytest.mark.parametrize("actor", [None, AnonymousUser(), "REQUESTER"])
def test_callers_below_threshold_are_forbidden(actor):
    sloc = SlocFactory(sloc_name="Old")

    result = rename_sloc(actor, sloc.sloc_id, "New")

    assert result.code == "forbidden"
    sloc.refresh_from_db()
    assert sloc.sloc_name == "Old"


def test_anonymous_message_asks_for_authentication():
    assert rename_sloc(None, "x", "y").error == "Authentication required"
    assert "LOGS access or above" in rename_sloc(UserFactory(), "x", "y").error


@pytest.mark.parametrize(
    "exc, code",
    [
        (BusinessRuleError("nope"), "conflict"),
        (DjangoValidationError({"sloc_name": ["bad"]}), "invalid"),
        (Sloc.DoesNotExist("Storage location not found"), "not_found"),
    ],
)
def test_failures_roll_back_and_map_to_codes(exc, code):
    sloc = SlocFactory(sloc_name="Old")

    result = rename_sloc(LogsUserFactory(), sloc.sloc_id, "New", fail_with=exc)

    assert not result.success
    assert result.code == code
    sloc.refresh_from_db()
    assert sloc.sloc_name == "Old"


def test_integrity_errors_become_conflicts():
    SlocFactory(sloc_id="taken")

    @guarded_action(Capability.MANAGE_LOCATIONS, "test.duplicate")
    def duplicate(actor):
        Sloc.objects.create(sloc_id="taken", sloc_name="Again")

    result = duplicate(LogsUserFactory())

    assert result.code == "conflict"
    assert Sloc.objects.filter(sloc_id="taken").count() == 1


def test_clean_runs_before_the_step():
    loggie = LogsUserFactory()

    assert cleaned_name(loggie, name="  Shed ").data == "Shed"
    invalid = cleaned_name(loggie, name="   ")
    assert invalid.code == "invalid"
    assert invalid.errors == {"name": ["Name is required"]}


def test_clean_is_skipped_for_unauthorized_callers():
    assert cleaned_name(UserFactory(), name="   ").code == "forbidden"


def test_require_capability_returns_role():
    assert require_capability(UserRole.ADMIN, Capability.MANAGE_USERS) == UserRole.ADMIN
    with pytest.raises(AuthorizationError):
        require_capability(UserRole.LOGS, Capability.MANAGE_USERS)


def test_http_status_mapping():
    assert [http_status_for(c) for c in ("forbidden", "invalid", "not_found", "conflict", "storage", None)] == [
        403,
        400,
        404,
        409,
        502,
        400,
    ]
