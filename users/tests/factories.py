import factory
from common.choices import UserRole
from django.contrib.auth import get_user_model
from factory.django import DjangoModelFactory


class UserFactory(DjangoModelFactory):
    class Meta:
        model = get_user_model()

    username = factory.Sequence(lambda n: f"member{n}")
    email = factory.Faker("email")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    role = UserRole.REQUESTER
    nusnet_id = factory.Sequence(lambda n: f"E{n:07d}")
    telegram_handle = factory.Sequence(lambda n: f"member_{n}")
    password = factory.PostGenerationMethodCall("set_password", "pass")


class LogsUserFactory(UserFactory):
    role = UserRole.LOGS


class AdminUserFactory(UserFactory):
    role = UserRole.ADMIN
