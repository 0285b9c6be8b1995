"""
Tests for the create_actor management command.
"""
from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError

from clinic.models import Profile


@pytest.mark.django_db
class TestCreateActorCommand:
    """create_actor creates a login user with a profile, or changes its role."""

    def test_creates_user_and_profile(self):
        out = StringIO()
        call_command("create_actor", "meera", role="doctor", password="secret", stdout=out)

        user = get_user_model().objects.get(username="meera")
        assert user.check_password("secret")
        assert user.profile.role == "doctor"
        assert "已创建" in out.getvalue()

    def test_rerun_changes_role(self):
        call_command("create_actor", "meera", role="doctor", stdout=StringIO())
        out = StringIO()
        call_command("create_actor", "meera", role="pharmacist", stdout=out)

        assert Profile.objects.filter(user__username="meera").count() == 1
        assert Profile.objects.get(user__username="meera").role == "pharmacist"
        assert "已更新" in out.getvalue()

    def test_invalid_role_rejected(self):
        with pytest.raises(CommandError):
            call_command("create_actor", "meera", role="admin", stdout=StringIO())
        assert not get_user_model().objects.filter(username="meera").exists()
