from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from apps.accounts.models import Role, User


class UserModelTests(TestCase):

    def test_create_user_normalizes_email(self):
        user = User.objects.create_user(email="Buyer@Example.COM", password="pass12345")
        self.assertEqual(user.email, "buyer@example.com")
        self.assertEqual(user.role, Role.USER)
        self.assertFalse(user.is_admin)

    def test_superuser_is_admin(self):
        user = User.objects.create_superuser(email="root@example.com", password="pass12345")
        self.assertEqual(user.role, Role.ADMIN)
        self.assertTrue(user.is_admin)

    def test_admin_role_without_staff_flag(self):
        user = User.objects.create_user(email="ops@example.com", role=Role.ADMIN)
        self.assertTrue(user.is_admin)
        self.assertFalse(user.has_usable_password())


class AuthApiTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="buyer@example.com", password="pass12345", name="Asha", mobile="9876543210"
        )

    def test_token_obtain_and_me(self):
        response = self.client.post(
            "/api/v1/accounts/token/",
            {"email": "buyer@example.com", "password": "pass12345"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        access = response.data["access"]

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        me = self.client.get("/api/v1/accounts/me/")
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["data"]["email"], "buyer@example.com")
        self.assertFalse(me.data["data"]["isAdmin"])

    def test_me_requires_auth(self):
        response = self.client.get("/api/v1/accounts/me/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data["success"])


class CreateAdminCommandTests(TestCase):

    @override_settings(DEBUG=True)
    @patch.dict("os.environ", {"ADMIN_EMAIL": "Boss@Example.com", "ADMIN_PASSWORD": "secret-pass"})
    def test_creates_admin(self):
        out = StringIO()
        call_command("create_admin", stdout=out)

        admin = User.objects.get(email="boss@example.com")
        self.assertTrue(admin.is_superuser)
        self.assertEqual(admin.role, Role.ADMIN)
        self.assertTrue(admin.check_password("secret-pass"))
        self.assertIn("Created admin", out.getvalue())

    @override_settings(DEBUG=False)
    @patch.dict("os.environ", {"ADMIN_EMAIL": "boss@example.com", "ADMIN_PASSWORD": "x"})
    def test_refuses_in_production(self):
        err = StringIO()
        call_command("create_admin", stderr=err)
        self.assertFalse(User.objects.exists())
        self.assertIn("Production Lock", err.getvalue())
