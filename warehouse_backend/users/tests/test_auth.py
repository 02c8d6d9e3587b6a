# users/tests/test_auth.py

from django.test import TestCase
from rest_framework.test import APIClient

from audit.models import AuditLog
from permissions.roles import CAP_DISPATCH_VIEW, CAP_REPORTS_VIEW
from permissions.tests.helpers import make_user

LOGIN = "/api/auth/login/"


class LoginTests(TestCase):
    """
    GUARANTEES:
    - email OR username identifies the account, never both
    - inactive users and bad passwords get the same 401
    - the profile in the login response carries effective capabilities
    """

    def setUp(self):
        self.client = APIClient()
        self.user = make_user(
            "ops@example.com", username="ops", capabilities=[CAP_DISPATCH_VIEW, CAP_REPORTS_VIEW]
        )

    def test_login_with_email_or_username(self):
        res = self.client.post(LOGIN, {"email": "OPS@example.com", "password": "pass12345!"}, format="json")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertIn("access", res.data)
        self.assertIn("refresh", res.data)
        self.assertEqual(res.data["user"]["capabilities"], sorted([CAP_DISPATCH_VIEW, CAP_REPORTS_VIEW]))
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.Action.LOGIN, user=self.user).exists())

        res = self.client.post(LOGIN, {"username": "ops", "password": "pass12345!"}, format="json")
        self.assertEqual(res.status_code, 200)

    def test_rejects_ambiguous_or_bad_credentials(self):
        res = self.client.post(
            LOGIN, {"email": "ops@example.com", "username": "ops", "password": "pass12345!"}, format="json"
        )
        self.assertEqual(res.status_code, 400)

        res = self.client.post(LOGIN, {"username": "ops", "password": "wrong"}, format="json")
        self.assertEqual(res.status_code, 401)

        self.user.is_active = False
        self.user.save(update_fields=["is_active"])
        res = self.client.post(LOGIN, {"username": "ops", "password": "pass12345!"}, format="json")
        self.assertEqual(res.status_code, 401)

    def test_logout_blacklists_refresh_token(self):
        res = self.client.post(LOGIN, {"username": "ops", "password": "pass12345!"}, format="json")
        refresh = res.data["refresh"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.data['access']}")

        res = self.client.post("/api/auth/logout/", {"refresh": refresh}, format="json")
        self.assertEqual(res.status_code, 205)

        res = self.client.post("/api/auth/jwt/refresh/", {"refresh": refresh}, format="json")
        self.assertEqual(res.status_code, 401)


class ProfileTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("ops@example.com", username="ops")
        self.client.force_authenticate(self.user)

    def test_me_and_profile_update(self):
        res = self.client.get("/api/auth/me/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["username"], "ops")
        self.assertEqual(res.data["capabilities"], [])

        res = self.client.patch("/api/auth/profile/", {"first_name": "Asha"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["first_name"], "Asha")

    def test_change_password(self):
        url = "/api/auth/change-password/"
        res = self.client.post(url, {"current_password": "nope", "new_password": "Fresh-pass-991"}, format="json")
        self.assertEqual(res.status_code, 400)

        res = self.client.post(
            url, {"current_password": "pass12345!", "new_password": "Fresh-pass-991"}, format="json"
        )
        self.assertEqual(res.status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("Fresh-pass-991"))

    def test_anonymous_is_rejected(self):
        self.client.force_authenticate(None)
        res = self.client.get("/api/auth/me/")
        self.assertEqual(res.status_code, 401)
