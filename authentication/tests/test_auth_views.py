from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.tests.factories import UserFactory

User = get_user_model()


class RegisterViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("authentication:register")
        self.payload = {
            "username": "thandi",
            "email": "Thandi@Example.com",
            "password": "Str0ng-pass-phrase",
            "password_confirm": "Str0ng-pass-phrase",
            "province": "Gauteng",
            "university": "Wits",
        }

    def test_register_creates_buyer(self):
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["email"], "thandi@example.com")
        self.assertEqual(response.data["role"], "buyer")
        self.assertNotIn("password", response.data)
        user = User.objects.get(email="thandi@example.com")
        self.assertTrue(user.check_password("Str0ng-pass-phrase"))

    def test_password_mismatch(self):
        self.payload["password_confirm"] = "something-else-1"

        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(username="thandi").exists())

    def test_duplicate_email_is_case_insensitive(self):
        UserFactory(email="thandi@example.com")

        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", response.data)

    def test_weak_password_rejected(self):
        self.payload["password"] = self.payload["password_confirm"] = "123"

        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", response.data)


class MeViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("authentication:me")
        self.user = UserFactory(province="Gauteng")

    def test_requires_authentication(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_get_profile(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["id"], str(self.user.id))
        self.assertEqual(response.data["display_name"], self.user.display_name)

    def test_update_profile_cannot_change_role(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.patch(self.url, {"province": "Free State", "role": "admin"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.province, "Free State")
        self.assertEqual(self.user.role, "buyer")


class TokenViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = UserFactory(email="reader@example.com")

    def test_obtain_token_with_email(self):
        response = self.client.post(
            reverse("authentication:token_obtain_pair"),
            {"email": "reader@example.com", "password": "defaultpassword"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

    def test_wrong_password(self):
        response = self.client.post(
            reverse("authentication:token_obtain_pair"),
            {"email": "reader@example.com", "password": "nope"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_access_token_authenticates_me(self):
        tokens = self.client.post(
            reverse("authentication:token_obtain_pair"),
            {"email": "reader@example.com", "password": "defaultpassword"},
            format="json",
        ).data

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        response = self.client.get(reverse("authentication:me"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], "reader@example.com")
