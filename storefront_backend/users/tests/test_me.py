# users/tests/test_me.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

User = get_user_model()


class MeViewTests(TestCase):
    def test_requires_authentication(self):
        self.assertEqual(APIClient().get("/api/auth/me/").status_code, 401)

    def test_customer_profile_and_capabilities(self):
        user = User.objects.create_user(email="Me@Example.com", password="pass", name="Asha")
        client = APIClient()
        client.force_authenticate(user=user)

        response = client.get("/api/auth/me/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["role"], "customer")
        self.assertIn("orders.place", response.data["capabilities"])
        self.assertNotIn("orders.manage", response.data["capabilities"])

    def test_create_user_requires_email(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email="", password="pass")
