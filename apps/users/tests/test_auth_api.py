"""API tests for authentication endpoints."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIRequestFactory, APITestCase
from rest_framework_simplejwt.tokens import UntypedToken

from apps.users.models import User
from apps.users.permissions import IsPlatformAdmin


class AuthAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(
            email="owner@example.com",
            phone="+919876543210",
            password="OwnerPass123",
            role=User.RoleChoices.OWNER,
        )

    def test_login_with_email_returns_role_claims(self) -> None:
        response = self.client.post(
            reverse("auth:login"),
            {"login": "OWNER@example.com", "password": "OwnerPass123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["user"]["role"], "owner")
        access = UntypedToken(response.data["tokens"]["access"])
        self.assertEqual(access["role"], "owner")
        self.assertEqual(access["email"], "owner@example.com")

    def test_login_with_phone(self) -> None:
        response = self.client.post(
            reverse("auth:login"),
            {"login": "+919876543210", "password": "OwnerPass123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

    def test_wrong_password(self) -> None:
        response = self.client.post(
            reverse("auth:login"),
            {"login": "owner@example.com", "password": "nope"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("login", response.data)

    def test_inactive_user_cannot_login(self) -> None:
        self.user.is_active = False
        self.user.save()

        response = self.client.post(
            reverse("auth:login"),
            {"login": "owner@example.com", "password": "OwnerPass123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_refresh(self) -> None:
        login = self.client.post(
            reverse("auth:login"),
            {"login": "owner@example.com", "password": "OwnerPass123"},
            format="json",
        )

        response = self.client.post(
            reverse("auth:token_refresh"),
            {"refresh": login.data["tokens"]["refresh"]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data)


class PlatformAdminPermissionTests(APITestCase):
    def _allowed(self, user) -> bool:
        request = APIRequestFactory().get("/")
        request.user = user
        return IsPlatformAdmin().has_permission(request, None)

    def test_roles(self) -> None:
        admin = User.objects.create_user(email="admin@example.com", password="x", role=User.RoleChoices.ADMIN)
        staff = User.objects.create_user(email="staff@example.com", password="x", is_staff=True)
        owner = User.objects.create_user(email="owner@example.com", password="x", role=User.RoleChoices.OWNER)

        self.assertTrue(self._allowed(admin))
        self.assertTrue(self._allowed(staff))
        self.assertFalse(self._allowed(owner))

    def test_superuser_defaults_to_admin_role(self) -> None:
        root = User.objects.create_superuser(email="root@example.com", password="x")

        self.assertEqual(root.role, User.RoleChoices.ADMIN)
        self.assertTrue(root.is_platform_admin())
