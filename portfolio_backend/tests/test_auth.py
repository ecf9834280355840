import unittest
from datetime import datetime, timedelta, timezone

from portfolio_backend import auth
from portfolio_backend.config import Settings
from portfolio_backend.db import InMemoryDbClient
from portfolio_backend.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    StoreError,
    ValidationFailedError,
)


class AuthTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.settings = Settings(jwt_secret="unit-test-secret-0123456789abcdef")
        self.credentials = {
            "email": "owner@example.com",
            "password": "hunter22",
            "name": "Owner",
        }

    def test_register_returns_verifiable_token(self):
        token = auth.register(self.db, self.credentials, self.settings)
        claims = auth.decode_access_token(token, self.settings)
        self.assertEqual(claims.email, "owner@example.com")
        user = self.db.get_user(claims.user_id)
        self.assertEqual(user.role, "admin")

    def test_password_is_stored_hashed(self):
        auth.register(self.db, self.credentials, self.settings)
        user = self.db.get_user_by_email("owner@example.com")
        self.assertNotEqual(user.password_hash, "hunter22")
        self.assertTrue(auth.verify_password("hunter22", user.password_hash))

    def test_duplicate_registration_conflicts(self):
        auth.register(self.db, self.credentials, self.settings)
        with self.assertRaises(ConflictError):
            auth.register(
                self.db,
                dict(self.credentials, email="Owner@Example.com"),
                self.settings,
            )

    def test_register_requires_valid_email(self):
        with self.assertRaises(ValidationFailedError):
            auth.register(
                self.db, dict(self.credentials, email="nope"), self.settings
            )

    def test_login_with_wrong_password_fails(self):
        auth.register(self.db, self.credentials, self.settings)
        with self.assertRaises(AuthenticationError):
            auth.login(
                self.db,
                {"email": "owner@example.com", "password": "wrong"},
                self.settings,
            )

    def test_login_with_unknown_email_fails(self):
        with self.assertRaises(AuthenticationError):
            auth.login(
                self.db,
                {"email": "ghost@example.com", "password": "whatever"},
                self.settings,
            )

    def test_login_with_blank_fields_is_validation_error(self):
        for payload in (
            {"email": "", "password": "hunter22"},
            {"email": "owner@example.com", "password": ""},
        ):
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationFailedError):
                    auth.login(self.db, payload, self.settings)

    def test_login_with_corrupt_stored_hash_is_store_error(self):
        auth.register(self.db, self.credentials, self.settings)
        self.db.get_user_by_email("owner@example.com").password_hash = "not-a-hash"
        with self.assertRaises(StoreError) as ctx:
            auth.login(
                self.db,
                {"email": "owner@example.com", "password": "hunter22"},
                self.settings,
            )
        self.assertEqual(str(ctx.exception), "Login failed")

    def test_login_returns_token_for_current_user(self):
        auth.register(self.db, self.credentials, self.settings)
        token = auth.login(
            self.db,
            {"email": "owner@example.com", "password": "hunter22"},
            self.settings,
        )
        claims = auth.authenticate_header(f"Bearer {token}", self.settings)
        profile = auth.current_user(self.db, claims)
        self.assertEqual(profile.name, "Owner")

    def test_token_expires_after_configured_days(self):
        auth.register(self.db, self.credentials, self.settings)
        user = self.db.get_user_by_email("owner@example.com")
        issued = datetime.now(timezone.utc)
        token = auth.create_access_token(user, self.settings, now=issued)
        claims = auth.decode_access_token(token, self.settings)
        self.assertAlmostEqual(
            claims.expires_at.timestamp(),
            (issued + timedelta(days=7)).timestamp(),
            delta=1,
        )

    def test_expired_token_is_rejected(self):
        auth.register(self.db, self.credentials, self.settings)
        user = self.db.get_user_by_email("owner@example.com")
        token = auth.create_access_token(
            user,
            self.settings,
            now=datetime.now(timezone.utc) - timedelta(days=8),
        )
        with self.assertRaises(AuthorizationError):
            auth.decode_access_token(token, self.settings)

    def test_token_signed_with_other_secret_is_rejected(self):
        auth.register(self.db, self.credentials, self.settings)
        user = self.db.get_user_by_email("owner@example.com")
        other = Settings(jwt_secret="another-secret-0123456789abcdefgh")
        token = auth.create_access_token(user, other)
        with self.assertRaises(AuthorizationError):
            auth.decode_access_token(token, self.settings)

    def test_header_must_be_bearer(self):
        for header in (None, "", "Basic abc", "Bearer ", "garbage"):
            with self.subTest(header=header):
                with self.assertRaises(AuthorizationError):
                    auth.authenticate_header(header, self.settings)


if __name__ == "__main__":
    unittest.main()
