"""Tests for peninsula.services.auth: login and refresh against an in-memory store."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from peninsula.core.errors import AuthenticationError, ValidationError
from peninsula.core.security import TokenKind, create_refresh_token, decode_token
from peninsula.models import Audit, RefreshToken, User
from peninsula.services.auth import login, refresh
from tests.support import add_user, make_session_factory


class _StoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        self.admin = add_user(self.db, "admin", "admin123", role="admin")

    def tearDown(self) -> None:
        self.db.close()

    def audits(self, action: str) -> list[Audit]:
        return self.db.query(Audit).filter(Audit.action == action).all()


class TestLogin(_StoreTestCase):
    """Login issues both tokens on success and fails identically for both failure cases."""

    def test_success_issues_tokens_with_user_claims(self) -> None:
        pair = login(self.db, "admin", "admin123")
        access = decode_token(TokenKind.ACCESS, pair.access_token)
        refresh_claims = decode_token(TokenKind.REFRESH, pair.refresh_token)
        self.assertEqual(access.sub, self.admin.id)
        self.assertEqual(access.role, "admin")
        self.assertEqual(access.username, "admin")
        self.assertEqual(refresh_claims.sub, self.admin.id)
        self.assertEqual(refresh_claims.role, "admin")

    def test_success_persists_refresh_record_and_audits(self) -> None:
        pair = login(self.db, "admin", "admin123")
        records = self.db.query(RefreshToken).all()
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].token, pair.refresh_token)
        self.assertEqual(records[0].user_id, self.admin.id)
        success = self.audits("login_success")
        self.assertEqual(len(success), 1)
        self.assertEqual(success[0].actor_user_id, self.admin.id)

    def test_unknown_user(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            login(self.db, "ghost", "whatever1")
        self.assertEqual(ctx.exception.code, "invalid_credentials")
        failed = self.audits("login_failed")
        self.assertEqual(len(failed), 1)
        self.assertIsNone(failed[0].actor_user_id)
        self.assertEqual(failed[0].details, {"username": "ghost"})

    def test_wrong_password(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            login(self.db, "admin", "wrong-password")
        self.assertEqual(ctx.exception.code, "invalid_credentials")
        failed = self.audits("login_failed")
        self.assertEqual(len(failed), 1)
        self.assertEqual(failed[0].actor_user_id, self.admin.id)
        self.assertEqual(self.db.query(RefreshToken).count(), 0)

    def test_username_is_case_sensitive(self) -> None:
        with self.assertRaises(AuthenticationError):
            login(self.db, "ADMIN", "admin123")

    def test_short_input_rejected_before_store(self) -> None:
        db = MagicMock()
        with self.assertRaises(ValidationError) as ctx:
            login(db, "ab", "admin123")
        self.assertEqual(ctx.exception.code, "invalid_payload")
        with self.assertRaises(ValidationError):
            login(db, "admin", "")
        db.query.assert_not_called()
        db.add.assert_not_called()


class TestRefresh(_StoreTestCase):
    """Refresh requires a valid signature, a live persisted record and an existing user."""

    def test_success_returns_new_access_token(self) -> None:
        pair = login(self.db, "admin", "admin123")
        result = refresh(self.db, pair.refresh_token)
        claims = decode_token(TokenKind.ACCESS, result.access_token)
        self.assertEqual(claims.sub, self.admin.id)
        self.assertEqual(claims.username, "admin")

    def test_can_be_redeemed_repeatedly(self) -> None:
        pair = login(self.db, "admin", "admin123")
        refresh(self.db, pair.refresh_token)
        refresh(self.db, pair.refresh_token)
        self.assertEqual(self.db.query(RefreshToken).count(), 1)

    def test_missing_token(self) -> None:
        for value in (None, ""):
            with self.assertRaises(ValidationError) as ctx:
                refresh(self.db, value)
            self.assertEqual(ctx.exception.code, "missing_refresh")

    def test_garbage_token(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            refresh(self.db, "garbage")
        self.assertEqual(ctx.exception.code, "invalid_refresh")

    def test_access_token_is_not_a_refresh_token(self) -> None:
        pair = login(self.db, "admin", "admin123")
        with self.assertRaises(AuthenticationError):
            refresh(self.db, pair.access_token)

    def test_never_persisted_token_rejected(self) -> None:
        token = create_refresh_token(sub=self.admin.id, role="admin")
        with self.assertRaises(AuthenticationError) as ctx:
            refresh(self.db, token)
        self.assertEqual(ctx.exception.code, "invalid_refresh")

    def test_deleted_record_invalidates_token(self) -> None:
        pair = login(self.db, "admin", "admin123")
        self.db.query(RefreshToken).delete()
        self.db.commit()
        with self.assertRaises(AuthenticationError):
            refresh(self.db, pair.refresh_token)

    def test_expired_record_invalidates_token(self) -> None:
        pair = login(self.db, "admin", "admin123")
        record = self.db.query(RefreshToken).one()
        record.expires_at = datetime.now(UTC) - timedelta(seconds=1)
        self.db.commit()
        with self.assertRaises(AuthenticationError):
            refresh(self.db, pair.refresh_token)

    def test_deleted_user_invalidates_token(self) -> None:
        operator = add_user(self.db, "operator", "secret99")
        pair = login(self.db, "operator", "secret99")
        # SQLite does not enforce the cascade here, so the record survives the user.
        self.db.query(User).filter(User.id == operator.id).delete()
        self.db.commit()
        with self.assertRaises(AuthenticationError) as ctx:
            refresh(self.db, pair.refresh_token)
        self.assertEqual(ctx.exception.code, "invalid_refresh")

    def test_role_change_reflected_in_new_access_token(self) -> None:
        pair = login(self.db, "admin", "admin123")
        self.admin.role = "user"
        self.db.commit()
        claims = decode_token(TokenKind.ACCESS, refresh(self.db, pair.refresh_token).access_token)
        self.assertEqual(claims.role, "user")


if __name__ == "__main__":
    unittest.main()
