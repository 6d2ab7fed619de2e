"""Tests for the bootstrap admin CLI (peninsula.scripts.create_admin)."""

import unittest
from unittest.mock import patch

from peninsula.core.security import verify_password
from peninsula.models import User
from peninsula.scripts import create_admin
from tests.support import add_user, make_session_factory


class TestCreateAdmin(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        patcher = patch.object(create_admin, "SessionLocal", self.session_factory)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.db = self.session_factory()
        self.addCleanup(self.db.close)

    def test_positional_username_and_password(self) -> None:
        self.assertEqual(create_admin.main(["operator", "operator1"]), 0)
        user = self.db.query(User).filter(User.username == "operator").one()
        self.assertEqual(user.role, "admin")
        self.assertTrue(verify_password("operator1", user.password_hash))

    def test_defaults(self) -> None:
        self.assertEqual(create_admin.main([]), 0)
        user = self.db.query(User).filter(User.username == "admin").one()
        self.assertTrue(verify_password("admin123", user.password_hash))

    def test_existing_user_left_alone(self) -> None:
        add_user(self.db, "admin", "original1", role="user")
        self.assertEqual(create_admin.main(["admin", "admin123"]), 0)
        self.db.expire_all()
        user = self.db.query(User).filter(User.username == "admin").one()
        self.assertEqual(user.role, "user")
        self.assertTrue(verify_password("original1", user.password_hash))

    def test_rejects_short_values(self) -> None:
        self.assertEqual(create_admin.main(["ab", "operator1"]), 1)
        self.assertEqual(create_admin.main(["operator", "short"]), 1)
        self.assertEqual(self.db.query(User).count(), 0)


if __name__ == "__main__":
    unittest.main()
