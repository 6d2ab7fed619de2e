"""Unit tests for peninsula.core.config.Settings validation and defaults."""

import unittest
from pathlib import Path

from pydantic import SecretStr, ValidationError

from peninsula.core.config import UPDATE_TIMEOUT_SEC, Settings


def _settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestDefaults(unittest.TestCase):
    def test_documented_defaults(self) -> None:
        settings = _settings()
        self.assertEqual(settings.PORT, 4875)
        self.assertEqual(settings.CORS_ORIGIN, "*")
        self.assertEqual(settings.JWT_ACCESS_TTL_MINUTES, 15)
        self.assertEqual(settings.JWT_REFRESH_TTL_DAYS, 7)
        self.assertEqual(settings.API_V1_PREFIX, "/v1")
        self.assertEqual(UPDATE_TIMEOUT_SEC, 120.0)


class TestValidation(unittest.TestCase):
    def test_secrets_must_differ(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(
                JWT_ACCESS_SECRET=SecretStr("same"),
                JWT_REFRESH_SECRET=SecretStr("same"),
            )

    def test_blank_secret_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_ACCESS_SECRET=SecretStr("   "))

    def test_database_url_must_be_postgres(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="mysql://root@localhost/peninsula")

    def test_ttl_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_ACCESS_TTL_MINUTES=0)
        with self.assertRaises(ValidationError):
            _settings(JWT_REFRESH_TTL_DAYS=400)

    def test_port_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(PORT=70000)

    def test_cors_origin_trailing_slash_stripped(self) -> None:
        settings = _settings(CORS_ORIGIN="https://panel.example.com/")
        self.assertEqual(settings.CORS_ORIGIN, "https://panel.example.com")


class TestUpdateScriptPath(unittest.TestCase):
    def test_relative_script_resolved_against_repo_dir(self) -> None:
        settings = _settings(REPO_DIR="/opt/peninsula", UPDATE_SCRIPT="scripts/update.sh")
        self.assertEqual(
            settings.update_script_path,
            str(Path("/opt/peninsula/scripts/update.sh").resolve()),
        )

    def test_absolute_script_kept(self) -> None:
        settings = _settings(UPDATE_SCRIPT="/usr/local/bin/peninsula-update")
        self.assertEqual(
            settings.update_script_path,
            str(Path("/usr/local/bin/peninsula-update").resolve()),
        )


if __name__ == "__main__":
    unittest.main()
