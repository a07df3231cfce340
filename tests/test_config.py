from __future__ import annotations

from pathlib import Path

import pytest

from amoportal.config import Settings

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config" / "settings.example.yaml"


def test_example_config_loads() -> None:
    settings = Settings.load(EXAMPLE_CONFIG)
    assert settings.discord.application_channel_id == 1336659124884209755
    assert settings.discord.role_for_type["admin"] == 1336657149765484654
    assert settings.discord.allow_unverified_fallback is False
    assert settings.admin.username == "admin"
    assert settings.webapp.port == 5000
    assert settings.webapp.default_language == "ar"


def test_defaults_for_empty_document() -> None:
    settings = Settings.from_dict({})
    assert settings.discord.guild_id is None
    assert settings.discord.role_for_type == {}
    assert settings.discord.request_timeout == 10.0
    assert settings.admin.session_ttl.total_seconds() == 24 * 3600
    assert settings.slack.channel_id is None
    assert settings.logging.file is None


def test_secrets_come_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = Settings.from_dict(
        {
            "discord": {"bot_token_env": "TEST_DISCORD_TOKEN", "guild_id": "123"},
            "admin": {"password": "fallback", "password_env": "TEST_ADMIN_PASSWORD", "secret_key_env": "TEST_KEY"},
            "slack": {"bot_token_env": "TEST_SLACK_TOKEN", "channel_id": "C1"},
        }
    )
    monkeypatch.delenv("TEST_DISCORD_TOKEN", raising=False)
    monkeypatch.delenv("TEST_ADMIN_PASSWORD", raising=False)
    monkeypatch.delenv("TEST_KEY", raising=False)
    monkeypatch.delenv("TEST_SLACK_TOKEN", raising=False)

    assert settings.discord.guild_id == 123
    assert settings.get_bot_token() is None
    assert settings.get_admin_password() == "fallback"
    assert settings.get_secret_key() is None
    assert settings.get_slack_token() is None

    monkeypatch.setenv("TEST_DISCORD_TOKEN", "token")
    monkeypatch.setenv("TEST_ADMIN_PASSWORD", "from-env")
    monkeypatch.setenv("TEST_KEY", "key")
    monkeypatch.setenv("TEST_SLACK_TOKEN", "xoxb")
    assert settings.get_bot_token() == "token"
    assert settings.get_admin_password() == "from-env"
    assert settings.get_secret_key() == b"key"
    assert settings.get_slack_token() == "xoxb"
