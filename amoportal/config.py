"""Configuration loader for the amo application portal."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


@dataclass
class DiscordConfig:
    bot_token_env: str = "DISCORD_BOT_TOKEN"
    guild_id: Optional[int] = None
    application_channel_id: Optional[int] = None
    reviewer_role_id: Optional[int] = None
    role_for_type: Dict[str, int] = field(default_factory=dict)
    reject_role_id: Optional[int] = None
    allow_unverified_fallback: bool = False
    request_timeout: float = 10.0


@dataclass
class AdminConfig:
    username: str = "admin"
    password: str = "admin"
    password_env: Optional[str] = None
    secret_key_env: str = "PORTAL_SECRET_KEY"
    session_ttl_hours: float = 24.0
    session_sweep_interval: float = 3600.0

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(hours=self.session_ttl_hours)


@dataclass
class SlackConfig:
    bot_token_env: str = "SLACK_BOT_TOKEN"
    channel_id: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[Path] = None


@dataclass
class WebAppConfig:
    host: str = "0.0.0.0"
    port: int = 5000
    default_language: str = "ar"


@dataclass
class Settings:
    discord: DiscordConfig = field(default_factory=DiscordConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    webapp: WebAppConfig = field(default_factory=WebAppConfig)

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as config_file:
            data: Dict[str, Any] = yaml.safe_load(config_file) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        discord_cfg = data.get("discord", {}) or {}
        discord = DiscordConfig(
            bot_token_env=discord_cfg.get("bot_token_env", "DISCORD_BOT_TOKEN"),
            guild_id=_optional_int(discord_cfg.get("guild_id")),
            application_channel_id=_optional_int(discord_cfg.get("application_channel_id")),
            reviewer_role_id=_optional_int(discord_cfg.get("reviewer_role_id")),
            role_for_type={
                str(type): int(role_id)
                for type, role_id in (discord_cfg.get("role_for_type") or {}).items()
                if role_id not in (None, "")
            },
            reject_role_id=_optional_int(discord_cfg.get("reject_role_id")),
            allow_unverified_fallback=bool(discord_cfg.get("allow_unverified_fallback", False)),
            request_timeout=float(discord_cfg.get("request_timeout", 10.0)),
        )

        admin_cfg = data.get("admin", {}) or {}
        admin = AdminConfig(
            username=str(admin_cfg.get("username", "admin")),
            password=str(admin_cfg.get("password", "admin")),
            password_env=admin_cfg.get("password_env"),
            secret_key_env=admin_cfg.get("secret_key_env", "PORTAL_SECRET_KEY"),
            session_ttl_hours=float(admin_cfg.get("session_ttl_hours", 24)),
            session_sweep_interval=float(admin_cfg.get("session_sweep_interval", 3600)),
        )

        slack_cfg = data.get("slack", {}) or {}
        slack = SlackConfig(
            bot_token_env=slack_cfg.get("bot_token_env", "SLACK_BOT_TOKEN"),
            channel_id=slack_cfg.get("channel_id") or None,
        )

        logging_cfg = data.get("logging", {}) or {}
        logging_config = LoggingConfig(
            level=logging_cfg.get("level", "INFO"),
            file=Path(logging_cfg["file"]) if logging_cfg.get("file") else None,
        )

        webapp_cfg = data.get("webapp", {}) or {}
        webapp = WebAppConfig(
            host=webapp_cfg.get("host", "0.0.0.0"),
            port=int(webapp_cfg.get("port", 5000)),
            default_language=webapp_cfg.get("default_language", "ar"),
        )

        return cls(
            discord=discord,
            admin=admin,
            slack=slack,
            logging=logging_config,
            webapp=webapp,
        )

    def get_bot_token(self) -> Optional[str]:
        return os.getenv(self.discord.bot_token_env) or None

    def get_admin_password(self) -> str:
        if self.admin.password_env:
            from_env = os.getenv(self.admin.password_env)
            if from_env:
                return from_env
        return self.admin.password

    def get_secret_key(self) -> Optional[bytes]:
        key = os.getenv(self.admin.secret_key_env)
        if not key:
            return None
        return key.encode("utf-8")

    def get_slack_token(self) -> Optional[str]:
        return os.getenv(self.slack.bot_token_env) or None
