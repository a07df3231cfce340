"""In-memory store for applications, per-type settings and admin sessions."""
from __future__ import annotations

import asyncio
import itertools
import logging
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from .errors import ApplicationAlreadyReviewedError

LOGGER = logging.getLogger(__name__)

APPLICATION_TYPES: tuple[str, ...] = ("admin", "script", "hacks")
STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
REVIEW_STATUSES: tuple[str, ...] = (STATUS_ACCEPTED, STATUS_REJECTED)

FormValue = Union[str, bool]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(moment: Optional[datetime]) -> Optional[str]:
    if moment is None:
        return None
    return moment.isoformat()


@dataclass
class Application:
    id: str
    type: str
    discord_username: str
    form_data: Dict[str, FormValue]
    created_at: datetime
    updated_at: datetime
    discord_user_id: Optional[str] = None
    status: str = STATUS_PENDING
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    sequence: int = field(default=0, repr=False)

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "discordUsername": self.discord_username,
            "discordUserId": self.discord_user_id,
            "formData": dict(self.form_data),
            "status": self.status,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": isoformat(self.reviewed_at),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


@dataclass
class ApplicationSettings:
    type: str
    is_open: bool
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "isOpen": self.is_open,
            "updatedAt": isoformat(self.updated_at),
        }


@dataclass
class AdminSession:
    session_id: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at < (now or utcnow())


@dataclass
class StorageState:
    applications: Dict[str, Application] = field(default_factory=dict)
    application_settings: Dict[str, ApplicationSettings] = field(default_factory=dict)
    admin_sessions: Dict[str, AdminSession] = field(default_factory=dict)


class Storage:
    """Process-lifetime store for applications, settings and admin sessions.

    Nothing is written to disk; a restart loses every record.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._state = StorageState()
        self._sequence = itertools.count(1)

    async def create_application(
        self,
        type: str,
        discord_username: str,
        form_data: Dict[str, FormValue],
        discord_user_id: Optional[str] = None,
    ) -> Application:
        async with self._lock:
            timestamp = utcnow()
            application = Application(
                id=str(uuid.uuid4()),
                type=type,
                discord_username=discord_username,
                discord_user_id=discord_user_id,
                form_data=dict(form_data),
                created_at=timestamp,
                updated_at=timestamp,
                sequence=next(self._sequence),
            )
            self._state.applications[application.id] = application
        LOGGER.info("application_created", extra={"application_id": application.id, "type": type})
        return application

    def get_applications(self) -> List[Application]:
        return sorted(
            self._state.applications.values(),
            key=lambda item: (item.created_at, item.sequence),
            reverse=True,
        )

    def get_application(self, application_id: str) -> Optional[Application]:
        return self._state.applications.get(application_id)

    async def update_application_status(
        self,
        application_id: str,
        status: str,
        reviewed_by: str,
    ) -> Optional[Application]:
        if status not in REVIEW_STATUSES:
            raise ValueError(f"Unsupported review status: {status!r}")

        async with self._lock:
            application = self._state.applications.get(application_id)
            if application is None:
                return None
            if not application.is_pending:
                raise ApplicationAlreadyReviewedError(application_id, application.status)
            timestamp = utcnow()
            application.status = status
            application.reviewed_by = reviewed_by
            application.reviewed_at = timestamp
            application.updated_at = timestamp
        LOGGER.info(
            "application_status_updated",
            extra={"application_id": application_id, "status": status, "reviewed_by": reviewed_by},
        )
        return application

    def get_application_settings(self, type: str) -> Optional[ApplicationSettings]:
        return self._state.application_settings.get(type)

    def is_application_open(self, type: str) -> bool:
        settings = self._state.application_settings.get(type)
        return settings.is_open if settings else True

    def get_application_settings_map(self) -> Dict[str, bool]:
        return {type: self.is_application_open(type) for type in APPLICATION_TYPES}

    async def update_application_settings(self, type: str, is_open: bool) -> ApplicationSettings:
        async with self._lock:
            timestamp = utcnow()
            settings = self._state.application_settings.get(type)
            if settings:
                settings.is_open = is_open
                settings.updated_at = timestamp
            else:
                settings = ApplicationSettings(type=type, is_open=is_open, updated_at=timestamp)
                self._state.application_settings[type] = settings
        LOGGER.info("application_settings_updated", extra={"type": type, "is_open": is_open})
        return settings

    async def create_admin_session(self, ttl: timedelta) -> AdminSession:
        async with self._lock:
            session_id = secrets.token_urlsafe(32)
            while session_id in self._state.admin_sessions:
                session_id = secrets.token_urlsafe(32)
            timestamp = utcnow()
            session = AdminSession(
                session_id=session_id,
                created_at=timestamp,
                expires_at=timestamp + ttl,
            )
            self._state.admin_sessions[session_id] = session
        LOGGER.info("admin_session_created", extra={"expires_at": isoformat(session.expires_at)})
        return session

    def get_admin_session(self, session_id: str) -> Optional[AdminSession]:
        session = self._state.admin_sessions.get(session_id)
        if session is None or session.is_expired():
            return None
        return session

    async def delete_admin_session(self, session_id: str) -> bool:
        async with self._lock:
            removed = self._state.admin_sessions.pop(session_id, None)
        if removed:
            LOGGER.info("admin_session_deleted")
        return removed is not None

    async def clean_expired_sessions(self, now: Optional[datetime] = None) -> int:
        moment = now or utcnow()
        async with self._lock:
            expired = [
                session_id
                for session_id, session in self._state.admin_sessions.items()
                if session.is_expired(moment)
            ]
            for session_id in expired:
                del self._state.admin_sessions[session_id]
        if expired:
            LOGGER.info("admin_sessions_swept", extra={"count": len(expired)})
        return len(expired)
