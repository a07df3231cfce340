from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

import amoportal.services.storage as storage_module
from amoportal.services.errors import ApplicationAlreadyReviewedError
from amoportal.services.storage import Storage


def test_application_lifecycle() -> None:
    storage = Storage()

    async def runner() -> None:
        application = await storage.create_application(
            "admin",
            "someone",
            {"name": "Ali", "responsibility": True},
            discord_user_id="42",
        )
        assert application.status == "pending"
        assert application.created_at == application.updated_at
        assert storage.get_application(application.id) is application

        updated = await storage.update_application_status(application.id, "accepted", "reviewer")
        assert updated is not None
        assert updated.status == "accepted"
        assert updated.reviewed_by == "reviewer"
        assert updated.reviewed_at is not None
        assert updated.created_at <= updated.updated_at

        with pytest.raises(ApplicationAlreadyReviewedError) as excinfo:
            await storage.update_application_status(application.id, "rejected", "other")
        assert excinfo.value.status == "accepted"
        assert storage.get_application(application.id).reviewed_by == "reviewer"

    asyncio.run(runner())


def test_unknown_application_update_returns_none() -> None:
    storage = Storage()

    async def runner() -> None:
        assert await storage.update_application_status("missing", "accepted", "x") is None
        assert storage.get_applications() == []

    asyncio.run(runner())


def test_invalid_status_is_rejected() -> None:
    storage = Storage()

    async def runner() -> None:
        application = await storage.create_application("script", "user", {})
        with pytest.raises(ValueError):
            await storage.update_application_status(application.id, "pending", "x")

    asyncio.run(runner())


def test_applications_are_listed_newest_first(monkeypatch: pytest.MonkeyPatch) -> None:
    storage = Storage()
    fixed = storage_module.utcnow()
    monkeypatch.setattr(storage_module, "utcnow", lambda: fixed)

    async def runner() -> None:
        first = await storage.create_application("admin", "a", {})
        second = await storage.create_application("script", "b", {})
        third = await storage.create_application("hacks", "c", {})
        assert [item.id for item in storage.get_applications()] == [third.id, second.id, first.id]

    asyncio.run(runner())


def test_application_to_dict_uses_camel_case() -> None:
    storage = Storage()

    async def runner() -> None:
        application = await storage.create_application("hacks", "user", {"serverLogo": "x"}, discord_user_id="7")
        payload = application.to_dict()
        assert payload["discordUsername"] == "user"
        assert payload["discordUserId"] == "7"
        assert payload["formData"] == {"serverLogo": "x"}
        assert payload["reviewedAt"] is None
        assert payload["createdAt"] == application.created_at.isoformat()

    asyncio.run(runner())


def test_application_settings_default_open() -> None:
    storage = Storage()

    async def runner() -> None:
        assert storage.get_application_settings("admin") is None
        assert storage.get_application_settings_map() == {"admin": True, "script": True, "hacks": True}

        closed = await storage.update_application_settings("admin", False)
        assert closed.is_open is False
        assert not storage.is_application_open("admin")

        reopened = await storage.update_application_settings("admin", True)
        assert reopened is closed
        assert storage.get_application_settings_map()["admin"] is True
        assert reopened.to_dict()["isOpen"] is True

    asyncio.run(runner())


def test_admin_sessions_expire_and_are_swept() -> None:
    storage = Storage()

    async def runner() -> None:
        active = await storage.create_admin_session(timedelta(hours=1))
        stale = await storage.create_admin_session(timedelta(seconds=-1))
        assert active.session_id != stale.session_id

        assert storage.get_admin_session(active.session_id) is active
        assert storage.get_admin_session(stale.session_id) is None

        assert await storage.clean_expired_sessions() == 1
        assert await storage.clean_expired_sessions() == 0
        assert storage.get_admin_session(active.session_id) is active

        later = storage_module.utcnow() + timedelta(hours=2)
        assert await storage.clean_expired_sessions(later) == 1

    asyncio.run(runner())


def test_delete_admin_session() -> None:
    storage = Storage()

    async def runner() -> None:
        session = await storage.create_admin_session(timedelta(hours=1))
        assert await storage.delete_admin_session(session.session_id)
        assert not await storage.delete_admin_session(session.session_id)
        assert storage.get_admin_session(session.session_id) is None

    asyncio.run(runner())
