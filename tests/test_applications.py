from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from amoportal.config import DiscordConfig
from amoportal.services.applications import WEBHOOK_REVIEWER, ApplicationService, NotificationOutcome
from amoportal.services.errors import (
    ApplicationAlreadyReviewedError,
    ApplicationClosedError,
    ApplicationNotFoundError,
    UpstreamError,
)
from amoportal.services.forms import parse_submission
from amoportal.services.storage import Storage

ROLES = {"admin": 100, "script": 200, "hacks": 300}


def _config(**overrides: object) -> DiscordConfig:
    values = {"guild_id": 1, "role_for_type": dict(ROLES), "reject_role_id": 900, "request_timeout": 1.0}
    values.update(overrides)
    return DiscordConfig(**values)


def _script_submission(user_id: str | None = "55"):
    payload = {
        "type": "script",
        "discordUsername": "coder",
        "formData": {
            "name": "Sara",
            "age": "22",
            "languages": "Lua",
            "experience": "3 years",
            "maps": "desert",
            "frequency": "weekly",
        },
    }
    if user_id:
        payload["discordUserId"] = user_id
    return parse_submission(payload)


def _admin_submission():
    return parse_submission(
        {
            "type": "admin",
            "discordUsername": "ali",
            "discordUserId": "77",
            "formData": {
                "name": "Ali",
                "age": "20",
                "country": "Iraq",
                "benefit": "moderation",
                "experience": "two years",
                "responsibility": True,
                "oath": "اقسم بان لا اضر السيرفر وان لا اغدر بالسيرفر",
            },
        }
    )


def test_submit_stores_and_notifies() -> None:
    storage = Storage()
    service = ApplicationService(storage, SimpleNamespace(assign_role=AsyncMock()), _config())
    notifier = SimpleNamespace(notify=AsyncMock(return_value=NotificationOutcome.sent(321)))
    service.attach_notifier(notifier)

    async def runner() -> None:
        result = await service.submit(_script_submission())
        assert result.notification.delivered
        assert result.notification.message_id == 321
        stored = storage.get_application(result.application.id)
        assert stored is not None
        assert stored.status == "pending"
        assert stored.discord_user_id == "55"
        notifier.notify.assert_awaited_once_with(stored)

    asyncio.run(runner())


def test_submit_survives_notification_timeout() -> None:
    storage = Storage()
    service = ApplicationService(storage, None, _config(request_timeout=0.01))

    async def slow_notify(application):
        await asyncio.sleep(1)
        return NotificationOutcome.sent(1)

    service.attach_notifier(SimpleNamespace(notify=slow_notify))

    async def runner() -> None:
        result = await service.submit(_script_submission())
        assert not result.notification.delivered
        assert result.notification.reason == "notification timed out"
        assert storage.get_application(result.application.id) is not None

    asyncio.run(runner())


def test_submit_without_notifier() -> None:
    storage = Storage()
    service = ApplicationService(storage, None, _config())

    async def runner() -> None:
        result = await service.submit(_script_submission())
        assert not result.notification.delivered
        assert len(storage.get_applications()) == 1

    asyncio.run(runner())


def test_submit_rejected_when_closed() -> None:
    storage = Storage()
    service = ApplicationService(storage, None, _config())

    async def runner() -> None:
        await storage.update_application_settings("script", False)
        with pytest.raises(ApplicationClosedError):
            await service.submit(_script_submission())
        assert storage.get_applications() == []

    asyncio.run(runner())


def test_accept_grants_type_role() -> None:
    storage = Storage()
    gateway = SimpleNamespace(assign_role=AsyncMock())
    service = ApplicationService(storage, gateway, _config())

    async def runner() -> None:
        submitted = await service.submit(_script_submission())
        result = await service.record_decision(submitted.application.id, "accept")
        assert result.application.status == "accepted"
        assert result.application.reviewed_by == WEBHOOK_REVIEWER
        assert result.role_id == 200
        assert result.role_assigned
        gateway.assign_role.assert_awaited_once_with("55", 200)

    asyncio.run(runner())


def test_explicit_user_id_wins() -> None:
    storage = Storage()
    gateway = SimpleNamespace(assign_role=AsyncMock())
    service = ApplicationService(storage, gateway, _config())

    async def runner() -> None:
        submitted = await service.submit(_script_submission(user_id=None))
        await service.record_decision(submitted.application.id, "accept", user_id="999")
        gateway.assign_role.assert_awaited_once_with("999", 200)

    asyncio.run(runner())


def test_reject_admin_grants_reject_role() -> None:
    storage = Storage()
    gateway = SimpleNamespace(assign_role=AsyncMock())
    service = ApplicationService(storage, gateway, _config())

    async def runner() -> None:
        submitted = await service.submit(_admin_submission())
        result = await service.record_decision(submitted.application.id, "reject", reviewer="mod (1)")
        assert result.application.status == "rejected"
        assert result.application.reviewed_by == "mod (1)"
        gateway.assign_role.assert_awaited_once_with("77", 900)

    asyncio.run(runner())


def test_reject_non_admin_grants_nothing() -> None:
    storage = Storage()
    gateway = SimpleNamespace(assign_role=AsyncMock())
    service = ApplicationService(storage, gateway, _config())

    async def runner() -> None:
        submitted = await service.submit(_script_submission())
        result = await service.record_decision(submitted.application.id, "reject")
        assert result.role_id is None
        assert not result.role_assigned
        gateway.assign_role.assert_not_awaited()

    asyncio.run(runner())


def test_role_failure_does_not_undo_decision() -> None:
    storage = Storage()
    gateway = SimpleNamespace(assign_role=AsyncMock(side_effect=UpstreamError("boom")))
    service = ApplicationService(storage, gateway, _config())

    async def runner() -> None:
        submitted = await service.submit(_script_submission())
        result = await service.record_decision(submitted.application.id, "accept")
        assert result.application.status == "accepted"
        assert not result.role_assigned

    asyncio.run(runner())


def test_unknown_and_repeated_decisions() -> None:
    storage = Storage()
    service = ApplicationService(storage, SimpleNamespace(assign_role=AsyncMock()), _config())

    async def runner() -> None:
        with pytest.raises(ApplicationNotFoundError):
            await service.record_decision("missing", "accept")

        submitted = await service.submit(_script_submission())
        await service.record_decision(submitted.application.id, "accept")
        with pytest.raises(ApplicationAlreadyReviewedError):
            await service.record_decision(submitted.application.id, "reject")
        assert storage.get_application(submitted.application.id).status == "accepted"

        with pytest.raises(ValueError):
            await service.record_decision(submitted.application.id, "maybe")

    asyncio.run(runner())


def test_submit_survives_unexpected_notifier_error() -> None:
    storage = Storage()
    service = ApplicationService(storage, None, _config())
    service.attach_notifier(SimpleNamespace(notify=AsyncMock(side_effect=RuntimeError("socket closed"))))

    async def runner() -> None:
        result = await service.submit(_script_submission())
        assert not result.notification.delivered
        assert "socket closed" in result.notification.reason
        assert storage.get_application(result.application.id) is not None

    asyncio.run(runner())


def test_deferred_role_grant() -> None:
    storage = Storage()
    gateway = SimpleNamespace(assign_role=AsyncMock())
    service = ApplicationService(storage, gateway, _config())

    async def runner() -> None:
        submitted = await service.submit(_script_submission())
        recorded = await service.record_decision(submitted.application.id, "accept", grant_role=False)
        assert recorded.application.status == "accepted"
        assert recorded.role_id == 200
        assert not recorded.role_assigned
        gateway.assign_role.assert_not_awaited()

        granted = await service.grant_decision_role(recorded.application, "accept")
        assert granted.role_assigned
        gateway.assign_role.assert_awaited_once_with("55", 200)

    asyncio.run(runner())
