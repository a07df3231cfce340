"""Application submission and review flows shared by the API and the Discord buttons."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Protocol, Union

from ..config import DiscordConfig
from .errors import ApplicationClosedError, ApplicationNotFoundError, PortalError
from .forms import AdminSubmission, HacksSubmission, ScriptSubmission
from .storage import STATUS_ACCEPTED, STATUS_REJECTED, Application, Storage

if TYPE_CHECKING:
    from .notifier import ApplicationNotifier

LOGGER = logging.getLogger(__name__)

WEBHOOK_REVIEWER = "Discord Bot"

Submission = Union[AdminSubmission, ScriptSubmission, HacksSubmission]


class RoleGranter(Protocol):
    async def assign_role(self, user_id: Any, role_id: int) -> None: ...


@dataclass(frozen=True)
class NotificationOutcome:
    delivered: bool
    message_id: Optional[int] = None
    reason: Optional[str] = None

    @classmethod
    def sent(cls, message_id: Optional[int]) -> "NotificationOutcome":
        return cls(delivered=True, message_id=message_id)

    @classmethod
    def skipped(cls, reason: str) -> "NotificationOutcome":
        return cls(delivered=False, reason=reason)


@dataclass(frozen=True)
class SubmissionResult:
    application: Application
    notification: NotificationOutcome


@dataclass(frozen=True)
class DecisionResult:
    application: Application
    role_id: Optional[int] = None
    role_assigned: bool = False


class ApplicationService:
    def __init__(
        self,
        storage: Storage,
        gateway: Optional[RoleGranter],
        config: DiscordConfig,
        notifier: Optional["ApplicationNotifier"] = None,
    ) -> None:
        self.storage = storage
        self.gateway = gateway
        self.config = config
        self.notifier = notifier

    def attach_notifier(self, notifier: "ApplicationNotifier") -> None:
        self.notifier = notifier

    async def submit(self, submission: Submission) -> SubmissionResult:
        if not self.storage.is_application_open(submission.type):
            raise ApplicationClosedError(f"{submission.type} applications are closed")

        application = await self.storage.create_application(
            type=submission.type,
            discord_username=submission.discord_username,
            discord_user_id=submission.discord_user_id,
            form_data=submission.form_data.as_form_data(),
        )
        notification = await self._notify(application)
        if not notification.delivered:
            LOGGER.warning(
                "application_notification_skipped",
                extra={"application_id": application.id, "reason": notification.reason},
            )
        return SubmissionResult(application=application, notification=notification)

    async def record_decision(
        self,
        application_id: str,
        action: str,
        reviewer: str = WEBHOOK_REVIEWER,
        user_id: Optional[str] = None,
        grant_role: bool = True,
    ) -> DecisionResult:
        """Move the application out of ``pending`` and, unless deferred, grant the mapped role.

        With ``grant_role=False`` the caller is expected to call ``grant_decision_role`` itself.
        """

        if action not in ("accept", "reject"):
            raise ValueError(f"Unsupported review action: {action!r}")

        if self.storage.get_application(application_id) is None:
            raise ApplicationNotFoundError(f"Unknown application {application_id}")

        status = STATUS_ACCEPTED if action == "accept" else STATUS_REJECTED
        application = await self.storage.update_application_status(application_id, status, reviewer)
        if application is None:
            raise ApplicationNotFoundError(f"Unknown application {application_id}")

        if not grant_role:
            return DecisionResult(application=application, role_id=self._role_for_decision(application, action))
        return await self.grant_decision_role(application, action, user_id)

    async def grant_decision_role(
        self,
        application: Application,
        action: str,
        user_id: Optional[str] = None,
    ) -> DecisionResult:
        role_id = self._role_for_decision(application, action)
        target_id = user_id or application.discord_user_id
        role_assigned = False
        if role_id and target_id:
            role_assigned = await self._grant_role(application, target_id, role_id)
        return DecisionResult(application=application, role_id=role_id, role_assigned=role_assigned)

    def _role_for_decision(self, application: Application, action: str) -> Optional[int]:
        if action == "accept":
            return self.config.role_for_type.get(application.type)
        if application.type == "admin":
            return self.config.reject_role_id
        return None

    async def _grant_role(self, application: Application, user_id: str, role_id: int) -> bool:
        if self.gateway is None:
            LOGGER.warning("No Discord gateway; skipped role %s for %s", role_id, user_id)
            return False
        try:
            await self.gateway.assign_role(user_id, role_id)
        except PortalError as exc:
            LOGGER.error(
                "Failed to assign role %s for application %s: %s",
                role_id,
                application.id,
                exc,
            )
            return False
        return True

    async def _notify(self, application: Application) -> NotificationOutcome:
        if self.notifier is None:
            return NotificationOutcome.skipped("notifier disabled")
        try:
            return await asyncio.wait_for(self.notifier.notify(application), self.config.request_timeout)
        except asyncio.TimeoutError:
            return NotificationOutcome.skipped("notification timed out")
        except Exception as exc:
            LOGGER.exception("Notification failed for application %s", application.id)
            return NotificationOutcome.skipped(f"notification failed: {exc}")
