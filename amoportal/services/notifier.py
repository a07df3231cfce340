"""Mirrors submitted applications into Discord and handles the review buttons."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import discord

from ..config import DiscordConfig
from ..localization import ARABIC_TEXTS, TextPack
from ..ui.embeds import (
    DecisionRequest,
    application_review_view,
    application_type_name,
    build_application_embed,
    build_decision_embed,
)
from .applications import ApplicationService, NotificationOutcome
from .errors import (
    ApplicationAlreadyReviewedError,
    ApplicationNotFoundError,
    ReviewerRoleRequiredError,
    UpstreamError,
)
from .slack import SlackRelay
from .storage import Application, utcnow

LOGGER = logging.getLogger(__name__)


def has_role(member: Any, role_id: Optional[int]) -> bool:
    if role_id is None:
        return False
    return any(getattr(role, "id", None) == role_id for role in getattr(member, "roles", None) or [])


def reviewer_label(user: Any) -> str:
    return f"{getattr(user, 'name', 'unknown')} ({getattr(user, 'id', '?')})"


class ApplicationNotifier:
    def __init__(
        self,
        gateway: Any,
        config: DiscordConfig,
        service: ApplicationService,
        texts: TextPack | None = None,
        slack: SlackRelay | None = None,
    ) -> None:
        self.gateway = gateway
        self.config = config
        self.service = service
        self.texts = texts or ARABIC_TEXTS
        self.slack = slack

    async def notify(self, application: Application) -> NotificationOutcome:
        outcome = await self._post_to_discord(application)
        await self._relay_to_slack(application)
        return outcome

    def _ensure_reviewer(self, user: Any) -> None:
        if not has_role(user, self.config.reviewer_role_id):
            raise ReviewerRoleRequiredError(f"{reviewer_label(user)} lacks the reviewer role")

    async def handle_decision(self, interaction: discord.Interaction, request: DecisionRequest) -> None:
        user = interaction.user
        try:
            self._ensure_reviewer(user)
            result = await self.service.record_decision(
                request.application_id,
                request.action,
                reviewer=reviewer_label(user),
                grant_role=False,
            )
        except ApplicationAlreadyReviewedError as exc:
            await interaction.response.send_message(
                self.texts.discord_already_decided.format(status=exc.status),
                ephemeral=True,
            )
            return
        except (ReviewerRoleRequiredError, ApplicationNotFoundError) as exc:
            LOGGER.info(
                "review_refused",
                extra={"user_id": getattr(user, "id", None), "application_id": request.application_id, "error": str(exc)},
            )
            await interaction.response.send_message(getattr(self.texts, exc.text_key), ephemeral=True)
            return

        if result.application.type != request.type:
            LOGGER.warning(
                "Button type %s does not match application %s type %s",
                request.type,
                result.application.id,
                result.application.type,
            )

        message = interaction.message
        original = message.embeds[0] if message is not None and message.embeds else None
        embed = build_decision_embed(
            original,
            request.action,
            user.id,
            result.application.reviewed_at or utcnow(),
            self.texts,
        )
        # The interaction must be answered within three seconds, before any role grant.
        try:
            await interaction.response.edit_message(embed=embed, view=None)
        except discord.HTTPException as exc:
            LOGGER.error("Failed to update review message for %s: %s", result.application.id, exc)

        granted = await self.service.grant_decision_role(result.application, request.action)
        LOGGER.info(
            "review_decision_recorded",
            extra={
                "application_id": granted.application.id,
                "action": request.action,
                "role_assigned": granted.role_assigned,
            },
        )

    async def _post_to_discord(self, application: Application) -> NotificationOutcome:
        if not self.gateway.ready:
            return NotificationOutcome.skipped("discord gateway not ready")

        channel_id = self.config.application_channel_id
        if not channel_id:
            return NotificationOutcome.skipped("no application channel configured")

        try:
            channel = await self.gateway.resolve_channel(channel_id)
        except (discord.DiscordException, asyncio.TimeoutError) as exc:
            LOGGER.error("Failed to resolve application channel %s: %s", channel_id, exc)
            return NotificationOutcome.skipped(f"channel lookup failed: {exc}")
        if channel is None:
            return NotificationOutcome.skipped("application channel is not messageable")

        try:
            message = await channel.send(
                embed=build_application_embed(application, self.texts),
                view=application_review_view(application, self.texts),
            )
        except discord.DiscordException as exc:
            LOGGER.error("Failed to post application %s: %s", application.id, exc)
            return NotificationOutcome.skipped(f"discord rejected the message: {exc}")

        message_id = getattr(message, "id", None)
        LOGGER.info(
            "application_posted",
            extra={"application_id": application.id, "message_id": message_id},
        )
        return NotificationOutcome.sent(message_id)

    async def _relay_to_slack(self, application: Application) -> None:
        if self.slack is None:
            return
        text = self.texts.slack_application_summary.format(
            type_name=application_type_name(application.type, self.texts),
            username=application.discord_username,
            application_id=application.id,
        )
        try:
            await self.slack.send_message(text)
        except UpstreamError as exc:
            LOGGER.warning("Slack relay failed for %s: %s", application.id, exc)
