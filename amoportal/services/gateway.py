"""Discord gateway connection used for membership checks and role grants."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

import discord

from ..config import DiscordConfig
from ..ui.embeds import DecisionRequest, parse_custom_id
from .errors import (
    ConfigurationError,
    GatewayUnavailableError,
    MemberNotFoundError,
    UpstreamError,
)

LOGGER = logging.getLogger(__name__)

UNVERIFIED_USER_ID = "unverified"

DecisionHandler = Callable[[discord.Interaction, DecisionRequest], Awaitable[None]]


@dataclass(frozen=True)
class VerifiedMember:
    user_id: str
    username: str
    display_name: Optional[str] = None
    fallback: bool = False


def member_tag(member: Any) -> Optional[str]:
    discriminator = getattr(member, "discriminator", None)
    if not discriminator or discriminator == "0":
        return None
    return f"{member.name}#{discriminator}"


def match_member(members: Iterable[Any], handle: str) -> Optional[Any]:
    """Return the first member whose username, tag or display name equals ``handle``.

    Username matches win over tag matches, which win over display names.
    """

    candidates = list(members)
    for key in (
        lambda member: getattr(member, "name", None),
        member_tag,
        lambda member: getattr(member, "display_name", None),
    ):
        for member in candidates:
            if key(member) == handle:
                return member
    return None


def build_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.guilds = True
    intents.members = True
    return intents


class GuildGateway(discord.Client):
    def __init__(self, config: DiscordConfig) -> None:
        super().__init__(intents=build_intents())
        self.config = config
        self._decision_handler: Optional[DecisionHandler] = None

    @property
    def ready(self) -> bool:
        return self.is_ready()

    def set_decision_handler(self, handler: DecisionHandler) -> None:
        self._decision_handler = handler

    async def on_ready(self) -> None:
        LOGGER.info("Discord gateway ready as %s", self.user)

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        if interaction.type != discord.InteractionType.component:
            return
        data = interaction.data or {}
        request = parse_custom_id(data.get("custom_id"))
        if request is None or self._decision_handler is None:
            return
        try:
            await self._decision_handler(interaction, request)
        except Exception:
            LOGGER.exception(
                "Failed to handle review decision",
                extra={"application_id": request.application_id, "action": request.action},
            )

    async def verify_member(self, handle: str) -> VerifiedMember:
        if not self.ready:
            if self.config.allow_unverified_fallback:
                LOGGER.warning("Discord gateway is not ready; accepting %s without verification", handle)
                return VerifiedMember(user_id=UNVERIFIED_USER_ID, username=handle, fallback=True)
            raise GatewayUnavailableError("Discord gateway is not ready")

        if not self.config.guild_id:
            LOGGER.warning("No guild id configured; membership verification disabled")
            raise ConfigurationError("discord.guild_id is not configured")

        try:
            guild = await self._fetch_guild()
            members = await asyncio.wait_for(self._collect_members(guild), self.config.request_timeout)
        except (discord.HTTPException, asyncio.TimeoutError) as exc:
            LOGGER.error("Failed to fetch guild members: %s", exc)
            raise UpstreamError("guild member lookup failed") from exc

        member = match_member(members, handle)
        if member is None:
            raise MemberNotFoundError(f"No guild member matches {handle!r}")

        return VerifiedMember(
            user_id=str(member.id),
            username=member.name,
            display_name=getattr(member, "display_name", None),
        )

    async def assign_role(self, user_id: str | int, role_id: int) -> None:
        if not self.ready:
            raise GatewayUnavailableError("Discord gateway is not ready")
        if not self.config.guild_id:
            raise ConfigurationError("discord.guild_id is not configured")

        try:
            guild = await self._fetch_guild()
            member = await asyncio.wait_for(guild.fetch_member(int(user_id)), self.config.request_timeout)
            await asyncio.wait_for(
                member.add_roles(discord.Object(id=int(role_id)), reason="Application reviewed"),
                self.config.request_timeout,
            )
        except (discord.HTTPException, asyncio.TimeoutError, ValueError) as exc:
            LOGGER.error("Failed to assign role %s to %s: %s", role_id, user_id, exc)
            raise UpstreamError(f"role assignment failed for {user_id}") from exc
        LOGGER.info("role_assigned", extra={"user_id": str(user_id), "role_id": str(role_id)})

    async def resolve_channel(self, channel_id: int) -> Optional[discord.abc.Messageable]:
        channel = self.get_channel(channel_id)
        if channel is None:
            channel = await asyncio.wait_for(self.fetch_channel(channel_id), self.config.request_timeout)
        if not isinstance(channel, discord.abc.Messageable):
            return None
        return channel

    async def _collect_members(self, guild: discord.Guild) -> list:
        return [member async for member in guild.fetch_members(limit=None)]

    async def _fetch_guild(self) -> discord.Guild:
        guild_id = int(self.config.guild_id)
        guild = self.get_guild(guild_id)
        if guild is None:
            guild = await asyncio.wait_for(self.fetch_guild(guild_id), self.config.request_timeout)
        return guild


__all__ = [
    "GuildGateway",
    "UNVERIFIED_USER_ID",
    "VerifiedMember",
    "build_intents",
    "match_member",
    "member_tag",
]
