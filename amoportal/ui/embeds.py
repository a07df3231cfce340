"""Discord embeds, review buttons and the button custom-id codec."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import discord

from ..localization import ARABIC_TEXTS, TextPack
from ..services.storage import APPLICATION_TYPES, Application

DECISION_ACTIONS: tuple[str, ...] = ("accept", "reject")

EMBED_FIELD_VALUE_LIMIT = 1024
EMBED_FIELD_LIMIT = 25

TYPE_COLORS: dict[str, int] = {
    "admin": 0x5865F2,
    "script": 0x57F287,
    "hacks": 0xED4245,
}
DEFAULT_COLOR = 0x99AAB5
ACCEPT_COLOR = 0x57F287
REJECT_COLOR = 0xED4245

BOOLEAN_FIELDS = frozenset({"responsibility"})


@dataclass(frozen=True)
class DecisionRequest:
    action: str
    type: str
    application_id: str


def encode_custom_id(action: str, type: str, application_id: str) -> str:
    return f"{action}_{type}_{application_id}"


def parse_custom_id(custom_id: str | None) -> Optional[DecisionRequest]:
    if not custom_id:
        return None
    parts = custom_id.split("_", 2)
    if len(parts) != 3:
        return None
    action, type, application_id = parts
    if action not in DECISION_ACTIONS or type not in APPLICATION_TYPES or not application_id:
        return None
    return DecisionRequest(action=action, type=type, application_id=application_id)


def application_type_name(type: str, texts: TextPack | None = None) -> str:
    text_pack = texts or ARABIC_TEXTS
    return text_pack.application_type_names.get(type, type)


def application_color(type: str) -> int:
    return TYPE_COLORS.get(type, DEFAULT_COLOR)


def format_field_value(key: str, value: object, texts: TextPack | None = None) -> str:
    text_pack = texts or ARABIC_TEXTS
    if value is None:
        return ""
    if key in BOOLEAN_FIELDS:
        return text_pack.yes if value is True or value == "true" else text_pack.no
    if isinstance(value, bool):
        return text_pack.yes if value else text_pack.no
    return str(value).strip()


def build_application_embed(application: Application, texts: TextPack | None = None) -> discord.Embed:
    text_pack = texts or ARABIC_TEXTS
    type_name = application_type_name(application.type, text_pack)
    embed = discord.Embed(
        title=text_pack.embed_title.format(type_name=type_name),
        color=application_color(application.type),
        timestamp=application.created_at,
    )
    embed.add_field(name=text_pack.embed_username_label, value=application.discord_username, inline=True)
    embed.add_field(name=text_pack.embed_type_label, value=type_name, inline=True)
    embed.add_field(name=text_pack.embed_id_label, value=application.id, inline=True)

    for key, value in application.form_data.items():
        if len(embed.fields) >= EMBED_FIELD_LIMIT:
            break
        if value is None or value == "":
            continue
        display_value = format_field_value(key, value, text_pack)
        if not display_value:
            continue
        embed.add_field(
            name=text_pack.application_field_labels.get(key, key),
            value=display_value[:EMBED_FIELD_VALUE_LIMIT],
            inline=False,
        )
    return embed


def application_review_view(application: Application, texts: TextPack | None = None) -> discord.ui.View:
    text_pack = texts or ARABIC_TEXTS
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Button(
            label=text_pack.review_buttons["accept"],
            style=discord.ButtonStyle.success,
            emoji="✅",
            custom_id=encode_custom_id("accept", application.type, application.id),
        )
    )
    view.add_item(
        discord.ui.Button(
            label=text_pack.review_buttons["reject"],
            style=discord.ButtonStyle.danger,
            emoji="❌",
            custom_id=encode_custom_id("reject", application.type, application.id),
        )
    )
    return view


def build_decision_embed(
    original: Optional[discord.Embed],
    action: str,
    reviewer_id: int,
    reviewed_at: datetime,
    texts: TextPack | None = None,
) -> discord.Embed:
    text_pack = texts or ARABIC_TEXTS
    embed = discord.Embed(
        title=original.title if original else None,
        color=ACCEPT_COLOR if action == "accept" else REJECT_COLOR,
        timestamp=reviewed_at,
    )
    if original:
        for embed_field in original.fields:
            if len(embed.fields) >= EMBED_FIELD_LIMIT - 2:
                break
            embed.add_field(name=embed_field.name, value=embed_field.value, inline=embed_field.inline)

    action_text = text_pack.decision_action_texts.get(action, action)
    embed.add_field(
        name=text_pack.embed_decision_label,
        value=text_pack.embed_decision_value.format(action=action_text, user_id=reviewer_id),
        inline=False,
    )
    embed.add_field(
        name=text_pack.embed_reviewed_at_label,
        value=f"<t:{int(reviewed_at.timestamp())}:F>",
        inline=False,
    )
    return embed
