"""Pass-through relay that mirrors new applications to a Slack channel."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from .errors import UpstreamError

LOGGER = logging.getLogger(__name__)


class SlackRelay:
    def __init__(self, client: AsyncWebClient, channel_id: str) -> None:
        self._client = client
        self._channel_id = channel_id

    @classmethod
    def from_token(cls, token: Optional[str], channel_id: Optional[str]) -> Optional["SlackRelay"]:
        if not token or not channel_id:
            return None
        return cls(AsyncWebClient(token=token), channel_id)

    @property
    def channel_id(self) -> str:
        return self._channel_id

    async def send_message(self, text: str, **kwargs: Any) -> Optional[str]:
        """Post ``text`` to the configured channel and return the message timestamp."""

        try:
            response = await self._client.chat_postMessage(channel=self._channel_id, text=text, **kwargs)
        except SlackApiError as exc:
            error_code = exc.response.get("error") if getattr(exc, "response", None) else str(exc)
            LOGGER.warning("slack_post_failed", extra={"channel_id": self._channel_id, "error": error_code})
            raise UpstreamError(f"Slack rejected the message: {error_code}") from exc
        except (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
            LOGGER.warning("slack_post_failed", extra={"channel_id": self._channel_id, "error": str(exc)})
            raise UpstreamError("Slack is unreachable") from exc
        return response.get("ts")
