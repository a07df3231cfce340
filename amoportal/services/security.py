"""Security helpers for admin credentials and session cookies."""
from __future__ import annotations

import asyncio
import hmac
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

LOGGER = logging.getLogger(__name__)


class EncryptionManager:
    """Handles encryption and decryption of session tokens."""

    def __init__(self, key: Optional[bytes] = None) -> None:
        if key is None:
            LOGGER.warning("No session secret configured; generated an ephemeral key")
            key = Fernet.generate_key()
        self._fernet = Fernet(key)
        self._lock = asyncio.Lock()

    async def encrypt(self, data: bytes) -> bytes:
        async with self._lock:
            return self._fernet.encrypt(data)

    async def decrypt(self, token: bytes) -> Optional[bytes]:
        async with self._lock:
            try:
                return self._fernet.decrypt(token)
            except InvalidToken:
                return None


class AdminAuthenticator:
    """Checks the configured admin credential pair and seals session ids."""

    def __init__(self, username: str, password: str, encryption: EncryptionManager) -> None:
        self._username = username
        self._password = password
        self._encryption = encryption

    def check_credentials(self, username: object, password: object) -> bool:
        if not isinstance(username, str) or not isinstance(password, str):
            return False
        username_ok = hmac.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        password_ok = hmac.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        return username_ok and password_ok

    async def seal(self, session_id: str) -> str:
        token = await self._encryption.encrypt(session_id.encode("utf-8"))
        return token.decode("ascii")

    async def unseal(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            raw = token.encode("ascii")
        except UnicodeEncodeError:
            return None
        decrypted = await self._encryption.decrypt(raw)
        if decrypted is None:
            return None
        return decrypted.decode("utf-8")
