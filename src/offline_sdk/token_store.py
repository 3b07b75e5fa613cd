# token_store.py

import json
import logging
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger("offline_sdk.token_store")


class TokenStore:
    """Abstract interface for access token storage."""

    async def load(self) -> dict | None:
        raise NotImplementedError

    async def save(self, access_token: str, expires_at: Optional[float] = None):
        raise NotImplementedError

    async def clear(self):
        """Clears the stored token"""
        raise NotImplementedError


def _is_live(data: dict) -> bool:
    expires_at = data.get("expires_at")
    return expires_at is None or time.time() < expires_at


class MemoryTokenStore(TokenStore):
    """Keeps the token for the lifetime of the process only."""

    def __init__(self):
        self._data: dict | None = None

    async def load(self) -> dict | None:
        if self._data and _is_live(self._data):
            return dict(self._data)
        return None

    async def save(self, access_token: str, expires_at: Optional[float] = None):
        self._data = {"access_token": access_token, "expires_at": expires_at}

    async def clear(self):
        self._data = None


class FileTokenStore(TokenStore):
    def __init__(self, path: Path):
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    async def load(self) -> dict | None:
        logger.debug(f"Attempting to load token from: {self.path}")
        if not self.path.exists():
            logger.debug("Token file does not exist")
            return None
        try:
            data: dict = json.loads(self.path.read_text())
            if "access_token" in data:
                if _is_live(data):
                    logger.debug("Valid stored token found")
                    return data
                else:
                    logger.debug("Stored token is expired")
            else:
                logger.debug("Stored token data is invalid")
        except (json.JSONDecodeError, OSError) as e:
            logger.debug(f"Failed to load token file: {e}")
            return None
        return None

    async def save(self, access_token: str, expires_at: Optional[float] = None):
        data = {"access_token": access_token, "expires_at": expires_at}
        try:
            logger.debug(f"Saving token to: {self.path}")
            self.path.write_text(json.dumps(data))
            logger.debug("Token saved successfully")
        except OSError as e:
            logger.warning(f"Failed to save token: {e}")

    async def clear(self):
        """Clears the stored token"""
        try:
            if self.path.exists():
                self.path.unlink()
                logger.debug("Token file cleared")
        except OSError as e:
            logger.warning(f"Failed to clear token file: {e}")
