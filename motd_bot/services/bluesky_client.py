# motd_bot/services/bluesky_client.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import aiohttp

from .errors import BlueskyError

logger = logging.getLogger(__name__)

# app.bsky.feed.post text limit (graphemes; counted here as code points)
MAX_POST_LENGTH = 300


def post_url(uri: str) -> str:
    """at://did/app.bsky.feed.post/rkey -> https://bsky.app/profile/did/post/rkey"""
    parts = uri.removeprefix("at://").split("/")
    if len(parts) != 3:
        return uri
    did, _collection, rkey = parts
    return f"https://bsky.app/profile/{did}/post/{rkey}"


class BlueskyClient:
    """
    Minimal AT Protocol client: app-password session + feed post creation.
    Docs: https://docs.bsky.app/docs/api/com-atproto-repo-create-record
    """

    def __init__(
        self,
        handle: str,
        app_password: str,
        *,
        service: str = "https://bsky.social",
        timeout: float = 15,
    ):
        self.handle = handle.strip()
        self.app_password = app_password.strip()
        self.service = service.rstrip("/")
        self.timeout = timeout

    @property
    def is_enabled(self) -> bool:
        return bool(self.handle and self.app_password)

    async def _post(
        self,
        session: aiohttp.ClientSession,
        method: str,
        payload: Dict[str, Any],
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = f"{self.service}/xrpc/{method}"
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        async with session.post(url, json=payload, headers=headers) as resp:
            if resp.status != 200:
                body = await resp.text()
                raise BlueskyError(f"{method} failed: HTTP {resp.status}: {body[:200]}", resp.status)
            try:
                data = await resp.json()
            except ValueError as e:
                raise BlueskyError(f"{method} returned invalid JSON: {e}", resp.status) from e
        if not isinstance(data, dict):
            raise BlueskyError(f"{method} returned {type(data).__name__}, expected an object", resp.status)
        return data

    async def publish(self, text: str) -> str:
        """Create a post and return its at:// URI."""
        if not self.is_enabled:
            raise BlueskyError("Bluesky credentials are not configured")

        if len(text) > MAX_POST_LENGTH:
            text = text[: MAX_POST_LENGTH - 1] + "…"

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                auth = await self._post(
                    session,
                    "com.atproto.server.createSession",
                    {"identifier": self.handle, "password": self.app_password},
                )
                record = {
                    "$type": "app.bsky.feed.post",
                    "text": text,
                    "createdAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                }
                created = await self._post(
                    session,
                    "com.atproto.repo.createRecord",
                    {"repo": auth["did"], "collection": "app.bsky.feed.post", "record": record},
                    token=auth["accessJwt"],
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BlueskyError(f"Bluesky request failed: {e}") from e
        except (KeyError, TypeError) as e:
            raise BlueskyError(f"Unexpected Bluesky response: {e!r}") from e

        uri = created.get("uri")
        if not uri:
            raise BlueskyError("Bluesky did not return a post URI")
        logger.info(f"Published Bluesky post {uri}")
        return uri
