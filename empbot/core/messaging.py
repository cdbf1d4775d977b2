"""
LINE Messaging API reply client.
"""

from typing import Any, Dict, Optional

import httpx

from . import config
from .errors import MessagingError
from ..api.schemas import Reply
from ..util.logging import logger

REPLY_PATH = "/v2/bot/message/reply"


class LineMessagingClient:
    """Sends one reply message per reply token.

    A single ``httpx.AsyncClient`` is shared by all concurrent events.
    """

    def __init__(self, channel_access_token: Optional[str] = None, api_base: Optional[str] = None,
                 timeout: Optional[float] = None, client: Optional[httpx.AsyncClient] = None):
        line_config = config.get_line_config()
        self.channel_access_token = channel_access_token if channel_access_token is not None else line_config["channel_access_token"]
        self.api_base = (api_base or line_config["api_base"]).rstrip("/")
        self.timeout = timeout or line_config["timeout"]
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def build_payload(self, reply_token: str, message: Reply) -> Dict[str, Any]:
        return {
            "replyToken": reply_token,
            "messages": [message.model_dump(by_alias=True)],
        }

    async def reply(self, reply_token: str, message: Reply) -> None:
        """Send ``message`` as the reply to ``reply_token``.

        Raises MessagingError when the platform does not accept it.
        """
        if not reply_token:
            raise MessagingError("Missing reply token")

        try:
            response = await self.client.post(
                f"{self.api_base}{REPLY_PATH}",
                json=self.build_payload(reply_token, message),
                headers={"Authorization": f"Bearer {self.channel_access_token}"},
            )
        except httpx.HTTPError as e:
            raise MessagingError(f"Reply request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"LINE reply rejected: {response.status_code} {response.text[:200]}")
            raise MessagingError(
                f"Reply rejected with status {response.status_code}",
                status_code=response.status_code,
            )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
