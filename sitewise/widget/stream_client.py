"""Streaming client for the chat backend"""
import httpx
from typing import Callable, List, Optional, Dict, Any
import logging

from sitewise.models.chat import ChatMessage
from sitewise.utils.sse import SSEDecoder, DONE

logger = logging.getLogger(__name__)

DeltaCallback = Callable[[str], None]
DoneCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]


class ChatStreamError(Exception):
    """The chat backend could not be reached or answered with an error"""


def extract_content(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    content = payload.get("content")
    return content if isinstance(content, str) and content else None


class StreamingChatClient:
    """
    Sends a conversation to the chat backend and streams the reply back.

    Deltas are handed to the caller as they arrive; accumulating them into a
    full reply is the caller's job.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self._client = client
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def stream_chat(
        self,
        messages: List[ChatMessage],
        on_delta: DeltaCallback,
        on_done: DoneCallback,
        on_error: ErrorCallback,
        system_prompt: Optional[str] = None,
        widget_id: Optional[str] = None
    ) -> None:
        """
        Stream one reply.

        on_done fires once when the stream ends normally. on_error fires at
        most once, and after it nothing else fires.
        """
        payload: Dict[str, Any] = {"messages": [m.model_dump() for m in messages]}
        if widget_id:
            payload["widgetId"] = widget_id
        if system_prompt:
            payload["systemPrompt"] = system_prompt

        try:
            await self._stream(payload, on_delta)
        except (httpx.HTTPError, ChatStreamError) as e:
            logger.error(f"Chat stream failed: {e}")
            on_error(str(e) or "Failed to get response")
            return

        on_done()

    async def _stream(self, payload: Dict[str, Any], on_delta: DeltaCallback) -> None:
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            async with client.stream(
                "POST", self.endpoint, json=payload, headers=self._headers()
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise ChatStreamError(
                        f"Failed to get response (status {response.status_code})"
                    )

                decoder = SSEDecoder()
                async for chunk in response.aiter_text():
                    for event in decoder.feed(chunk):
                        if event is DONE:
                            return
                        content = extract_content(event)
                        if content:
                            on_delta(content)

                for event in decoder.flush():
                    if event is DONE:
                        return
                    content = extract_content(event)
                    if content:
                        on_delta(content)
        finally:
            if self._client is None:
                await client.aclose()
