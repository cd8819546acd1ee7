"""
Host page <-> widget iframe message channel.

Inbound (host -> widget):  {"type": "<prefix>-open" | "<prefix>-close" | "<prefix>-toggle"}
Outbound (widget -> host): {"type": "<prefix>-resize", "width": int, "height": int}

There is no acknowledgement: outbound messages are fire-and-forget, and
inbound messages from origins outside the allow-list are dropped.
"""
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional
import logging

logger = logging.getLogger(__name__)

# post(message, target_origin)
PostMessage = Callable[[Dict[str, Any], str], None]


class WidgetCommand(str, Enum):
    OPEN = "open"
    CLOSE = "close"
    TOGGLE = "toggle"

    def apply(self, is_open: bool) -> bool:
        """Open/closed state after this command"""
        if self is WidgetCommand.OPEN:
            return True
        if self is WidgetCommand.CLOSE:
            return False
        return not is_open


class MessageChannel:
    """
    Origin-checked channel to the window embedding the widget.

    Args:
        post: delivers a message to the parent window
        parent_origin: origin of the host page; outbound messages target it
        allowed_origins: origins whose commands are honoured, defaults to
            just the parent origin
        prefix: namespace for message types
    """

    def __init__(
        self,
        post: PostMessage,
        parent_origin: str,
        allowed_origins: Optional[Iterable[str]] = None,
        prefix: str = "sitewise"
    ):
        self._post = post
        self.parent_origin = parent_origin
        self.allowed_origins = frozenset(
            allowed_origins if allowed_origins is not None else [parent_origin]
        )
        self.prefix = prefix

    def message_type(self, name: str) -> str:
        return f"{self.prefix}-{name}"

    def parse_command(self, data: Any, origin: str) -> Optional[WidgetCommand]:
        """Return the command carried by an inbound message, or None to ignore it"""
        if origin not in self.allowed_origins:
            logger.debug(f"Ignoring message from unexpected origin {origin!r}")
            return None
        if not isinstance(data, dict):
            return None

        message_type = data.get("type")
        for command in WidgetCommand:
            if message_type == self.message_type(command.value):
                return command
        return None

    def post_resize(self, width: int, height: int) -> None:
        message = {"type": self.message_type("resize"), "width": width, "height": height}
        try:
            self._post(message, self.parent_origin)
        except Exception as e:
            # The parent may already be gone; nothing to recover
            logger.warning(f"Failed to notify parent of resize: {e}")
