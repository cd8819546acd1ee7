"""Conversation and open/closed state owned by the widget controller"""
from dataclasses import dataclass, field
from typing import List, Optional

from sitewise.models.chat import ChatMessage

APOLOGY_MESSAGE = "Sorry, I encountered an error. Please try again."


@dataclass
class WidgetState:
    is_open: bool = False
    # Teaser bubble; only shown while closed
    show_bubble_message: bool = True
    is_loading: bool = False
    prompt_value: str = ""
    # Append-only for the page lifetime, except the streaming assistant entry
    messages: List[ChatMessage] = field(default_factory=list)

    @property
    def awaiting_first_delta(self) -> bool:
        return self.is_loading and bool(self.messages) and self.messages[-1].role == "user"


class AssistantAccumulator:
    """
    Builds one assistant reply from streamed deltas.

    The reply is added to the message list on the first delta and replaced
    in place on every later one, so a reply is always a single entry.
    """

    def __init__(self, messages: List[ChatMessage]):
        self._messages = messages
        self._index: Optional[int] = None
        self.content = ""

    @property
    def started(self) -> bool:
        return self._index is not None

    def add(self, delta: str) -> None:
        if not delta:
            return
        self.content += delta
        message = ChatMessage(role="assistant", content=self.content)

        if self._index is None:
            if self._messages and self._messages[-1].role == "assistant":
                self._index = len(self._messages) - 1
                self._messages[self._index] = message
            else:
                self._messages.append(message)
                self._index = len(self._messages) - 1
        else:
            self._messages[self._index] = message
