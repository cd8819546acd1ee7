"""
Embeddable widget controller.

Owns the conversation and the open/closed state, picks the template from
the widget's settings, talks to the host page over a MessageChannel and
drives the streaming chat client.

Nothing here raises into the caller: settings failures leave the widget
unrendered, chat failures show an apology in the conversation and unknown
or foreign host messages are ignored.
"""
from typing import Callable, Optional, Protocol
import logging

from sitewise.models.chat import ChatMessage
from sitewise.models.widget import WidgetPosition, WidgetSettings, WidgetTemplate
from sitewise.widget.protocol import MessageChannel
from sitewise.widget.rendering import render_template
from sitewise.widget.sizing import frame_size
from sitewise.widget.state import APOLOGY_MESSAGE, AssistantAccumulator, WidgetState
from sitewise.widget.templates.base import Element, TemplateProps

logger = logging.getLogger(__name__)


class SettingsSource(Protocol):
    async def fetch(self, widget_id: str) -> WidgetSettings: ...


class ChatSource(Protocol):
    async def stream_chat(self, messages, on_delta, on_done, on_error,
                          system_prompt=None, widget_id=None) -> None: ...


class WidgetController:

    def __init__(
        self,
        widget_id: Optional[str],
        settings_source: SettingsSource,
        chat_source: ChatSource,
        channel: MessageChannel,
        on_change: Optional[Callable[["WidgetController"], None]] = None
    ):
        self.widget_id = widget_id
        self.state = WidgetState()
        self.settings: Optional[WidgetSettings] = None
        self.template = WidgetTemplate.BUBBLE
        self.position = WidgetPosition.BOTTOM_RIGHT
        self.channel = channel
        self._settings_source = settings_source
        self._chat_source = chat_source
        self._on_change = on_change
        self._last_footprint = None

    @property
    def loaded(self) -> bool:
        return self.settings is not None

    async def load(self) -> bool:
        """Fetch settings once for this page load; False leaves the widget unrendered"""
        if not self.widget_id:
            logger.warning("Widget ID is required")
            return False

        try:
            settings = await self._settings_source.fetch(self.widget_id)
        except Exception as e:
            logger.error(f"Failed to load widget {self.widget_id}: {e}")
            return False

        self.apply_settings(settings)
        return True

    def apply_settings(self, settings: WidgetSettings) -> None:
        self.settings = settings
        self.template = WidgetTemplate.resolve(settings.widget_template)
        self.position = WidgetPosition.resolve(settings.position)
        self._changed()

    # -- state transitions ---------------------------------------------------

    def set_is_open(self, is_open: bool) -> None:
        self.state.is_open = bool(is_open)
        self._changed()

    def set_prompt_value(self, value: str) -> None:
        self.state.prompt_value = value or ""
        self._changed()

    def set_show_bubble_message(self, show: bool) -> None:
        self.state.show_bubble_message = bool(show)
        self._changed()

    def handle_message(self, data, origin: str) -> bool:
        """Apply a host page command; returns whether it was accepted"""
        command = self.channel.parse_command(data, origin)
        if command is None:
            return False
        self.set_is_open(command.apply(self.state.is_open))
        return True

    async def send_message(self) -> bool:
        """
        Send the current prompt and stream the reply into the conversation.

        Returns False without doing anything when the prompt is blank or a
        reply is still streaming: only one reply may accumulate at a time.
        """
        state = self.state
        prompt = state.prompt_value.strip()
        if not prompt or state.is_loading:
            return False

        state.messages.append(ChatMessage(role="user", content=prompt))
        history = list(state.messages)
        state.prompt_value = ""
        state.is_loading = True
        self._changed()

        accumulator = AssistantAccumulator(state.messages)
        outcome = {"finished": False}

        def on_delta(delta: str) -> None:
            if outcome["finished"]:
                return
            accumulator.add(delta)
            self._changed()

        def on_done() -> None:
            outcome["finished"] = True
            state.is_loading = False

        def on_error(message: str) -> None:
            if outcome["finished"]:
                return
            outcome["finished"] = True
            logger.error(f"Chat error: {message}")
            state.messages.append(ChatMessage(role="assistant", content=APOLOGY_MESSAGE))
            state.is_loading = False

        try:
            await self._chat_source.stream_chat(
                history,
                on_delta=on_delta,
                on_done=on_done,
                on_error=on_error,
                system_prompt=self.settings.ai_instructions if self.settings else None,
                widget_id=self.widget_id
            )
        except Exception as e:
            on_error(str(e))
        finally:
            state.is_loading = False
            self._changed()

        return True

    # -- rendering -----------------------------------------------------------

    def props(self) -> TemplateProps:
        settings = self.settings or WidgetSettings()
        state = self.state
        return TemplateProps(
            is_open=state.is_open,
            messages=list(state.messages),
            prompt_value=state.prompt_value,
            is_loading=state.is_loading,
            header_title=settings.header_title,
            welcome_message=settings.welcome_message,
            primary_color=settings.primary_color,
            text_color=settings.text_color,
            position=self.position,
            show_bubble_message=state.show_bubble_message,
            set_is_open=self.set_is_open,
            set_prompt_value=self.set_prompt_value,
            handle_send_message=self.send_message,
            set_show_bubble_message=self.set_show_bubble_message,
        )

    def render(self) -> Optional[Element]:
        if not self.loaded:
            return None
        try:
            return render_template(self.template, self.props())
        except Exception as e:
            logger.error(f"Failed to render widget {self.widget_id}: {e}")
            return None

    def _changed(self) -> None:
        self._sync_frame()
        if self._on_change is not None:
            try:
                self._on_change(self)
            except Exception as e:
                logger.error(f"Widget change listener failed: {e}")

    def _sync_frame(self) -> None:
        """Tell the host about the new footprint whenever it changes"""
        if not self.loaded:
            return
        footprint = (self.template, self.state.is_open, self.state.show_bubble_message)
        if footprint == self._last_footprint:
            return
        self._last_footprint = footprint
        size = frame_size(*footprint)
        self.channel.post_resize(size.width, size.height)
