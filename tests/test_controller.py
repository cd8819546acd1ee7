"""
Widget controller tests
"""
import asyncio
import httpx
import pytest

from conftest import HOST_ORIGIN, ScriptedChat, StaticSettings
from sitewise.models.widget import WidgetSettings, WidgetTemplate
from sitewise.widget.controller import WidgetController
from sitewise.widget.state import APOLOGY_MESSAGE
from sitewise.widget.stream_client import StreamingChatClient


async def loaded_controller(channel, settings, chat=None, widget_id="w-1"):
    controller = WidgetController(
        widget_id,
        StaticSettings(settings),
        chat or ScriptedChat(["Hi"]),
        channel
    )
    assert await controller.load()
    return controller


@pytest.mark.asyncio
async def test_missing_widget_id_renders_nothing(channel, posted, widget_settings):
    source = StaticSettings(widget_settings)
    controller = WidgetController(None, source, ScriptedChat(), channel)

    assert await controller.load() is False
    assert controller.render() is None
    assert source.requested == []
    assert posted == []


@pytest.mark.asyncio
async def test_settings_failure_renders_nothing(channel, posted):
    controller = WidgetController("w-1", StaticSettings(error=RuntimeError("404")), ScriptedChat(), channel)

    assert await controller.load() is False
    assert controller.render() is None
    assert posted == []


@pytest.mark.asyncio
async def test_load_posts_initial_closed_size(channel, posted, widget_settings):
    await loaded_controller(channel, widget_settings)

    message, origin = posted[-1]
    assert origin == HOST_ORIGIN
    assert message == {"type": "sitewise-resize", "width": 300, "height": 180}


@pytest.mark.asyncio
async def test_commands_from_foreign_origin_are_ignored(channel, posted, widget_settings):
    controller = await loaded_controller(channel, widget_settings)
    before = len(posted)

    for command in ("sitewise-open", "sitewise-toggle", "sitewise-open"):
        assert controller.handle_message({"type": command}, "https://evil.example.com") is False

    assert controller.state.is_open is False
    assert len(posted) == before


@pytest.mark.asyncio
async def test_open_close_toggle_commands(channel, widget_settings):
    controller = await loaded_controller(channel, widget_settings)

    controller.handle_message({"type": "sitewise-open"}, HOST_ORIGIN)
    assert controller.state.is_open is True
    controller.handle_message({"type": "sitewise-open"}, HOST_ORIGIN)
    assert controller.state.is_open is True
    controller.handle_message({"type": "sitewise-close"}, HOST_ORIGIN)
    assert controller.state.is_open is False

    for _ in range(3):
        before = controller.state.is_open
        controller.handle_message({"type": "sitewise-toggle"}, HOST_ORIGIN)
        assert controller.state.is_open is (not before)


@pytest.mark.asyncio
async def test_unknown_messages_are_ignored(channel, widget_settings):
    controller = await loaded_controller(channel, widget_settings)

    assert controller.handle_message({"type": "other-open"}, HOST_ORIGIN) is False
    assert controller.handle_message("sitewise-open", HOST_ORIGIN) is False
    assert controller.handle_message(None, HOST_ORIGIN) is False
    assert controller.state.is_open is False


@pytest.mark.asyncio
@pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
async def test_blank_prompt_is_not_sent(channel, widget_settings, prompt):
    chat = ScriptedChat(["Hi"])
    controller = await loaded_controller(channel, widget_settings, chat)
    controller.set_prompt_value(prompt)

    assert await controller.send_message() is False
    assert controller.state.messages == []
    assert chat.calls == []


@pytest.mark.asyncio
async def test_send_while_loading_is_a_no_op(channel, widget_settings):
    gate = asyncio.Event()
    chat = ScriptedChat(["Hi"], gate=gate)
    controller = await loaded_controller(channel, widget_settings, chat)

    controller.set_prompt_value("first")
    first = asyncio.create_task(controller.send_message())
    await asyncio.sleep(0)
    assert controller.state.is_loading is True

    controller.set_prompt_value("second")
    assert await controller.send_message() is False

    gate.set()
    assert await first is True
    assert len(chat.calls) == 1
    assert [m.content for m in controller.state.messages] == ["first", "Hi"]
    assert controller.state.prompt_value == "second"


@pytest.mark.asyncio
async def test_send_streams_into_single_assistant_message(channel, widget_settings):
    chat = ScriptedChat(["Hel", "lo", " world"])
    controller = await loaded_controller(channel, widget_settings, chat)
    controller.set_prompt_value("  Hello?  ")

    assert await controller.send_message() is True

    messages = controller.state.messages
    assert [(m.role, m.content) for m in messages] == [
        ("user", "Hello?"),
        ("assistant", "Hello world"),
    ]
    assert controller.state.is_loading is False
    assert controller.state.prompt_value == ""


@pytest.mark.asyncio
async def test_send_passes_history_and_settings(channel, widget_settings):
    chat = ScriptedChat(["One"])
    controller = await loaded_controller(channel, widget_settings, chat)

    controller.set_prompt_value("first")
    await controller.send_message()
    controller.set_prompt_value("second")
    await controller.send_message()

    last_call = chat.calls[-1]
    assert [(m.role, m.content) for m in last_call["messages"]] == [
        ("user", "first"),
        ("assistant", "One"),
        ("user", "second"),
    ]
    assert last_call["system_prompt"] == "Answer briefly."
    assert last_call["widget_id"] == "w-1"


@pytest.mark.asyncio
async def test_error_before_any_delta_appends_apology(channel, widget_settings):
    chat = ScriptedChat([], error="Failed to get response (status 500)")
    controller = await loaded_controller(channel, widget_settings, chat)
    controller.set_prompt_value("hello")

    await controller.send_message()

    messages = controller.state.messages
    assert len(messages) == 2
    assert messages[-1].role == "assistant"
    assert messages[-1].content == APOLOGY_MESSAGE
    assert controller.state.is_loading is False


@pytest.mark.asyncio
async def test_error_after_partial_reply_keeps_it_and_apologises(channel, widget_settings):
    chat = ScriptedChat(["Hel"], error="connection dropped")
    controller = await loaded_controller(channel, widget_settings, chat)
    controller.set_prompt_value("hello")

    await controller.send_message()

    messages = controller.state.messages
    assert [(m.role, m.content) for m in messages] == [
        ("user", "hello"),
        ("assistant", "Hel"),
        ("assistant", APOLOGY_MESSAGE),
    ]
    assert controller.state.is_loading is False


@pytest.mark.asyncio
async def test_chat_source_raising_still_ends_cleanly(channel, widget_settings):
    class Exploding:
        async def stream_chat(self, *args, **kwargs):
            raise RuntimeError("boom")

    controller = await loaded_controller(channel, widget_settings, Exploding())
    controller.set_prompt_value("hello")

    assert await controller.send_message() is True
    assert controller.state.messages[-1].content == APOLOGY_MESSAGE
    assert controller.state.is_loading is False


@pytest.mark.asyncio
async def test_with_real_stream_client(channel, widget_settings):
    body = (
        b'data: {"content": "Hel"}\n\n'
        b'data: {"content": "lo"}\n\n'
        b'data: {"content": " world"}\n\n'
        b'data: [DONE]\n\n'
    )
    chat = StreamingChatClient(
        "https://api.sitewise.test/api/chat",
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, content=body)))
    )
    controller = await loaded_controller(channel, widget_settings, chat)
    controller.set_prompt_value("Hi")

    await controller.send_message()

    assistant = [m for m in controller.state.messages if m.role == "assistant"]
    assert len(assistant) == 1
    assert assistant[0].content == "Hello world"


@pytest.mark.asyncio
@pytest.mark.parametrize("template", ["bubble", "panel", "chatgpt"])
@pytest.mark.parametrize("position", ["bottom-right", "bottom-left", "top-right", "top-left"])
@pytest.mark.parametrize("teaser", [True, False])
async def test_opening_always_grows_the_frame(channel, posted, template, position, teaser):
    settings = WidgetSettings(widget_template=template, position=position)
    controller = await loaded_controller(channel, settings)
    controller.set_show_bubble_message(teaser)
    closed = posted[-1][0]

    controller.set_is_open(True)
    opened = posted[-1][0]

    assert opened["type"] == "sitewise-resize"
    assert opened["width"] > closed["width"]
    assert opened["height"] > closed["height"]


@pytest.mark.asyncio
async def test_resize_only_when_footprint_changes(channel, posted, widget_settings):
    controller = await loaded_controller(channel, widget_settings)
    before = len(posted)

    controller.set_prompt_value("typing")
    controller.set_is_open(False)
    assert len(posted) == before

    controller.set_show_bubble_message(False)
    assert len(posted) == before + 1
    assert posted[-1][0]["width"] == 88


@pytest.mark.asyncio
async def test_unknown_template_falls_back_to_bubble(channel):
    settings = WidgetSettings(widget_template="carousel")
    controller = await loaded_controller(channel, settings)

    assert controller.template is WidgetTemplate.BUBBLE
    tree = controller.render()
    assert tree.attrs["data-template"] == "bubble"


@pytest.mark.asyncio
async def test_chatgpt_enter_while_closed_opens_and_sends(channel):
    settings = WidgetSettings(widget_template="chatgpt", position="bottom-left")
    gate = asyncio.Event()
    chat = ScriptedChat(["We open at 9."], gate=gate)
    controller = await loaded_controller(channel, settings, chat)

    tree = controller.render()
    tree.find("bar-input").handlers["input"]("What are your hours?")
    tree = controller.render()
    pending = tree.find("bar-input").handlers["keydown"]("Enter")
    task = asyncio.ensure_future(pending)
    await asyncio.sleep(0)

    assert controller.state.is_open is True
    assert controller.state.messages[-1].role == "user"
    assert controller.state.messages[-1].content == "What are your hours?"
    tree = controller.render()
    assert tree.attrs["data-state"] == "open"
    assert tree.find("typing-indicator") is not None

    gate.set()
    await task

    tree = controller.render()
    assert tree.find("typing-indicator") is None
    assert controller.state.messages[-1].content == "We open at 9."


@pytest.mark.asyncio
async def test_newest_message_carries_scroll_anchor(channel, widget_settings):
    controller = await loaded_controller(channel, widget_settings, ScriptedChat(["Reply"]))
    controller.set_is_open(True)
    controller.set_prompt_value("hello")
    await controller.send_message()

    tree = controller.render()
    anchored = [node for node in tree.iter() if node.attrs.get("data-scroll") == "bottom"]
    assert len(anchored) == 1
    assert "Reply" in anchored[0].text()
