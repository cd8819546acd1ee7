"""
Streaming chat client tests
"""
import json
import httpx
import pytest

from sitewise.models.chat import ChatMessage
from sitewise.widget.stream_client import StreamingChatClient

ENDPOINT = "https://api.sitewise.test/api/chat"


class Recorder:
    def __init__(self):
        self.deltas = []
        self.done = 0
        self.errors = []

    def on_delta(self, delta):
        self.deltas.append(delta)

    def on_done(self):
        self.done += 1

    def on_error(self, message):
        self.errors.append(message)


def make_client(handler):
    return StreamingChatClient(
        ENDPOINT,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


async def run(chat_client, recorder, **kwargs):
    await chat_client.stream_chat(
        [ChatMessage(role="user", content="Hi")],
        on_delta=recorder.on_delta,
        on_done=recorder.on_done,
        on_error=recorder.on_error,
        **kwargs
    )


@pytest.mark.asyncio
async def test_delivers_each_delta_then_done():
    body = (
        b'data: {"content": "Hel"}\n\n'
        b'data: {"content": "lo"}\n\n'
        b'data: {"content": " world"}\n\n'
        b'data: [DONE]\n\n'
    )
    recorder = Recorder()
    await run(make_client(lambda request: httpx.Response(200, content=body)), recorder)

    assert recorder.deltas == ["Hel", "lo", " world"]
    assert recorder.done == 1
    assert recorder.errors == []


@pytest.mark.asyncio
async def test_request_body_includes_optional_fields():
    captured = []

    def handler(request):
        captured.append(json.loads(request.content))
        return httpx.Response(200, content=b"data: [DONE]\n\n")

    recorder = Recorder()
    await run(make_client(handler), recorder, system_prompt="Be brief", widget_id="w-1")

    assert captured == [{
        "messages": [{"role": "user", "content": "Hi"}],
        "widgetId": "w-1",
        "systemPrompt": "Be brief",
    }]


@pytest.mark.asyncio
async def test_optional_fields_omitted_when_absent():
    captured = []

    def handler(request):
        captured.append(json.loads(request.content))
        return httpx.Response(200, content=b"data: [DONE]\n\n")

    await run(make_client(handler), Recorder())
    assert captured == [{"messages": [{"role": "user", "content": "Hi"}]}]


@pytest.mark.asyncio
async def test_malformed_lines_are_skipped():
    body = (
        b'data: {"content": "a"}\n\n'
        b'data: garbage\n\n'
        b'data: {"other": 1}\n\n'
        b'data: {"content": "b"}\n\n'
        b'data: [DONE]\n\n'
    )
    recorder = Recorder()
    await run(make_client(lambda request: httpx.Response(200, content=body)), recorder)

    assert recorder.deltas == ["a", "b"]
    assert recorder.done == 1
    assert recorder.errors == []


@pytest.mark.asyncio
async def test_events_split_across_chunks():
    async def chunks():
        yield b'data: {"conte'
        yield b'nt": "Hel"}\n\ndata: {"content": "lo"}\n'
        yield b'\ndata: [DONE]\n\n'

    recorder = Recorder()
    await run(make_client(lambda request: httpx.Response(200, content=chunks())), recorder)

    assert recorder.deltas == ["Hel", "lo"]
    assert recorder.done == 1


@pytest.mark.asyncio
async def test_stream_ending_without_sentinel_completes():
    recorder = Recorder()
    body = b'data: {"content": "partial"}'
    await run(make_client(lambda request: httpx.Response(200, content=body)), recorder)

    assert recorder.deltas == ["partial"]
    assert recorder.done == 1


@pytest.mark.asyncio
async def test_nothing_after_done_sentinel_is_delivered():
    body = b'data: {"content": "a"}\n\ndata: [DONE]\n\ndata: {"content": "late"}\n\n'
    recorder = Recorder()
    await run(make_client(lambda request: httpx.Response(200, content=body)), recorder)

    assert recorder.deltas == ["a"]


@pytest.mark.asyncio
async def test_non_2xx_status_reports_error_once():
    recorder = Recorder()
    handler = lambda request: httpx.Response(429, json={"error": "Rate limits exceeded"})
    await run(make_client(handler), recorder)

    assert recorder.deltas == []
    assert recorder.done == 0
    assert len(recorder.errors) == 1
    assert "429" in recorder.errors[0]


@pytest.mark.asyncio
async def test_network_failure_reports_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    recorder = Recorder()
    await run(make_client(handler), recorder)

    assert recorder.done == 0
    assert len(recorder.errors) == 1


@pytest.mark.asyncio
async def test_failure_mid_stream_stops_callbacks():
    async def chunks():
        yield b'data: {"content": "Hel"}\n\n'
        raise httpx.ReadError("connection dropped")

    recorder = Recorder()
    await run(make_client(lambda request: httpx.Response(200, content=chunks())), recorder)

    assert recorder.deltas == ["Hel"]
    assert recorder.done == 0
    assert len(recorder.errors) == 1
