"""
PyTest configuration and fixtures
"""
import os
import sys
import uuid
import pytest
import logging
from pathlib import Path
from fastapi.testclient import TestClient

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

# Disable logging during tests
logging.getLogger().setLevel(logging.WARNING)

# Set test environment variables (before the app reads its settings)
os.environ["ENVIRONMENT"] = "test"
os.environ["SUPABASE_URL"] = "https://project.supabase.test"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-role-key"
os.environ["SUPABASE_ANON_KEY"] = "anon-key"
os.environ["LLM_GATEWAY_API_KEY"] = "gateway-key"
os.environ["LLM_GATEWAY_URL"] = "https://gateway.test/v1/chat/completions"
os.environ["WIDGET_BASE_URL"] = "https://widget.sitewise.test"
os.environ["PUBLIC_API_URL"] = "https://api.sitewise.test"

from sitewise.main import app
from sitewise.database import get_supabase_admin
from sitewise.middleware.auth import get_current_user
from sitewise.models.widget import WidgetSettings
from sitewise.widget.protocol import MessageChannel

HOST_ORIGIN = "https://shop.example.com"


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Just enough of the supabase-py query builder for our tables"""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.operation = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.row_limit = None
        self.single = False

    def select(self, columns="*"):
        self.columns = columns
        return self

    def insert(self, row):
        self.operation = "insert"
        self.payload = row
        return self

    def update(self, values):
        self.operation = "update"
        self.payload = values
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def maybe_single(self):
        self.single = True
        return self

    def execute(self):
        self.db.queries.append(self)
        if self.db.failures:
            raise self.db.failures.pop(0)

        rows = self.db.tables.setdefault(self.table, [])
        matched = [r for r in rows if all(r.get(k) == v for k, v in self.filters)]

        if self.operation == "insert":
            row = {"id": str(uuid.uuid4()), **self.payload}
            rows.append(row)
            return FakeResponse([dict(row)])

        if self.operation == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse([dict(r) for r in matched])

        if self.columns != "*":
            names = [c.strip() for c in self.columns.split(",")]
            matched = [{name: row.get(name) for name in names} for row in matched]
        if self.row_limit is not None:
            matched = matched[:self.row_limit]

        if self.single:
            # supabase-py returns no response at all when nothing matched
            return FakeResponse(matched[0]) if matched else None
        return FakeResponse(matched)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.queries = []
        self.failures = []

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def client(fake_db):
    """
    Test client fixture for FastAPI app
    """
    app.dependency_overrides[get_supabase_admin] = lambda: fake_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client):
    """Client whose requests come from a signed-in dashboard user"""
    app.dependency_overrides[get_current_user] = lambda: {"user_id": "user-1", "email": "owner@example.com"}
    return client


class StaticSettings:
    def __init__(self, settings=None, error=None):
        self.settings = settings
        self.error = error
        self.requested = []

    async def fetch(self, widget_id):
        self.requested.append(widget_id)
        if self.error:
            raise self.error
        return self.settings


class ScriptedChat:
    """Chat source that replays fixed deltas, optionally waiting on a gate first"""

    def __init__(self, deltas=(), error=None, gate=None):
        self.deltas = list(deltas)
        self.error = error
        self.gate = gate
        self.calls = []

    async def stream_chat(self, messages, on_delta, on_done, on_error, system_prompt=None, widget_id=None):
        self.calls.append({
            "messages": list(messages),
            "system_prompt": system_prompt,
            "widget_id": widget_id,
        })
        if self.gate is not None:
            await self.gate.wait()
        for delta in self.deltas:
            on_delta(delta)
        if self.error:
            on_error(self.error)
        else:
            on_done()


@pytest.fixture
def posted():
    return []


@pytest.fixture
def channel(posted):
    return MessageChannel(lambda message, origin: posted.append((message, origin)), parent_origin=HOST_ORIGIN)


@pytest.fixture
def widget_settings():
    return WidgetSettings(
        header_title="Acme Support",
        welcome_message="Need a hand?",
        ai_instructions="Answer briefly.",
        position="bottom-right",
        widget_template="bubble",
        primary_color="#111827",
        text_color="#ffffff",
    )
