from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests
from fastapi.testclient import TestClient

from quizforge.auth import require_user
from quizforge.main import app, limiter
from quizforge.services.llm import GenerationClient, get_generation_client
from quizforge.settings import settings


# ---------- fake HTTP ----------

class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", json_data: Any = None):
        self.status_code = status_code
        self.text = text
        self._json = json_data

    def json(self):
        if self._json is None:
            raise ValueError("no JSON body")
        return self._json


class FakeWeb:
    """Stands in for requests.get. Routes match on URL plus a subset of query params."""

    def __init__(self):
        self.routes: List[Tuple[str, Dict[str, str], Any]] = []
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def add(self, url: str, response: Any, **params: str) -> "FakeWeb":
        self.routes.append((url, params, response))
        return self

    def __call__(self, url, params=None, **kwargs):
        params = dict(params or {})
        self.calls.append((url, params))
        for route_url, match, response in self.routes:
            if route_url == url and all(params.get(k) == v for k, v in match.items()):
                if isinstance(response, Exception):
                    raise response
                return response
        raise requests.ConnectionError(f"no fake route for {url} {params}")

    def called(self, url: str) -> bool:
        return any(u == url for u, _ in self.calls)


@pytest.fixture
def web(monkeypatch):
    fake = FakeWeb()
    monkeypatch.setattr(requests, "get", fake)
    return fake


# ---------- fake model API ----------

class FakeCompletions:
    def __init__(self, script: Dict[str, Any]):
        self.script = script
        self.calls: List[str] = []

    async def create(self, *, model, messages, **kwargs):
        self.calls.append(model)
        outcome = self.script[model]
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))])


class FakeOpenAI:
    def __init__(self, script: Dict[str, Any]):
        self.chat = SimpleNamespace(completions=FakeCompletions(script))

    async def close(self):
        pass


def scripted_client(script: Dict[str, Any], models: Optional[List[str]] = None) -> GenerationClient:
    """Real GenerationClient whose transport answers from `script` (model -> text | exception)."""
    client = GenerationClient(api_key="test-key", models=models or list(script))
    client._client = FakeOpenAI(script)
    return client


@pytest.fixture
def scripted():
    return scripted_client


# ---------- app ----------

@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    monkeypatch.setattr(settings, "LLM_API_KEY", None)
    limiter.enabled = False


@pytest.fixture
def client():
    app.dependency_overrides[require_user] = lambda: "user-1"
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def use_generation_client():
    """Route generation endpoints through a given client."""
    def _use(gen_client: GenerationClient):
        app.dependency_overrides[get_generation_client] = lambda: gen_client
    yield _use
    app.dependency_overrides.pop(get_generation_client, None)


# ---------- fake supabase ----------

PRIMARY_KEYS = {"games": "game_id", "levels": "level_id", "balloon_type": "balloon_id"}
# parent table -> (child table, child column, parent column), ON DELETE CASCADE
CASCADES = {
    "games": [("levels", "game_id", "game_id")],
    "levels": [("box_question_answer", "level_id", "level_id"), ("balloon_type", "level_id", "level_id")],
    "balloon_type": [("balloon_answer", "balloon_id", "balloon_id")],
}


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload: Any = None
        self.filters: List[Any] = []
        self.ordering: Optional[Tuple[str, bool]] = None
        self.row_limit: Optional[int] = None
        self.single = False

    def select(self, *columns):
        self.action = "select"
        return self

    def insert(self, rows):
        self.action, self.payload = "insert", rows
        return self

    def update(self, values):
        self.action, self.payload = "update", values
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, lambda v: v == value))
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append((column, lambda v: v in values))
        return self

    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    def maybe_single(self):
        self.single = True
        return self

    def execute(self):
        return self.db.run(self)


class FakeSupabase:
    """In-memory tables with serial keys, cascading deletes and injectable failures."""

    def __init__(self):
        self.rows: Dict[str, List[dict]] = {}
        self.log: List[Tuple[str, str]] = []
        self.fail_on: set = set()
        self._serial = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def run(self, q: FakeQuery):
        self.log.append((q.table, q.action))
        if (q.table, q.action) in self.fail_on:
            raise RuntimeError(f"{q.action} on {q.table} failed")
        rows = self.rows.setdefault(q.table, [])

        if q.action == "insert":
            created = []
            for row in q.payload if isinstance(q.payload, list) else [q.payload]:
                self._serial += 1
                stored = {**row, PRIMARY_KEYS.get(q.table, "id"): self._serial, "created_at": self._serial}
                rows.append(stored)
                created.append(dict(stored))
            return SimpleNamespace(data=created)

        matched = [r for r in rows if all(test(r.get(col)) for col, test in q.filters)]
        if q.action == "update":
            for r in matched:
                r.update(q.payload)
            return SimpleNamespace(data=[dict(r) for r in matched])
        if q.action == "delete":
            self._delete(q.table, matched)
            return SimpleNamespace(data=[dict(r) for r in matched])

        out = [dict(r) for r in matched]
        if q.ordering:
            column, desc = q.ordering
            out.sort(key=lambda r: r[column], reverse=desc)
        if q.row_limit is not None:
            out = out[: q.row_limit]
        if q.single:
            return SimpleNamespace(data=out[0]) if out else None
        return SimpleNamespace(data=out)

    def _delete(self, table: str, doomed: List[dict]) -> None:
        self.rows[table] = [r for r in self.rows.get(table, []) if not any(r is d for d in doomed)]
        for child, column, parent_column in CASCADES.get(table, []):
            keys = {d[parent_column] for d in doomed}
            self._delete(child, [r for r in self.rows.get(child, []) if r.get(column) in keys])

    def count(self, table: str) -> int:
        return len(self.rows.get(table, []))


@pytest.fixture
def fake_db(monkeypatch):
    from quizforge.services import db

    fake = FakeSupabase()
    monkeypatch.setattr(db, "_supabase", fake)
    return fake
