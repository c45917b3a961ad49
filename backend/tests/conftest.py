import json
from datetime import datetime, timedelta, timezone

import httpx
import jwt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coach.auth.tokens import TokenSupplier
from coach.core.config import Settings
from coach.core.observability import ErrorReporter
from coach.core.time_utils import parse_iso, to_iso
from coach.db import Base
from coach.models.user_goal import UserGoal
from coach.services.data_client import ScopedClientFactory
from coach.services.goal_repository import GoalRepository

STORE_URL = "https://store.test"
ANON_KEY = "anon-key"
JWT_SECRET = "test-secret-for-session-tokens-0123456789"


def _json(status: int, body) -> httpx.Response:
    return httpx.Response(status, json=body)


def store_error(status: int, code: str, message: str) -> httpx.Response:
    return _json(status, {"code": code, "message": message, "details": None, "hint": None})


class FakeStore:
    """Minimal PostgREST stand-in for the user_goals table.

    Rows live in an in-memory SQLite database defined by the UserGoal model,
    so the unique user_id constraint is enforced like in Postgres.
    """

    def __init__(self):
        self.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine)
        self.requests: list[httpx.Request] = []
        # Canned responses (or exceptions) served before touching the table
        self.queued: list = []
        self.transport = httpx.MockTransport(self.handle)

    def queue(self, response_or_exc):
        self.queued.append(response_or_exc)

    def rows(self) -> list[UserGoal]:
        with self.Session() as db:
            return db.query(UserGoal).order_by(UserGoal.id).all()

    def add_row(self, user_id: str, minutes: int):
        with self.Session() as db:
            db.add(UserGoal(user_id=user_id, daily_goal_minutes=minutes))
            db.commit()

    @property
    def methods(self) -> list[str]:
        return [r.method for r in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.queued:
            item = self.queued.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

        assert request.url.path == "/rest/v1/user_goals", request.url.path
        filters = {
            k: v[3:] for k, v in request.url.params.items() if k != "select" and v.startswith("eq.")
        }
        with self.Session() as db:
            q = db.query(UserGoal)
            for col, val in filters.items():
                q = q.filter(getattr(UserGoal, col) == val)

            if request.method == "GET":
                rows = q.all()
                cols = request.url.params.get("select", "*")
                if request.headers.get("accept") == "application/vnd.pgrst.object+json":
                    if len(rows) != 1:
                        return store_error(
                            406,
                            "PGRST116",
                            "JSON object requested, multiple (or no) rows returned",
                        )
                    return _json(200, self._row(rows[0], cols))
                return _json(200, [self._row(r, cols) for r in rows])

            body = json.loads(request.content)
            if request.method == "POST":
                stamps = {
                    col: parse_iso(body[col]) for col in ("created_at", "updated_at") if body.get(col)
                }
                row = UserGoal(
                    user_id=body["user_id"],
                    daily_goal_minutes=body["daily_goal_minutes"],
                    **stamps,
                )
                db.add(row)
                try:
                    db.commit()
                except IntegrityError as e:
                    db.rollback()
                    code = "23505" if "UNIQUE" in str(e.orig).upper() else "23514"
                    return store_error(409, code, str(e.orig))
                db.refresh(row)
                return _json(201, [self._row(row)])

            if request.method == "PATCH":
                rows = q.all()
                for r in rows:
                    for col, val in body.items():
                        if col in ("created_at", "updated_at"):
                            val = parse_iso(val)
                        setattr(r, col, val)
                db.commit()
                return _json(200, [self._row(r) for r in rows])

        return store_error(405, "PGRST000", f"unsupported method {request.method}")

    @staticmethod
    def _row(row: UserGoal, cols: str = "*") -> dict:
        data = {
            "id": row.id,
            "user_id": row.user_id,
            "daily_goal_minutes": row.daily_goal_minutes,
            "created_at": to_iso(row.created_at),
            "updated_at": to_iso(row.updated_at),
        }
        if cols == "*":
            return data
        return {c: data[c] for c in cols.split(",")}


class FakeSession:
    """Identity session handing out numbered tokens."""

    def __init__(self, user_id: str = "user_1"):
        self.user_id = user_id
        self.calls = 0
        self.error: Exception | None = None
        self.signed_out = False

    def get_token(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.signed_out:
            return None
        return f"token-{self.user_id}-{self.calls}"


class RecordingReporter(ErrorReporter):
    def __init__(self):
        self.events: list[tuple] = []
        super().__init__(sinks=[lambda event, exc, ctx: self.events.append((event, exc, ctx))])

    @property
    def event_names(self) -> list[str]:
        return [e[0] for e in self.events]


class FixedClock:
    def __init__(self, start=datetime(2025, 5, 24, 8, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def make_token(sub: str = "user_1", sid: str = "sess_1", secret: str = JWT_SECRET, **extra) -> str:
    claims = {
        "sub": sub,
        "sid": sid,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        **extra,
    }
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def clients(store):
    return ScopedClientFactory(STORE_URL, ANON_KEY, transport=store.transport)


@pytest.fixture
def repo(session, clients, reporter, clock):
    return GoalRepository(TokenSupplier(session, reporter), clients, reporter, clock=clock)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        supabase_url=STORE_URL,
        supabase_anon_key=ANON_KEY,
        clerk_secret_key="sk_test",
        clerk_jwt_secret=JWT_SECRET,
    )


@pytest.fixture
def api(store, session, clients, test_settings):
    """TestClient with the identity session and data store replaced by fakes."""
    from fastapi.testclient import TestClient

    from coach.api.deps import get_client_factory
    from coach.auth.dependencies import get_session_provider, get_settings
    from coach.main import app

    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_session_provider] = lambda: session
    app.dependency_overrides[get_client_factory] = lambda: clients
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}
