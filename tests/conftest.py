import os
import tempfile

# Provide minimal env for Settings validation during import.
_DB_DIR = tempfile.mkdtemp(prefix="mediator-tests-")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")
os.environ.setdefault("DB_DRIVER_NAME", "sqlite")
os.environ.setdefault("DB_DATABASE_NAME", os.path.join(_DB_DIR, "mediator.db"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("API_KEY", "sk-test")
os.environ.setdefault("INIT_MODE", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from langchain_core.messages import AIMessage  # noqa: E402

import mediator.database.entities  # noqa: E402,F401
from mediator.database.config.connection_engine import connection_engine, metadata  # noqa: E402
from mediator.mediation.llm_gateway import LLMGateway, RetryPolicy  # noqa: E402

PASSWORD = "Sup3r$ecret"


class FakeChatModel:
    """Stands in for ChatOpenAI: records prompts and replays scripted outcomes."""

    def __init__(self, outcomes=None, default="Fake completion"):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return AIMessage(content=outcome)
        return AIMessage(content=self.default)

    @property
    def prompts(self):
        return [m[0].content for m in self.calls]


@pytest.fixture(autouse=True)
def reset_db():
    metadata.drop_all(connection_engine)
    metadata.create_all(connection_engine)
    yield


@pytest.fixture
def fake_model():
    return FakeChatModel()


@pytest.fixture
def gateway(fake_model):
    return LLMGateway(fake_model, RetryPolicy(max_attempts=3, base_delay=0.0), sleep=lambda _: None)


@pytest.fixture
def app(gateway):
    from mediator.main import app as fastapi_app
    from mediator.api.utils import get_llm_gateway

    fastapi_app.state.rate_limiter = None
    fastapi_app.dependency_overrides[get_llm_gateway] = lambda: gateway
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.rate_limiter = None


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register(client, email, full_name):
    res = client.post("/auth/register", json={"email": email, "password": PASSWORD, "full_name": full_name})
    assert res.status_code == 200, res.text
    return res.json()


def login_headers(client, email):
    res = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert res.status_code == 200, res.text
    # rely on explicit bearer headers so two users can share one client
    client.cookies.clear()
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest.fixture
def party_a(client):
    user = register(client, "alex@example.com", "Alex Doe")
    return {"user": user, "headers": login_headers(client, "alex@example.com")}


@pytest.fixture
def party_b(client):
    user = register(client, "blair@example.com", "Blair Roe")
    return {"user": user, "headers": login_headers(client, "blair@example.com")}


@pytest.fixture
def active_case(client, party_a, party_b):
    """A case with both parties joined, both contexts in and status active."""
    case = client.post(
        "/cases",
        json={"title": "Shared fence repair", "description": "Who pays for the fence", "type": "personal"},
        headers=party_a["headers"],
    ).json()
    token = client.post(f"/cases/{case['id']}/invite", json={"invite_email": "blair@example.com"}, headers=party_a["headers"]).json()[
        "invite_token"
    ]
    assert client.post(f"/invites/{token}/join", headers=party_b["headers"]).status_code == 200
    client.post(
        f"/cases/{case['id']}/context",
        json={"background_text": "Fence fell in the storm", "goals_text": "Split the cost", "sensitivity_level": "normal"},
        headers=party_a["headers"],
    )
    client.post(
        f"/cases/{case['id']}/context",
        json={"background_text": "The fence was already old", "goals_text": "Pay less", "sensitivity_level": "low"},
        headers=party_b["headers"],
    )
    res = client.post(f"/cases/{case['id']}/activate", headers=party_a["headers"])
    assert res.status_code == 200, res.text
    return case
