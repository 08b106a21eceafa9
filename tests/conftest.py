import os
import tempfile

# Settings worden bij import gelezen: env eerst zetten
_TMP = tempfile.mkdtemp(prefix="certiai-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/test.db"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.pop("SMTP_HOST", None)

from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient

from certiai.auth.jwt import create_access_token
from certiai.auth.passwords import hash_password
from certiai.db import Base, SessionLocal, engine
from certiai.models.user import User, UserRole
from certiai.services.auth_service import AccountService
from certiai.services.classifier_client import ClassifierConfig, ClassifierGateway
from certiai.services.storage import LocalStorage
from certiai.services.verification_service import VerificationPipeline


@pytest.fixture(scope="session", autouse=True)
def _create_test_db():
    # zorg dat modellen geladen zijn, anders kent Base de tabellen niet
    from certiai import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def anyio_backend():
    # Dwing anyio om alleen asyncio te gebruiken (geen Trio nodig)
    return "asyncio"


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


def _make_user(db, email=None, password="s3cret-pass") -> User:
    user = User(
        email=email or f"user-{uuid4().hex[:8]}@example.com",
        password_hash=hash_password(password),
        full_name="Test User",
        role=UserRole.INDIVIDUAL,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def make_user(db):
    return lambda **kw: _make_user(db, **kw)


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def other_user(make_user):
    return make_user()


class FakeClassifier:
    """
    Stand-in voor de ML service via httpx.MockTransport.
    `reply` is een dict (JSON body), een httpx.Response, een exception of
    een async callable die een van die drie oplevert.
    """

    def __init__(self):
        self.reply = {"confidence": 92.5, "authenticity": "AUTHENTIC", "details": {"checks": 3}}
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.reply
        if callable(reply):
            reply = await reply(request)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def gateway(classifier):
    return ClassifierGateway(
        ClassifierConfig(base_url="http://ml.test", timeout_seconds=30),
        transport=httpx.MockTransport(classifier),
    )


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "uploads"))


@pytest.fixture
def pipeline(gateway, storage):
    return VerificationPipeline(gateway, storage, session_factory=SessionLocal)


class RecordingMailer:
    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    def _record(self, kind, to_email, code):
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append((kind, to_email, code))

    def send_verification_email(self, to_email, code):
        self._record("verify", to_email, code)

    def send_password_reset_email(self, to_email, code):
        self._record("reset", to_email, code)

    def last_code(self, kind):
        return [c for k, _, c in self.sent if k == kind][-1]


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(pipeline, mailer):
    from certiai.main import app

    app.state.pipeline = pipeline
    app.state.accounts = AccountService(mailer, code_ttl_minutes=10)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(user):
    token = create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(other_user):
    token = create_access_token(user_id=other_user.id, email=other_user.email)
    return {"Authorization": f"Bearer {token}"}
