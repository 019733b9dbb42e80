import os

os.environ.setdefault("SQLALCHEMY_DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PAYMOB_API_KEY", "test-paymob-api-key")
os.environ.setdefault("PAYMOB_CARD_INTEGRATION_ID", "5237776")
os.environ.setdefault("PAYMOB_VOUCHER_INTEGRATION_ID", "5237777")
os.environ.setdefault("PAYMOB_CARD_IFRAME_ID", "949862")
os.environ.setdefault("PAYMOB_VOUCHER_IFRAME_ID", "949863")
os.environ.setdefault("PAYMOB_HMAC_SECRET", "test-hmac-secret")
os.environ.setdefault("PAYMOB_ENVIRONMENT", "production")
os.environ.setdefault("PAYMOB_REDIRECT_URL", "https://academy.example.com/courses")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import SQLModel, Session

from coursepay.config import settings
from coursepay.database import engine, get_session
from coursepay.main import app
from coursepay.models import Course, Profile
from coursepay.services.paymob_client import PaymobClient, get_paymob_client

PAYMOB_HOST = "https://accept.paymob.com/api"


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = str(body)

    def json(self):
        return self._body


class FakePaymobHttp:
    """Stands in for requests.Session; answers by Paymob API path."""

    def __init__(self):
        self.calls = []
        self.routes = {
            "/auth/tokens": (201, {"token": "auth-token"}),
            "/ecommerce/orders": (201, {"id": 123, "amount_cents": 9900}),
            "/acceptance/payment_keys": (201, {"token": "pay-key-abc"}),
            "/ecommerce/orders/transaction_inquiry": (200, {}),
        }

    def post(self, url, json=None, headers=None, timeout=None):
        path = url[len(PAYMOB_HOST):]
        self.calls.append({"path": path, "json": json, "headers": headers, "timeout": timeout})
        status_code, body = self.routes[path]
        if isinstance(body, Exception):
            raise body
        return FakeResponse(status_code, body)

    def paths(self):
        return [c["path"] for c in self.calls]


@pytest.fixture
def session():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def paymob_http():
    return FakePaymobHttp()


@pytest.fixture
def gateway(paymob_http):
    return PaymobClient(http=paymob_http)


@pytest.fixture
def client(session, gateway):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_paymob_client] = lambda: gateway
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def student(session):
    user = Profile(id="student-1", email="mona@example.com", full_name="Mona Ahmed Hassan")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def other_student(session):
    user = Profile(id="student-2", email="karim@example.com", full_name="Karim")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin(session):
    user = Profile(id="admin-1", email="admin@example.com", full_name="Site Admin", role="admin")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def course(session):
    course = Course(
        id="course-paid",
        title_en="Arabic Grammar Essentials",
        title_ar="أساسيات النحو العربي",
        short_description_en="Grammar from the ground up",
        price=99.0,
        is_published=True,
    )
    session.add(course)
    session.commit()
    session.refresh(course)
    return course


@pytest.fixture
def free_course(session):
    course = Course(
        id="course-free",
        title_en="Intro to Tajweed",
        title_ar="مقدمة في التجويد",
        price=0,
        is_published=True,
    )
    session.add(course)
    session.commit()
    session.refresh(course)
    return course


@pytest.fixture
def draft_course(session):
    course = Course(
        id="course-draft",
        title_en="Unreleased",
        title_ar="غير منشور",
        price=150.0,
        is_published=False,
    )
    session.add(course)
    session.commit()
    session.refresh(course)
    return course


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = jwt.encode(
            {"sub": user.id, "exp": datetime.utcnow() + timedelta(hours=1)},
            settings.secret_key,
            algorithm=settings.algorithm,
        )
        return {"Authorization": f"Bearer {token}"}
    return _headers
