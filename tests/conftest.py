"""Shared fixtures: a throwaway SQLite database and entity factories."""

from __future__ import annotations

import os
import sys
import tempfile
from datetime import timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "urbansprout_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DISCOUNT_SCHEDULER_ENABLED"] = "false"

from urbansprout.domain.entities import (  # noqa: E402
    ROLE_ADMIN,
    ROLE_USER,
    ApplicableTo,
    Discount,
    DiscountKind,
    Product,
    User,
)
from urbansprout.infrastructure import database, models  # noqa: E402,F401
from urbansprout.infrastructure.repositories import (  # noqa: E402
    DiscountRepository,
    ProductRepository,
    UserRepository,
)
from urbansprout.infrastructure.security import create_user_token  # noqa: E402
from urbansprout.utils import now_utc  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    """Give every test empty tables."""

    database.Base.metadata.drop_all(bind=database.engine)
    database.initialize_database()
    yield
    database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def session_factory():
    return database.SessionLocal


@pytest.fixture
def db_session():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    counter = iter(range(1, 10_000))

    def factory(
        name: str = "Gardener", *, role: str = ROLE_USER, is_active: bool = True
    ) -> User:
        number = next(counter)
        return UserRepository(db_session).create(
            User(
                id=None,
                name=f"{name} {number}",
                email=f"user{number}@example.com",
                role=role,
                is_active=is_active,
            )
        )

    return factory


@pytest.fixture
def make_admin(make_user):
    def factory(name: str = "Admin", *, is_active: bool = True) -> User:
        return make_user(name, role=ROLE_ADMIN, is_active=is_active)

    return factory


@pytest.fixture
def make_product(db_session):
    def factory(
        name: str = "Trowel",
        *,
        category: str = "Tools",
        price: float = 100.0,
        published: bool = True,
        archived: bool = False,
    ) -> Product:
        return ProductRepository(db_session).create(
            Product(
                id=None,
                name=name,
                category=category,
                regular_price=price,
                published=published,
                archived=archived,
            )
        )

    return factory


@pytest.fixture
def make_discount(db_session):
    """Persist a discount without going through the create use case."""

    def factory(**overrides) -> Discount:
        now = now_utc()
        values = {
            "id": None,
            "name": "Spring sale",
            "kind": DiscountKind.PERCENTAGE,
            "value": 10.0,
            "applicable_to": ApplicableTo.ALL,
            "start_at": now - timedelta(hours=1),
            "end_at": now + timedelta(hours=1),
        }
        values.update(overrides)
        return DiscountRepository(db_session).create(Discount(**values))

    return factory


@pytest.fixture
def token_for():
    def factory(user: User) -> str:
        return create_user_token(user.id, user.role)

    return factory


@pytest.fixture
def load_product(session_factory):
    def loader(product_id: int) -> Product:
        with database.session_scope(session_factory) as session:
            return ProductRepository(session).get(product_id)

    return loader


@pytest.fixture
def load_discount(session_factory):
    def loader(discount_id: int) -> Discount | None:
        with database.session_scope(session_factory) as session:
            return DiscountRepository(session).get(discount_id)

    return loader


class FakeChannel:
    """Stand-in for a websocket that records outgoing messages."""

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    async def send_json(self, data) -> None:
        if self.fail:
            raise RuntimeError("channel closed")
        self.sent.append(data)

    def events(self) -> list[str]:
        return [message["type"] for message in self.sent]


@pytest.fixture
def fake_channel():
    return FakeChannel
