from datetime import date
from typing import List, Optional

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import travelle.models  # noqa: F401
from travelle.main import app
from travelle.models import City, Country, Place, Category, place_categories
from travelle.schemas.user import AuthSession
from travelle.services.auth_service import AuthService
from travelle.services.email import EmailProvider, EmailProviderError, OutgoingEmail, SendReceipt
from travelle.services.notification_service import NotificationService, get_notification_service
from travelle.services.session_store import SessionStore
from travelle.utils.database import Base, get_db
from travelle.utils.redis import get_redis

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

FRONTEND_URL = "http://app.test"


class RecordingProvider(EmailProvider):
    """Keeps every message instead of sending it; can be told to fail"""

    name = "recording"

    def __init__(self):
        super().__init__("noreply@travelle.test", "Travelle")
        self.sent: List[OutgoingEmail] = []
        self.fail_with: Optional[str] = None

    async def send(self, email: OutgoingEmail) -> SendReceipt:
        if self.fail_with:
            raise EmailProviderError(self.name, self.fail_with)
        self.sent.append(email)
        return SendReceipt(provider_name=self.name, message_id=f"msg-{len(self.sent)}")

    def subjects(self) -> List[str]:
        return [email.subject for email in self.sent]


@pytest.fixture
async def engine():
    engine = create_async_engine(SQLALCHEMY_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def mailer():
    return RecordingProvider()


@pytest.fixture
def notifications(mailer):
    return NotificationService(provider=mailer, frontend_url=FRONTEND_URL)


@pytest.fixture
def sessions(redis_client):
    return SessionStore(redis_client)


@pytest.fixture
def auth(db, sessions, notifications):
    return AuthService(db, sessions, notifications)


@pytest.fixture
async def alice(auth) -> AuthSession:
    return await auth.register("alice", "Alice Liddell", "alice@example.com", "wonderland")


@pytest.fixture
async def catalog_data(db):
    """
    Two countries, three cities, four places:
    the Eiffel Tower and the Louvre are ~3.3 km apart, Lyon is ~390 km south.
    """
    france = Country(id=1, name="France", flag="fr.png")
    spain = Country(id=2, name="Spain", flag="es.png")
    paris = City(id=10, name="Paris", country_id=1)
    lyon = City(id=11, name="Lyon", country_id=1)
    madrid = City(id=20, name="Madrid", country_id=2)

    eiffel = Place(
        id=100, name="Eiffel Tower", description="Wrought-iron tower", price=25.5, rating=4.7,
        latitude=48.8584, longitude=2.2945, image1="eiffel1.jpg", image2="eiffel2.jpg", city_id=10,
    )
    louvre = Place(
        id=101, name="Louvre Museum", description="Art museum", price=17.0, rating=4.8,
        latitude=48.8606, longitude=2.3376, image1="louvre.jpg", city_id=10,
    )
    fourviere = Place(
        id=110, name="Basilica of Fourviere", price=0, rating=4.6,
        latitude=45.7623, longitude=4.8228, city_id=11,
    )
    prado = Place(
        id=200, name="Prado Museum", price=15.0, rating=4.7,
        latitude=40.4138, longitude=-3.6921, city_id=20,
    )
    museum = Category(id=1, name="Museum")
    landmark = Category(id=2, name="Landmark")

    db.add_all([france, spain, paris, lyon, madrid, eiffel, louvre, fourviere, prado, museum, landmark])
    await db.flush()
    await db.execute(place_categories.insert().values([
        {"place_id": 100, "category_id": 2},
        {"place_id": 101, "category_id": 1},
        {"place_id": 101, "category_id": 2},
        {"place_id": 200, "category_id": 1},
    ]))
    await db.commit()
    return {"eiffel": 100, "louvre": 101, "fourviere": 110, "prado": 200}


@pytest.fixture
async def client(session_factory, redis_client, notifications):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_redis():
        return redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_notification_service] = lambda: notifications

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(session: AuthSession) -> dict:
    return {"Authorization": f"Bearer {session.token}"}


TODAY = date(2024, 6, 10)
