from datetime import timedelta
from decimal import Decimal
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import storage
from app.core.permissions import Principal
from app.core.security import create_access_token, hash_password
from app.core.timeutils import utcnow
from app.db.base import Base, get_db
from app.db.models.availability import Availability
from app.db.models.category import Category
from app.db.models.location import Location
from app.db.models.service import PricingUnit, Service
from app.db.models.user import User
from app.main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeStorage:
    def __init__(self):
        self.uploaded = []

    def upload_image(self, data, filename):
        self.uploaded.append((filename, data))
        return f"https://cdn.test/images/{len(self.uploaded)}-{filename}"


class FakeS3Client:
    def __init__(self, error=None):
        self.error = error
        self.objects = []

    def put_object(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.objects.append(kwargs)


def image_bytes(fmt="PNG", size=(4, 4)):
    buf = BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def fake_storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr(storage, "_storage", fake)
    return fake


def make_user(db, email, role="customer", name=None):
    user = User(
        email=email,
        name=name or email.split("@")[0],
        password_hash=hash_password("secret123"),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


def principal_of(user):
    return Principal(id=user.id, roles=frozenset({user.role}))


@pytest.fixture
def customer(db):
    return make_user(db, "customer@example.com")


@pytest.fixture
def other_customer(db):
    return make_user(db, "other@example.com")


@pytest.fixture
def provider(db):
    return make_user(db, "provider@example.com", role="provider")


@pytest.fixture
def other_provider(db):
    return make_user(db, "provider2@example.com", role="provider")


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", role="admin")


@pytest.fixture
def category(db):
    category = Category(name="Stays", description="Places to sleep", is_active=True)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def location(db):
    location = Location(city="Lisbon", country="Portugal", is_popular=True, is_active=True)
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


def make_service(db, provider, category, location, **overrides):
    fields = dict(
        title="Sea view flat",
        description="Two rooms near the beach",
        price=Decimal("100.00"),
        pricing_unit=PricingUnit.PER_DAY,
        capacity=4,
    )
    fields.update(overrides)
    service = Service(
        provider_id=provider.id,
        category_id=category.id,
        location_id=location.id,
        **fields,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def service(db, provider, category, location):
    return make_service(db, provider, category, location)


@pytest.fixture
def base_time():
    # a whole hour well in the future
    return utcnow().replace(minute=0, second=0, microsecond=0) + timedelta(days=30)


def open_window(db, service, start, end, is_available=True):
    window = Availability(
        service_id=service.id,
        start_datetime=start,
        end_datetime=end,
        is_available=is_available,
    )
    db.add(window)
    db.commit()
    db.refresh(window)
    return window
