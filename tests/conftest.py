"""Fixtures: a fresh temp-file SQLite database per test, plus an API client bound to it."""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOYALTY_BCRYPT_ROUNDS"] = "4"
os.environ["LOYALTY_STORAGE_RETRY_BACKOFF"] = "0.001"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from loyalty_card.db import Base, get_db, make_engine
from loyalty_card.main import app
from loyalty_card.services.credential_service import create_admin
from loyalty_card.services.identity_service import register_customer
from loyalty_card.services.store_owner_service import create_store_owner


OWNER_PASSWORD = "scent-shop-pass"
OTHER_OWNER_PASSWORD = "perfume-hub-pass"
ADMIN_PASSWORD = "admin-pass"


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'loyalty.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def store_owner(db):
    return create_store_owner(
        db,
        email="owner@scentshop.test",
        password=OWNER_PASSWORD,
        store_name="Scent Shop",
        name="John Smith",
    )


@pytest.fixture
def other_store_owner(db):
    return create_store_owner(
        db,
        email="owner@perfumehub.test",
        password=OTHER_OWNER_PASSWORD,
        store_name="Perfume Hub",
        name="Sarah Johnson",
    )


@pytest.fixture
def admin(db):
    return create_admin(db, "root", ADMIN_PASSWORD)


@pytest.fixture
def customer(db):
    return register_customer(db, barcode="LC0000001")


@pytest.fixture
def store_customer(db, store_owner):
    return register_customer(db, barcode="LC0000100", store_owner_id=store_owner.id)
