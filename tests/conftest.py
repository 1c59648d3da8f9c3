import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal.core.cache import cache
from portal.db.base import Base
from portal.dependencies.db import get_db
from portal.main import app
from portal.services.token_service import create_access_token
from tests.factories import STUDENT_EMAIL, STUDENT_UID, make_student

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
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


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    # lifespan(Firebase 초기화)을 돌리지 않도록 컨텍스트 매니저 없이 생성
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client):
    token = create_access_token({"sub": STUDENT_UID, "email": STUDENT_EMAIL})
    client.cookies.set("access_token", token)
    return client


@pytest.fixture
def student(db):
    return make_student(db)
