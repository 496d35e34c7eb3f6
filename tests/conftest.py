import os
from datetime import date
from types import SimpleNamespace

import pytest

os.environ.setdefault("LIBRARY_DB", "sqlite://")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from library_api.core.database import Base, get_db
from library_api.main import app


@pytest.fixture
def db_session():
    # Fresh in-memory database per test
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False},
                           poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_loan(loan_date, return_date=None, user_id=1, book_id=1):
    return SimpleNamespace(loan_date=loan_date, return_date=return_date,
                           user_id=user_id, book_id=book_id)


@pytest.fixture
def loan_factory():
    return make_loan


@pytest.fixture
def closed_loan():
    return make_loan(date(2023, 1, 10), date(2023, 3, 15))
