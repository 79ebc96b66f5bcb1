import os

# the application engine is built at import time; keep it off Postgres
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["VERIFICATION_BACKEND"] = "database"

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import otp_recovery.models  # noqa: E402,F401
from otp_recovery.core.database import Base, get_db  # noqa: E402
from otp_recovery.core.totp import generate_totp  # noqa: E402
from otp_recovery.main import app  # noqa: E402
from otp_recovery.models.user import User  # noqa: E402
from otp_recovery.schemas.verification import (VerificationRecord,  # noqa: E402
                                               VerificationType)
from otp_recovery.services.user_service import UserService  # noqa: E402
from otp_recovery.services.verification_service import \
    RecoveryVerificationService  # noqa: E402
from otp_recovery.services.verification_store import \
    SqlVerificationStore  # noqa: E402


@pytest.fixture(scope="function")
def engine(tmp_path):
    # file-backed so that several threads can open their own connections
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def user(db_session):
    user = User(email="kody@example.com", username="kody", name="Kody")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def store(db_session):
    return SqlVerificationStore(db_session)


@pytest.fixture(scope="function")
def service(store, db_session):
    return RecoveryVerificationService(store, UserService(db_session), window=50)


@pytest.fixture(scope="function")
def issue_record(store):
    """Persist a record whose otp is the current code for ``secret``"""
    def _issue(target, secret="ABC123", algorithm="SHA1", valid_seconds=30,
               otp=None, expires_at=None):
        if otp is None:
            otp = generate_totp(secret, algorithm, valid_seconds)
        if expires_at is None:
            expires_at = datetime.now(timezone.utc) + timedelta(minutes=10)
        store.create(VerificationRecord(
            kind=VerificationType.reset_password,
            target=target,
            otp=otp,
            secret=secret,
            algorithm=algorithm,
            valid_seconds=valid_seconds,
            expires_at=expires_at,
        ))
        return otp
    return _issue
