"""Shared test fixtures.

Every test gets a fresh in-memory SQLite database so tests are fully isolated.
External collaborators (Claude, email/push webhooks, content service) are
replaced by in-process fakes; nothing here touches the network.
"""

from datetime import datetime
from types import SimpleNamespace
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

import hakikisha.models  # noqa: F401  register all models with Base.metadata
from hakikisha.config import Settings
from hakikisha.database import Base, utcnow
from hakikisha.domain.similarity import similarity_hash
from hakikisha.models.claim import ClaimModel
from hakikisha.models.user import UserModel
from tests.fixtures.fakes import FakeLLMClient
from tests.fixtures.workflow import build_workflow


@pytest.fixture()
def db_engine():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(db_engine) -> Session:
    session = sessionmaker(bind=db_engine)()
    yield session
    session.close()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite:///:memory:",
        anthropic_api_key="test-key",
        job_retry_initial_delay=0.0,
        job_retry_max_delay=0.0,
        worker_poll_interval=0.0,
    )


@pytest.fixture()
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


# ── Users ────────────────────────────────────────────────────────────────


def _user(db: Session, email: str, role: str = "user", **kwargs) -> UserModel:
    user = UserModel(email=email, username=email.split("@")[0], role=role, **kwargs)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def submitter(db: Session) -> UserModel:
    return _user(db, "amina@example.com")


@pytest.fixture()
def fact_checker(db: Session) -> UserModel:
    return _user(db, "baraka@example.com", role="fact_checker")


@pytest.fixture()
def second_fact_checker(db: Session) -> UserModel:
    return _user(db, "chebet@example.com", role="fact_checker")


@pytest.fixture()
def admin(db: Session) -> UserModel:
    return _user(db, "daudi@example.com", role="admin")


@pytest.fixture()
def make_user(db: Session):
    def factory(email: str, role: str = "user", **kwargs) -> UserModel:
        return _user(db, email, role=role, **kwargs)
    return factory


# ── Claims ───────────────────────────────────────────────────────────────


@pytest.fixture()
def make_claim(db: Session, submitter: UserModel):
    """Insert a claim directly, bypassing intake."""

    def factory(
        text: str = "Vaccines cause infertility",
        *,
        status: str = "pending",
        category: str = "health",
        priority: str = "medium",
        submitter_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
        **kwargs,
    ) -> ClaimModel:
        created_at = created_at or utcnow()
        group_hash = kwargs.pop("similarity_hash", None) or similarity_hash(text[:100], text)
        claim = ClaimModel(
            submitter_id=submitter_id or submitter.id,
            title=text[:100],
            description=text,
            category=category,
            priority=priority,
            status=status,
            similarity_hash=group_hash,
            created_at=created_at,
            updated_at=created_at,
            **kwargs,
        )
        db.add(claim)
        db.commit()
        db.refresh(claim)
        return claim

    return factory


@pytest.fixture()
def wf(db: Session, settings: Settings, fake_llm: FakeLLMClient) -> SimpleNamespace:
    return build_workflow(db, settings, llm=fake_llm)
