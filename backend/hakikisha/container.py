"""Dependency Injection Container.

Centralized definition of every workflow dependency using dependency-injector.
All repositories and services resolved from one container share a single
scoped session, so a service's commit covers the repositories it was given.

Usage::

    from hakikisha.container import AppContainer

    container = AppContainer()
    container.init_resources()  # create tables, open the session

    intake = container.intake_service()
    worker = container.claim_worker()
    worker.run(max_jobs=50)

    container.shutdown_resources()
"""

from pathlib import Path

from dependency_injector import containers, providers

from hakikisha.clients.channel_client import EmailChannelClient, PushChannelClient
from hakikisha.clients.content_client import ContentServiceClient
from hakikisha.clients.llm_client import LLMClient
from hakikisha.config import Settings
from hakikisha.database import Base, build_engine, build_session_factory
from hakikisha.engines.ai_response_parser import AIResponseParser
from hakikisha.engines.similarity_detector import SimilarityDetector
from hakikisha.engines.trending_detector import TrendingDetector
from hakikisha.prompts.manager import PromptManager
from hakikisha.repositories.ai_verdict_repo import AIVerdictRepository
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.job_repo import JobRepository
from hakikisha.repositories.lock_repo import ClaimLockRepository
from hakikisha.repositories.notification_repo import NotificationRepository
from hakikisha.repositories.points_repo import PointsRepository
from hakikisha.repositories.review_session_repo import ReviewSessionRepository
from hakikisha.repositories.trending_topic_repo import TrendingTopicRepository
from hakikisha.repositories.user_repo import UserRepository
from hakikisha.repositories.verdict_repo import VerdictRepository
from hakikisha.services.ai_processing_service import AIProcessingService
from hakikisha.services.assignment_service import AssignmentService
from hakikisha.services.finalizer_service import VerdictFinalizer
from hakikisha.services.intake_service import ClaimIntakeService
from hakikisha.services.job_queue import JobQueue
from hakikisha.services.notification_service import NotificationDispatcher
from hakikisha.services.points_service import PointsService
from hakikisha.services.review_service import ReviewService
from hakikisha.services.worker import ClaimWorker


def _init_database(engine):
    """Create the SQLite directory if needed, then the schema."""
    import hakikisha.models  # noqa: F401  register models with Base.metadata

    url = str(engine.url)
    if url.startswith("sqlite:///") and ":memory:" not in url:
        Path(url.replace("sqlite:///", "")).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)
    return engine


def _open_session(factory, initialized):
    # ``initialized`` only orders the session after table creation
    session = factory()
    try:
        yield session
    finally:
        session.close()


class AppContainer(containers.DeclarativeContainer):
    """Application Dependency Injection Container.

    - Configuration (Settings)
    - Database (engine, scoped session)
    - Repositories (data access)
    - Clients (Anthropic, email/push webhooks, content service)
    - Engines (similarity, AI response parsing, trending)
    - Services (intake, AI processing, review, notifications, queue, worker)
    """

    # ══════════════════════════════════════════════════════════════════
    # CONFIGURATION
    # ══════════════════════════════════════════════════════════════════

    settings = providers.Singleton(Settings)

    # ══════════════════════════════════════════════════════════════════
    # DATABASE
    # ══════════════════════════════════════════════════════════════════

    db_engine = providers.Singleton(
        build_engine,
        database_url=settings.provided.database_url,
        echo=False,
    )

    db_initialized = providers.Resource(
        _init_database,
        engine=db_engine,
    )

    session_factory = providers.Singleton(
        build_session_factory,
        engine=db_engine,
    )

    # One session per container; closed by shutdown_resources()
    db_session = providers.Resource(
        _open_session,
        factory=session_factory,
        initialized=db_initialized,
    )

    # ══════════════════════════════════════════════════════════════════
    # REPOSITORIES (Data Access Layer)
    # ══════════════════════════════════════════════════════════════════

    claim_repo = providers.Factory(ClaimRepository, db=db_session)

    ai_verdict_repo = providers.Factory(AIVerdictRepository, db=db_session)

    verdict_repo = providers.Factory(VerdictRepository, db=db_session)

    trending_topic_repo = providers.Factory(TrendingTopicRepository, db=db_session)

    notification_repo = providers.Factory(NotificationRepository, db=db_session)

    review_session_repo = providers.Factory(ReviewSessionRepository, db=db_session)

    user_repo = providers.Factory(UserRepository, db=db_session)

    points_repo = providers.Factory(PointsRepository, db=db_session)

    job_repo = providers.Factory(JobRepository, db=db_session)

    lock_repo = providers.Factory(ClaimLockRepository, db=db_session)

    # ══════════════════════════════════════════════════════════════════
    # EXTERNAL CLIENTS (Infrastructure)
    # ══════════════════════════════════════════════════════════════════

    llm_client = providers.Singleton(
        LLMClient,
        api_key=settings.provided.anthropic_api_key,
        model=settings.provided.claude_model,
        max_tokens=settings.provided.ai_max_tokens,
        retry_max_attempts=settings.provided.retry_max_attempts,
        timeout=settings.provided.ai_request_timeout,
        sdk_max_retries=settings.provided.ai_sdk_max_retries,
        retry_initial_delay=settings.provided.ai_retry_initial_delay,
    )

    email_client = providers.Singleton(
        EmailChannelClient,
        base_url=settings.provided.email_service_url,
        api_key=settings.provided.collaborator_api_key,
        timeout=settings.provided.http_timeout,
        retry_max_attempts=settings.provided.retry_max_attempts,
    )

    push_client = providers.Singleton(
        PushChannelClient,
        base_url=settings.provided.push_service_url,
        api_key=settings.provided.collaborator_api_key,
        timeout=settings.provided.http_timeout,
        retry_max_attempts=settings.provided.retry_max_attempts,
    )

    content_client = providers.Singleton(
        ContentServiceClient,
        base_url=settings.provided.content_service_url,
        api_key=settings.provided.collaborator_api_key,
        timeout=settings.provided.http_timeout,
        retry_max_attempts=settings.provided.retry_max_attempts,
    )

    # ══════════════════════════════════════════════════════════════════
    # ENGINES (Business Logic Layer)
    # ══════════════════════════════════════════════════════════════════

    prompt_manager = providers.Singleton(PromptManager)

    ai_response_parser = providers.Factory(AIResponseParser)

    similarity_detector = providers.Factory(
        SimilarityDetector,
        claim_repo=claim_repo,
        threshold=settings.provided.similarity_threshold,
        hash_length=settings.provided.similarity_hash_length,
        scan_limit=settings.provided.similarity_scan_limit,
    )

    trending_detector = providers.Factory(
        TrendingDetector,
        db=db_session,
        claim_repo=claim_repo,
        topic_repo=trending_topic_repo,
        settings=settings,
        content_client=content_client,
    )

    # ══════════════════════════════════════════════════════════════════
    # SERVICES (Orchestration Layer)
    # ══════════════════════════════════════════════════════════════════

    job_queue = providers.Factory(
        JobQueue,
        db=db_session,
        job_repo=job_repo,
        lease_seconds=settings.provided.job_lease_seconds,
        max_attempts=settings.provided.job_max_attempts,
        retry_initial_delay=settings.provided.job_retry_initial_delay,
        retry_max_delay=settings.provided.job_retry_max_delay,
    )

    notification_dispatcher = providers.Factory(
        NotificationDispatcher,
        db=db_session,
        notification_repo=notification_repo,
        user_repo=user_repo,
        claim_repo=claim_repo,
        verdict_repo=verdict_repo,
        email_client=email_client,
        push_client=push_client,
        batch_size=settings.provided.notification_batch_size,
    )

    points_service = providers.Factory(
        PointsService,
        db=db_session,
        user_repo=user_repo,
        points_repo=points_repo,
        claim_repo=claim_repo,
    )

    verdict_finalizer = providers.Factory(
        VerdictFinalizer,
        db=db_session,
        claim_repo=claim_repo,
        verdict_repo=verdict_repo,
        session_repo=review_session_repo,
        job_queue=job_queue,
    )

    ai_processing_service = providers.Factory(
        AIProcessingService,
        db=db_session,
        claim_repo=claim_repo,
        ai_verdict_repo=ai_verdict_repo,
        lock_repo=lock_repo,
        llm_client=llm_client,
        parser=ai_response_parser,
        prompt_manager=prompt_manager,
        settings=settings,
        notifier=notification_dispatcher,
    )

    assignment_service = providers.Factory(
        AssignmentService,
        db=db_session,
        claim_repo=claim_repo,
        user_repo=user_repo,
        session_repo=review_session_repo,
        notifier=notification_dispatcher,
    )

    review_service = providers.Factory(
        ReviewService,
        db=db_session,
        claim_repo=claim_repo,
        ai_verdict_repo=ai_verdict_repo,
        verdict_repo=verdict_repo,
        session_repo=review_session_repo,
        finalizer=verdict_finalizer,
        settings=settings,
        notifier=notification_dispatcher,
    )

    intake_service = providers.Factory(
        ClaimIntakeService,
        db=db_session,
        claim_repo=claim_repo,
        user_repo=user_repo,
        similarity_detector=similarity_detector,
        job_queue=job_queue,
        points_service=points_service,
        notifier=notification_dispatcher,
    )

    claim_worker = providers.Factory(
        ClaimWorker,
        db=db_session,
        job_queue=job_queue,
        ai_service=ai_processing_service,
        trending_detector=trending_detector,
        notifier=notification_dispatcher,
        points_service=points_service,
        review_service=review_service,
        settings=settings,
    )
