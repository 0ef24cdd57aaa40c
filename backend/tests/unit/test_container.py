"""Tests for dependency injection container.

Verifies that the container wires every dependency on one shared session
and that providers can be overridden for tests.
"""

import pytest
from dependency_injector import providers
from sqlalchemy import inspect

from hakikisha.clients.channel_client import EmailChannelClient, PushChannelClient
from hakikisha.clients.content_client import ContentServiceClient
from hakikisha.clients.llm_client import LLMClient
from hakikisha.config import Settings
from hakikisha.container import AppContainer
from hakikisha.engines.similarity_detector import SimilarityDetector
from hakikisha.engines.trending_detector import TrendingDetector
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.job_repo import JobRepository
from hakikisha.repositories.lock_repo import ClaimLockRepository
from hakikisha.repositories.notification_repo import NotificationRepository
from hakikisha.repositories.user_repo import UserRepository
from hakikisha.services.ai_processing_service import AIProcessingService
from hakikisha.services.assignment_service import AssignmentService
from hakikisha.services.intake_service import ClaimIntakeService
from hakikisha.services.job_queue import JobQueue
from hakikisha.services.notification_service import NotificationDispatcher
from hakikisha.services.review_service import ReviewService
from hakikisha.services.worker import ClaimWorker
from tests.fixtures.fakes import FakeLLMClient


@pytest.fixture()
def container(settings, db_engine):
    """Container on the test engine; resources initialised, shut down afterwards."""
    c = AppContainer()
    c.settings.override(providers.Object(settings))
    c.db_engine.override(providers.Object(db_engine))
    c.llm_client.override(providers.Object(FakeLLMClient()))
    c.init_resources()
    yield c
    c.shutdown_resources()


class TestContainerConfiguration:
    def test_container_creates_settings(self):
        """Container provides Settings singleton."""
        container = AppContainer()
        settings = container.settings()

        assert isinstance(settings, Settings)
        assert settings is container.settings()

    def test_container_creates_clients(self, settings):
        container = AppContainer()
        container.settings.override(providers.Object(settings))

        assert isinstance(container.llm_client(), LLMClient)
        assert isinstance(container.email_client(), EmailChannelClient)
        assert isinstance(container.push_client(), PushChannelClient)
        assert isinstance(container.content_client(), ContentServiceClient)
        assert container.email_client() is container.email_client()

    def test_unconfigured_channels_are_disabled(self, settings):
        container = AppContainer()
        container.settings.override(providers.Object(settings))
        assert container.email_client().enabled is False
        assert container.push_client().enabled is False

    def test_container_creates_repositories(self, container):
        repos = [
            (container.claim_repo(), ClaimRepository),
            (container.user_repo(), UserRepository),
            (container.notification_repo(), NotificationRepository),
            (container.job_repo(), JobRepository),
            (container.lock_repo(), ClaimLockRepository),
        ]
        for repo_instance, repo_class in repos:
            assert isinstance(repo_instance, repo_class)

    def test_container_creates_engines(self, container):
        assert isinstance(container.similarity_detector(), SimilarityDetector)
        assert isinstance(container.trending_detector(), TrendingDetector)

    def test_container_creates_services(self, container):
        services = [
            (container.intake_service(), ClaimIntakeService),
            (container.ai_processing_service(), AIProcessingService),
            (container.assignment_service(), AssignmentService),
            (container.review_service(), ReviewService),
            (container.notification_dispatcher(), NotificationDispatcher),
            (container.job_queue(), JobQueue),
            (container.claim_worker(), ClaimWorker),
        ]
        for service_instance, service_class in services:
            assert isinstance(service_instance, service_class)


class TestContainerDependencies:
    def test_services_share_one_session(self, container):
        intake = container.intake_service()
        worker = container.claim_worker()

        assert intake.db is worker.db
        assert intake.claims.db is intake.db
        assert intake.queue.db is intake.db
        assert worker.ai.locks.db is worker.db

    def test_settings_flow_into_services(self, container, settings):
        queue = container.job_queue()
        assert queue.max_attempts == settings.job_max_attempts
        assert container.similarity_detector().threshold == settings.similarity_threshold

    def test_overridden_llm_reaches_ai_service(self, container):
        assert isinstance(container.ai_processing_service().llm, FakeLLMClient)

    def test_worker_id_can_be_passed(self, container):
        assert container.claim_worker(worker_id="w-7").worker_id == "w-7"


class TestContainerLifecycle:
    def test_init_resources_creates_schema(self, container, db_engine):
        tables = set(inspect(db_engine).get_table_names())
        assert {"claims", "users", "jobs", "claim_locks", "notifications"} <= tables

    def test_file_database_directory_created(self, settings, tmp_path):
        db_file = tmp_path / "data" / "hakikisha.db"
        container = AppContainer()
        container.settings.override(providers.Object(
            settings.model_copy(update={"database_url": f"sqlite:///{db_file}"})
        ))

        container.init_resources()
        container.shutdown_resources()

        assert db_file.exists()
