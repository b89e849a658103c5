"""Pytest fixtures for riskengine tests."""

from decimal import Decimal

import pytest
import structlog

from riskengine.config.settings import Settings
from riskengine.repositories import InMemoryRiskAssessmentStore, InMemoryRiskProfileStore
from riskengine.risk import (
    Address,
    DrivingHistory,
    InMemoryEventPublisher,
    PricingEngine,
    ProfileType,
    RiskProfile,
    ScoringEngine,
)
from riskengine.services import RiskAssessmentService, RiskProfileService


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def mock_settings() -> Settings:
    """Create mock settings for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        system_assessor_id="SYSTEM",
        overdue_assessment_days=7,
    )


# =============================================================================
# Value fixtures
# =============================================================================


@pytest.fixture
def nd_address() -> Address:
    """Address in a low-risk state."""
    return Address(
        street="100 Main Street",
        city="Fargo",
        state="ND",
        zip_code="58102",
        country="US",
    )


@pytest.fixture
def ca_address() -> Address:
    """Address in a high-risk state."""
    return Address(
        street="1 Market Street",
        city="San Francisco",
        state="CA",
        zip_code="94105",
        country="US",
    )


@pytest.fixture
def clean_history() -> DrivingHistory:
    """Clean record with ten years of experience."""
    return DrivingHistory(accidents=0, violations=0, years_of_experience=10)


@pytest.fixture
def scenario_profile(nd_address: Address, clean_history: DrivingHistory) -> RiskProfile:
    """Reference profile scoring 615: age 30, clean history, ND, no occupation keyword."""
    return RiskProfile.create(
        customer_id="customer-001",
        profile_type=ProfileType.AUTO,
        driving_history=clean_history,
        address=nd_address,
        age=30,
        occupation="Software Developer",
        annual_income=Decimal("75000"),
    )


# =============================================================================
# Engines, stores and services
# =============================================================================


@pytest.fixture
def scoring_engine() -> ScoringEngine:
    """Create default scoring engine."""
    return ScoringEngine()


@pytest.fixture
def pricing_engine() -> PricingEngine:
    """Create default pricing engine."""
    return PricingEngine()


@pytest.fixture
def profile_store() -> InMemoryRiskProfileStore:
    return InMemoryRiskProfileStore()


@pytest.fixture
def assessment_store() -> InMemoryRiskAssessmentStore:
    return InMemoryRiskAssessmentStore()


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def profile_service(
    profile_store: InMemoryRiskProfileStore,
    scoring_engine: ScoringEngine,
    publisher: InMemoryEventPublisher,
) -> RiskProfileService:
    """Profile service wired to in-memory collaborators."""
    return RiskProfileService(
        store=profile_store,
        scoring_engine=scoring_engine,
        publisher=publisher,
    )


@pytest.fixture
def assessment_service(
    assessment_store: InMemoryRiskAssessmentStore,
    profile_store: InMemoryRiskProfileStore,
    scoring_engine: ScoringEngine,
    pricing_engine: PricingEngine,
    publisher: InMemoryEventPublisher,
    mock_settings: Settings,
) -> RiskAssessmentService:
    """Assessment service wired to in-memory collaborators."""
    return RiskAssessmentService(
        assessment_store=assessment_store,
        profile_store=profile_store,
        scoring_engine=scoring_engine,
        pricing_engine=pricing_engine,
        publisher=publisher,
        settings=mock_settings,
    )
