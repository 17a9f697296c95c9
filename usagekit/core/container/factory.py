"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with the configured storage backend.
"""

from typing import Iterable, Mapping, Optional, Union

from usagekit.adapters.storage.in_memory import (
    InMemoryCustomerRepository,
    InMemoryUsageEventRepository,
)
from usagekit.core.config import Settings, StorageBackendType
from usagekit.core.container.container import Container
from usagekit.core.logging import configure_logging, logger
from usagekit.db.session import create_engine, create_session_factory
from usagekit.domains.customers.repository import CustomerRepository
from usagekit.domains.features.resolver import FeatureResolver
from usagekit.domains.features.types import Feature, PlanOverride
from usagekit.domains.usage.ledger import UsageLedger
from usagekit.domains.usage.repository import UsageEventRepository
from usagekit.domains.usage.service import UsageService


def create_container(
    settings: Settings,
    features: Union[Iterable[Feature], Mapping[str, Feature]],
    overrides: Optional[Mapping[str, PlanOverride]] = None,
) -> Container:
    """Build the container for the configured storage backend.

    Args:
        settings: Application settings (from core/config)
        features: Feature definitions to register
        overrides: Plan overrides keyed by override key

    Returns:
        Fully constructed Container ready for use

    Raises:
        InvalidConfigurationError: if features or overrides are inconsistent
    """
    configure_logging(settings)

    # -----------------------------------------------------------------
    # Feature registry (validated at startup)
    # -----------------------------------------------------------------
    resolver = FeatureResolver(features, overrides)

    # -----------------------------------------------------------------
    # Storage
    # -----------------------------------------------------------------
    engine = None
    if settings.STORAGE_BACKEND == StorageBackendType.POSTGRES:
        engine = create_engine(settings)
        session_factory = create_session_factory(engine)
        customer_repo = CustomerRepository(session_factory)
        usage_repo = UsageEventRepository(session_factory)
    else:
        customer_repo = InMemoryCustomerRepository()
        usage_repo = InMemoryUsageEventRepository()

    # -----------------------------------------------------------------
    # Ledger and service
    # -----------------------------------------------------------------
    ledger = UsageLedger(
        usage_repo,
        max_attempts=settings.LEDGER_MAX_ATTEMPTS,
        max_wait_seconds=settings.LEDGER_RETRY_MAX_WAIT_SECONDS,
    )
    usage_service = UsageService(
        resolver,
        ledger,
        customer_repo,
        tz=settings.reset_tz,
        require_principal=settings.REQUIRE_PRINCIPAL,
    )

    logger.info(
        f"Container built: storage={settings.STORAGE_BACKEND.value}, "
        f"features={len(resolver.features())}, reset_tz={settings.RESET_TIMEZONE}"
    )

    return Container(
        resolver=resolver,
        customer_repo=customer_repo,
        usage_repo=usage_repo,
        ledger=ledger,
        usage_service=usage_service,
        engine=engine,
    )
