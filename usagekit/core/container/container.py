"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol
implementations. It has no construction logic; that belongs in the factory.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from usagekit.domains.customers.protocols import CustomerRepositoryProtocol
from usagekit.domains.features.protocols import FeatureResolverProtocol
from usagekit.domains.usage.protocols import UsageLedgerProtocol, UsageServiceProtocol
from usagekit.domains.usage.repository import UsageEventRepositoryProtocol


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # Production: build once at startup
        container = create_container(settings, features=FEATURES)
        await container.init_storage()
        await container.usage_service.consume("org_1", "api_calls", 1, ctx=ctx)
        await container.shutdown()

        # Testing: construct directly with fakes
        test_container = Container(
            resolver=FeatureResolver(FEATURES),
            customer_repo=FakeCustomerRepository(),
            ...
        )
    """

    # Feature registry and override merging
    resolver: FeatureResolverProtocol

    # Repository protocols
    customer_repo: CustomerRepositoryProtocol
    usage_repo: UsageEventRepositoryProtocol

    # Serialized writer over usage_repo
    ledger: UsageLedgerProtocol

    # Customer-facing operations
    usage_service: UsageServiceProtocol

    # Set only for SQL storage
    engine: Optional[AsyncEngine] = None

    async def init_storage(self) -> None:
        """Create tables if the container owns a database engine."""
        if self.engine is None:
            return
        from usagekit.db.session import init_db

        await init_db(self.engine)

    async def shutdown(self) -> None:
        """Dispose the database engine, if any."""
        if self.engine is not None:
            await self.engine.dispose()

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

        Useful for partial overrides in tests:

            modified = container.replace(ledger=FakeUsageLedger())
        """
        return replace(self, **changes)
