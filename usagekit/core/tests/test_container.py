"""Tests for container wiring."""

import pytest

from usagekit.adapters.storage.in_memory import (
    InMemoryCustomerRepository,
    InMemoryUsageEventRepository,
)
from usagekit.core.config import Settings
from usagekit.core.container import Container, create_container
from usagekit.core.context import RequestContext
from usagekit.core.exceptions import InvalidConfigurationError
from usagekit.domains.customers.repository import CustomerRepository
from usagekit.domains.features.types import Feature, FeatureOverride, PlanOverride
from usagekit.domains.usage.fakes.ledger import FakeUsageLedger
from usagekit.domains.usage.repository import UsageEventRepository
from usagekit.domains.usage.types import LimitStatus
from usagekit.schemas.customer import CustomerCreate
from usagekit.schemas.feature import ResetCadence

FEATURES = [Feature(key="messages", max_limit=100, reset_cadence=ResetCadence.MONTHLY)]


class TestCreateContainer:
    @pytest.mark.asyncio
    async def test_memory_backend_end_to_end(self):
        container = create_container(
            Settings(_env_file=None, STORAGE_BACKEND="memory"), FEATURES
        )
        ctx = RequestContext(principal="user_1")

        assert isinstance(container.customer_repo, InMemoryCustomerRepository)
        assert isinstance(container.usage_repo, InMemoryUsageEventRepository)
        assert container.engine is None

        await container.init_storage()
        await container.usage_service.register_customer(
            CustomerCreate(reference_id="org_1", reference_type="org")
        )
        await container.usage_service.consume("org_1", "messages", 150, ctx=ctx)

        status = await container.usage_service.check("org_1", "messages", ctx=ctx)
        assert status == LimitStatus.ABOVE_MAX_LIMIT
        await container.shutdown()

    @pytest.mark.asyncio
    async def test_postgres_backend_wires_sql_repositories(self, tmp_path):
        settings = Settings(
            _env_file=None,
            STORAGE_BACKEND="postgres",
            DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'usagekit.db'}",
            REQUIRE_PRINCIPAL=False,
        )
        container = create_container(settings, FEATURES)

        assert isinstance(container.customer_repo, CustomerRepository)
        assert isinstance(container.usage_repo, UsageEventRepository)

        await container.init_storage()
        await container.usage_service.register_customer(
            CustomerCreate(reference_id="org_1", reference_type="org")
        )
        event = await container.usage_service.consume("org_1", "messages", 3)

        assert event.sequence == 2
        assert event.after_amount == 3
        await container.shutdown()

    def test_invalid_overrides_fail_fast(self):
        plans = {"pro": PlanOverride(features={"seats": FeatureOverride(max_limit=1)})}

        with pytest.raises(InvalidConfigurationError):
            create_container(Settings(_env_file=None), FEATURES, plans)

    def test_replace(self):
        container = create_container(Settings(_env_file=None), FEATURES)

        modified = container.replace(ledger=FakeUsageLedger())

        assert isinstance(modified, Container)
        assert isinstance(modified.ledger, FakeUsageLedger)
        assert container.ledger is not modified.ledger
