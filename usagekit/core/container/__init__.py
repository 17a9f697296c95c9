"""Dependency Injection Container Module.

Usage:
------
    from usagekit.core.config import settings
    from usagekit.core.container import create_container

    container = create_container(settings, features=FEATURES, overrides=PLANS)

    # In tests (construct directly with fakes)
    from usagekit.core.container import Container
    test_container = Container(resolver=..., customer_repo=FakeCustomerRepository(), ...)

Module structure:
-----------------
    container/
        __init__.py      exports public API
        container.py     Container dataclass (serves)
        factory.py       create_container() (builds)
"""

from usagekit.core.container.container import Container
from usagekit.core.container.factory import create_container

__all__ = ["Container", "create_container"]
