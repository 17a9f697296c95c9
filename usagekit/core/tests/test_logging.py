"""Tests for the contextual logger and request context."""

import logging

from usagekit.core.context import RequestContext
from usagekit.core.logging import ContextualLogger, logger


class TestContextualLogger:
    def test_context_rendered_and_attached(self, caplog):
        scoped = logger.with_context(reference_id="org_1", feature_key=None)

        with caplog.at_level(logging.INFO, logger="usagekit"):
            scoped.info("consumed")

        record = caplog.records[-1]
        assert record.getMessage() == "consumed [reference_id=org_1]"
        assert record.context == {"reference_id": "org_1"}

    def test_prefix(self, caplog):
        scoped = logger.with_prefix("Ledger: ").with_context(stream="org_1:messages")

        with caplog.at_level(logging.INFO, logger="usagekit"):
            scoped.info("retrying")

        assert caplog.records[-1].getMessage() == "Ledger: retrying [stream=org_1:messages]"

    def test_with_context_does_not_mutate_parent(self):
        parent = ContextualLogger(logging.getLogger("usagekit"), {"a": 1})

        parent.with_context(b=2)

        assert parent.dimensions == {"a": 1}


class TestRequestContext:
    def test_logger_derived_from_request_id(self):
        ctx = RequestContext(principal="user_1", request_id="req-7")

        assert ctx.is_authenticated
        assert ctx.logger.dimensions == {"request_id": "req-7"}

    def test_anonymous(self):
        assert RequestContext().is_authenticated is False


def test_configure_logging_installs_one_handler():
    from usagekit.core.config import Settings
    from usagekit.core.logging import configure_logging

    settings = Settings(_env_file=None, LOG_LEVEL="debug")
    configure_logging(settings)
    configure_logging(settings)

    package_logger = logging.getLogger("usagekit")
    handlers = [h for h in package_logger.handlers if getattr(h, "_usagekit", False)]
    assert len(handlers) == 1
    assert package_logger.level == logging.DEBUG
