"""Logging setup.

``logger`` is the package-wide ContextualLogger. Derive scoped loggers with
``logger.with_context(reference_id=...)`` or ``logger.with_prefix("Ledger: ")``;
context dimensions are rendered after the message and exposed on the record
as ``record.context`` for structured handlers.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any, MutableMapping, Optional

if TYPE_CHECKING:
    from usagekit.core.config import Settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter carrying key/value dimensions and an optional prefix."""

    def __init__(
        self,
        logger: logging.Logger,
        dimensions: Optional[dict[str, Any]] = None,
        prefix: str = "",
    ) -> None:
        """Wrap *logger* with a fixed set of dimensions."""
        super().__init__(logger, dict(dimensions or {}))
        self.dimensions: dict[str, Any] = dict(dimensions or {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping]:
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("context", dict(self.dimensions))
        kwargs["extra"] = extra
        if self.prefix:
            msg = f"{self.prefix}{msg}"
        if self.dimensions:
            dims = " ".join(f"{k}={v}" for k, v in self.dimensions.items())
            msg = f"{msg} [{dims}]"
        return msg, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a new logger with additional dimensions."""
        merged = {**self.dimensions, **{k: v for k, v in dimensions.items() if v is not None}}
        return ContextualLogger(self.logger, merged, self.prefix)

    def with_prefix(self, prefix: str) -> "ContextualLogger":
        """Return a new logger that prepends *prefix* to every message."""
        return ContextualLogger(self.logger, self.dimensions, prefix)


def configure_logging(settings: "Settings") -> None:
    """Attach a stream handler to the package logger at the configured level."""
    root = logging.getLogger("usagekit")
    root.setLevel(settings.LOG_LEVEL.upper())
    if not any(getattr(h, "_usagekit", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._usagekit = True  # type: ignore[attr-defined]
        root.addHandler(handler)


logger = ContextualLogger(logging.getLogger("usagekit"))
