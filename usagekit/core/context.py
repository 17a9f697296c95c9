"""Request context for usage operations.

The transport layer builds one ``RequestContext`` per request from whatever
identity provider it uses. The usage service only reads ``principal`` (to
decide whether the caller is authenticated and to hand it to a feature's
authorize predicate) and ``logger``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from usagekit.core.logging import ContextualLogger


@dataclass
class RequestContext:
    """Per-request identity and logging context.

    ``logger`` is keyword-only with a default of None; when omitted it is
    derived from ``request_id`` in __post_init__.
    """

    principal: Optional[Any] = None
    request_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    logger: ContextualLogger = field(default=None, kw_only=True, repr=False)

    def __post_init__(self):
        """Auto-derive logger from the request identity if not provided."""
        if self.logger is None:
            from usagekit.core.logging import logger as base_logger

            self.logger = base_logger.with_context(request_id=self.request_id)

    @property
    def is_authenticated(self) -> bool:
        """Whether an identity provider attached a principal."""
        return self.principal is not None
