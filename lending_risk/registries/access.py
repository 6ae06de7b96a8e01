"""Owner gate for mutating registry entry points."""
from __future__ import annotations

import logging

from ..errors import Unauthorized
from ..models import Caller

logger = logging.getLogger(__name__)


def require_owner(caller: Caller, owner: str, operation: str) -> None:
    """Raise ``Unauthorized`` unless ``caller`` presents the owner identity."""
    if not owner or caller.identity != owner:
        logger.warning("Rejected %s from non-owner '%s'", operation, caller.identity)
        raise Unauthorized(f"{operation} is restricted to the protocol owner")
