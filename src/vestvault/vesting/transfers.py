from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from ..core.vesting_exceptions import TransferFailedError, VestingError

logger = logging.getLogger(__name__)


def invoke_transfer(
    operation: str,
    transfer: Callable[..., bool],
    *args: Any,
    details: Dict[str, Any] | None = None,
) -> None:
    """
    Call the asset transfer service and normalize its failure modes.

    A False return or any non-vault exception becomes TransferFailedError.
    Vault errors raised by nested calls propagate unchanged.
    """
    details = dict(details or {})
    try:
        ok = transfer(*args)
    except VestingError:
        raise
    except Exception as exc:
        details["cause"] = str(exc)
        logger.warning(
            "Transfer raised",
            extra={"event": "vesting.transfer_failed", "operation": operation, "error": str(exc)}
        )
        raise TransferFailedError(f"{operation}: transfer failed: {exc}", details=details) from exc

    if not ok:
        logger.warning(
            "Transfer rejected",
            extra={"event": "vesting.transfer_failed", "operation": operation}
        )
        raise TransferFailedError(f"{operation}: transfer rejected", details=details)
