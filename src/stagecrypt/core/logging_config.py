"""Logging setup and the error sink used around the crypto core."""

import logging
import sys
from typing import Any, Dict, Optional


def configure_logging(level: int = logging.INFO) -> None:
    # Configure root logger once; keep output simple for terminals.
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def capture_error(
    logger: logging.Logger,
    error: BaseException,
    source: str,
    message: str,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Record a failure with structured context before it propagates.

    The caller still re-raises; this only decides how the failure is logged.
    Context must never carry key material or plaintext values.
    """
    details = {"source": source, "error_type": type(error).__name__}
    if context:
        details.update(context)
    logger.error("%s: %s", message, error, extra={"context": details})
