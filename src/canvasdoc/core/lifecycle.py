"""Load/save boundary: funnel every outcome into an `ErrorContainer`.

Two wrappers, one for bodies that produce a document and one for bodies that
only act (save, mutate). Guarantees:
- a `DocumentError` is recorded under its own kind;
- any other exception records exactly one `InternalError`, unless the body had
  already recorded errors before failing;
- nothing escapes, and a load that recorded errors returns None.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from canvasdoc.core.errors import DocumentError, ErrorContainer

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _record_failure(exc: Exception, errors: ErrorContainer) -> None:
    if isinstance(exc, DocumentError):
        logger.debug("document error: %s", exc)
        errors.add(exc.kind, exc.message)
        return
    if not errors.has_errors:
        # Thrown without being reported first.
        logger.exception("internal error")
        errors.internal_error(exc)
    else:
        logger.debug("exception after reported errors: %r", exc)


def run_load(worker: Callable[[], T], errors: ErrorContainer) -> T | None:
    """Run a load body; return its value only when no errors were recorded."""
    try:
        document = worker()
    except Exception as e:  # noqa: BLE001 - boundary converts every fault
        _record_failure(e, errors)
        return None
    if errors.has_errors:
        return None
    return document


def run_action(worker: Callable[[], object], errors: ErrorContainer) -> ErrorContainer:
    """Run a save/mutate body and return the same container."""
    try:
        worker()
    except Exception as e:  # noqa: BLE001 - boundary converts every fault
        _record_failure(e, errors)
    return errors
