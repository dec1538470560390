"""Classification of GraphQL resolver and request outcomes into metric labels."""

from collections.abc import Mapping
from typing import Any, Optional, Protocol, runtime_checkable

EXIT_STATUS_SUCCESS = "success"
EXIT_STATUS_FAILURE = "failure"

# Extension key read from structured errors for the ``err_code`` label.
ERROR_CODE_EXTENSION = "error_code"


@runtime_checkable
class StructuredError(Protocol):
    """An error carrying a string-keyed ``extensions`` map, such as ``graphql.GraphQLError``."""

    extensions: Optional[Mapping[str, Any]]


def classify_outcome(error: Optional[BaseException]) -> str:
    """Return the exit status of a single field resolution."""
    return EXIT_STATUS_FAILURE if error is not None else EXIT_STATUS_SUCCESS


def classify_request_outcome(errors) -> str:
    """Return the exit status of a request given its accumulated errors."""
    return EXIT_STATUS_FAILURE if errors else EXIT_STATUS_SUCCESS


def _iter_error_chain(error):
    """Yield ``error`` and every error it wraps, each at most once.

    Follows ``GraphQLError.original_error`` as well as the explicit
    (``__cause__``) and implicit (``__context__``) exception chains.
    """
    seen = set()
    pending = [error]
    while pending:
        current = pending.pop(0)
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.extend(
            (
                getattr(current, "original_error", None),
                getattr(current, "__cause__", None),
                getattr(current, "__context__", None),
            )
        )


def extract_error_code(error: Optional[BaseException]) -> str:
    """Extract the ``error_code`` extension from ``error`` or an error it wraps.

    Args:
        error: The error produced by a resolver, or None.

    Returns:
        str: The stringified extension value, or an empty string when there is
        no error, no structured error in the chain, or no ``error_code`` key.
    """
    if error is None:
        return ""
    for candidate in _iter_error_chain(error):
        if not isinstance(candidate, StructuredError):
            continue
        extensions = candidate.extensions
        if isinstance(extensions, Mapping) and ERROR_CODE_EXTENSION in extensions:
            return str(extensions[ERROR_CODE_EXTENSION])
    return ""
