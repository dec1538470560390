"""Helpers for carrying per-request state between the field and request interceptors."""

from collections.abc import MutableMapping

# Key under which resolver errors are accumulated on the request context.
_REQUEST_ERRORS_ATTR = "_graphql_prometheus_errors"


def stash_meta_on_request(request, attr_name, meta):
    """Stash metadata on the request and its underlying WSGIRequest.

    For DRF views, ``info.context`` is a DRF ``Request`` wrapping a
    ``WSGIRequest``.  The Django middleware sees the ``WSGIRequest``, so
    we stash on both to ensure the metadata is accessible regardless of
    which request object is used.  Plain dict contexts, as commonly passed
    to graphql-core directly, get the metadata as a key instead.

    Args:
        request: The request object (DRF Request, WSGIRequest or dict).
        attr_name: The attribute name to set on the request.
        meta: The metadata to stash.
    """
    if isinstance(request, MutableMapping):
        request[attr_name] = meta
        return
    setattr(request, attr_name, meta)
    wsgi_request = getattr(request, "_request", None)
    if wsgi_request is not None:
        setattr(wsgi_request, attr_name, meta)


def _read_meta(request, attr_name):
    if isinstance(request, MutableMapping):
        return request.get(attr_name)
    return getattr(request, attr_name, None)


def record_request_error(request, error):
    """Append ``error`` to the errors accumulated for ``request``.

    A None request (graphql-core's default context) is ignored.
    """
    if request is None:
        return
    errors = _read_meta(request, _REQUEST_ERRORS_ATTR)
    if errors is None:
        errors = []
        stash_meta_on_request(request, _REQUEST_ERRORS_ATTR, errors)
    errors.append(error)


def reset_request_errors(request):
    """Start a fresh error list for ``request``, discarding errors of a previous execution."""
    stash_meta_on_request(request, _REQUEST_ERRORS_ATTR, [])


def get_request_errors(request):
    """Return the errors accumulated for ``request`` so far.

    Args:
        request: The request context shared by the interceptors.

    Returns:
        list: The accumulated errors, empty when no resolver failed.
    """
    return list(_read_meta(request, _REQUEST_ERRORS_ATTR) or ())
