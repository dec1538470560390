"""Django HTTP middleware recording GraphQL request counters and duration.

This middleware wraps HTTP requests to GraphQL endpoints in a
:class:`~graphql_prometheus.middleware.PrometheusRequestInterceptor`, so the
recorded duration covers the full request and the exit status reflects the
resolver errors accumulated on the request by
:class:`~graphql_prometheus.middleware.PrometheusFieldMiddleware`.

Add it to ``MIDDLEWARE`` in ``settings.py``::

    MIDDLEWARE = [
        ...
        "graphql_prometheus.django_middleware.GraphQLMetricsDjangoMiddleware",
    ]

The set of paths that trigger instrumentation defaults to ``{"/graphql/"}``
and can be overridden via the ``graphql_paths`` key in ``GRAPHQL_PROMETHEUS``.
"""

import json
import logging

from graphql_prometheus.middleware import PrometheusRequestInterceptor, _get_app_settings
from graphql_prometheus.utils import record_request_error

logger = logging.getLogger(__name__)

# Default path when no custom configuration is provided.
_DEFAULT_GRAPHQL_PATHS = frozenset(("/graphql/",))


class GraphQLMetricsDjangoMiddleware:  # pylint: disable=too-few-public-methods
    """Django middleware that records request-level GraphQL metrics.

    For non-GraphQL requests, or when ``graphql_metrics_enabled`` is off, this
    middleware is a no-op pass-through. The response is never altered.

    The set of paths treated as GraphQL endpoints is resolved at startup from
    ``GRAPHQL_PROMETHEUS["graphql_paths"]``.  Defaults to ``{"/graphql/"}``.
    """

    def __init__(self, get_response, metrics=None):
        """Initialize the middleware and resolve the GraphQL path set."""
        self.get_response = get_response
        self.interceptor = PrometheusRequestInterceptor(metrics)
        self._graphql_paths = self._resolve_graphql_paths()
        logger.debug("Instrumenting GraphQL requests on %s", sorted(self._graphql_paths))

    @staticmethod
    def _resolve_graphql_paths():
        """Build the frozenset of paths that should be instrumented.

        Returns:
            frozenset[str]: The set of URL paths to instrument.
        """
        custom_paths = _get_app_settings().get("graphql_paths")
        if custom_paths:
            return frozenset(custom_paths)
        return _DEFAULT_GRAPHQL_PATHS

    def __call__(self, request):
        """Wrap GraphQL requests with the request interceptor; pass through everything else."""
        if request.path not in self._graphql_paths:
            return self.get_response(request)
        if not _get_app_settings().get("graphql_metrics_enabled", True):
            return self.get_response(request)

        return self.interceptor(request, self._get_response)

    def _get_response(self, request):
        response = self.get_response(request)
        for error in _response_errors(response):
            record_request_error(request, error)
        return response


def _response_errors(response):
    """Return the GraphQL ``errors`` entries of a JSON response body.

    Covers errors graphql-core adds without a resolver failing, such as
    parse, validation and result coercion errors. Batched responses are a
    JSON list of results.
    """
    if getattr(response, "streaming", False):
        return []
    if not str(response.get("Content-Type", "")).startswith("application/json"):
        return []
    try:
        payload = json.loads(response.content)
    except (TypeError, ValueError):
        logger.debug("GraphQL response body is not valid JSON, skipping error extraction")
        return []

    results = payload if isinstance(payload, list) else [payload]
    errors = []
    for result in results:
        if isinstance(result, dict):
            errors.extend(result.get("errors") or ())
    return errors
