"""Graphene middleware and request interceptor exporting Prometheus metrics from GraphQL execution."""

import asyncio
import time
from inspect import isawaitable

from graphql import GraphQLResolveInfo

from graphql_prometheus.metrics import GraphQLMetrics, default_metrics
from graphql_prometheus.outcome import (
    classify_outcome,
    classify_request_outcome,
    extract_error_code,
)
from graphql_prometheus.utils import get_request_errors, record_request_error, reset_request_errors

_DEFAULT_SETTINGS = {
    "graphql_metrics_enabled": True,
    "auto_register": True,
    "graphql_paths": ["/graphql/"],
}

_NS_PER_MS = 1_000_000


class MissingExecutionContextError(RuntimeError):
    """Raised when an interceptor runs without the execution context it needs."""


def _get_app_settings():
    """Load instrumentation settings from ``settings.GRAPHQL_PROMETHEUS``.

    Falls back to built-in defaults for any key not present in the dict, and
    entirely when Django settings are not configured (plain graphql-core use).

    Returns:
        dict: Resolved settings merged with defaults.
    """
    from django.conf import settings  # pylint: disable=import-outside-toplevel

    if not settings.configured:
        return dict(_DEFAULT_SETTINGS)
    user_config = getattr(settings, "GRAPHQL_PROMETHEUS", {})
    return {**_DEFAULT_SETTINGS, **user_config}


def _elapsed_ms(start_ns):
    """Whole milliseconds since ``start_ns``; sub-millisecond remainders are dropped."""
    return (time.monotonic_ns() - start_ns) // _NS_PER_MS


class PrometheusFieldMiddleware:  # pylint: disable=too-few-public-methods
    """Graphene middleware that instruments every field resolution.

    For each resolved field it increments ``graphql_resolver_started_total``,
    times the resolver, records the duration in ``graphql_resolver_duration_ms``
    labeled with the exit status and the ``error_code`` extension of a failing
    resolver, then increments ``graphql_resolver_completed_total``. The
    resolver's value or exception is passed through untouched.

    Failures are also accumulated on ``info.context`` so that
    :class:`PrometheusRequestInterceptor` can label the whole request.

    Usage in Django settings::

        GRAPHENE = {
            "MIDDLEWARE": [
                "graphql_prometheus.middleware.PrometheusFieldMiddleware",
            ]
        }

    Or with Graphene directly::

        schema.execute(query, middleware=[PrometheusFieldMiddleware(metrics)])
    """

    def __init__(self, metrics: GraphQLMetrics = None):
        """Bind the middleware to ``metrics``, or to the default metrics when omitted."""
        self.metrics = metrics if metrics is not None else default_metrics()

    def resolve(self, next: callable, root: object, info: GraphQLResolveInfo, **kwargs: object) -> object:  # pylint: disable=redefined-builtin
        """Intercept a field resolution and record metrics around it.

        Args:
            next (callable): Callable to continue the resolution chain.
            root (object): Parent resolved value. None for top-level fields.
            info (GraphQLResolveInfo): GraphQL resolve info for the current field.
            **kwargs (object): Field arguments.

        Returns:
            object: The result of the resolver, or an awaitable of it for async resolvers.
        """
        if not _get_app_settings().get("graphql_metrics_enabled", True):
            return next(root, info, **kwargs)

        if info is None:
            raise MissingExecutionContextError("PrometheusFieldMiddleware requires GraphQLResolveInfo")
        object_name = info.parent_type.name
        field_name = info.field_name

        self.metrics.resolver_started.labels(object=object_name, field=field_name).inc()
        start_ns = time.monotonic_ns()

        try:
            result = next(root, info, **kwargs)
        except Exception as error:
            self._record(info, object_name, field_name, start_ns, error)
            raise

        if isawaitable(result):
            return self._resolve_async(result, info, object_name, field_name, start_ns)

        self._record(info, object_name, field_name, start_ns, _returned_error(result))
        return result

    async def _resolve_async(self, awaitable, info, object_name, field_name, start_ns):
        """Await an async resolver so its full duration is measured."""
        try:
            result = await awaitable
        except (Exception, asyncio.CancelledError) as error:
            self._record(info, object_name, field_name, start_ns, error)
            raise
        self._record(info, object_name, field_name, start_ns, _returned_error(result))
        return result

    def _record(self, info, object_name, field_name, start_ns, error):
        elapsed_ms = _elapsed_ms(start_ns)
        exit_status = classify_outcome(error)
        err_code = extract_error_code(error) if error is not None else ""

        self.metrics.resolver_duration.labels(
            err_code=err_code,
            exit_status=exit_status,
            object=object_name,
            field=field_name,
        ).observe(elapsed_ms)
        self.metrics.resolver_completed.labels(object=object_name, field=field_name).inc()

        if error is not None:
            record_request_error(info.context, error)


def _returned_error(result):
    # graphql-core reports an Exception returned by a resolver as a field error.
    return result if isinstance(result, Exception) else None


class PrometheusRequestInterceptor:  # pylint: disable=too-few-public-methods
    """Request-level hook recording whole-request counters and duration.

    Call it with the request context and a callable that executes the request::

        interceptor = PrometheusRequestInterceptor(metrics)
        response = interceptor(request, lambda request: view(request))

    The request is labeled ``failure`` when any error was accumulated for it
    (see :func:`~graphql_prometheus.utils.get_request_errors`), when the
    callable returns an ``ExecutionResult`` with errors, or when it raises.
    The error list is reset at the start of every call. The callable's return
    value is passed through unchanged.
    """

    def __init__(self, metrics: GraphQLMetrics = None, errors_getter=get_request_errors):
        """Bind the interceptor to ``metrics`` and the accessor reading a request's errors."""
        self.metrics = metrics if metrics is not None else default_metrics()
        self.errors_getter = errors_getter

    def __call__(self, context, next):  # pylint: disable=redefined-builtin
        """Run ``next(context)`` and record request metrics around it."""
        if context is None:
            raise MissingExecutionContextError("PrometheusRequestInterceptor requires a request context")

        reset_request_errors(context)
        self.metrics.request_started.inc()
        start_ns = time.monotonic_ns()

        try:
            result = next(context)
        except Exception as error:
            self._record(start_ns, [*self.errors_getter(context), error])
            raise

        # ExecutionResult.errors also carries errors raised by graphql-core
        # itself, e.g. result coercion, which no resolver sees.
        self._record(start_ns, [*self.errors_getter(context), *(getattr(result, "errors", None) or ())])
        return result

    def _record(self, start_ns, errors):
        exit_status = classify_request_outcome(errors)
        self.metrics.request_duration.labels(exit_status=exit_status).observe(_elapsed_ms(start_ns))
        self.metrics.request_completed.inc()
