"""Prometheus metric definitions and registry lifecycle for GraphQL instrumentation.

The six instruments live on a :class:`GraphQLMetrics` object rather than at
module level, so that tests and multi-instance deployments can register them
on their own :class:`~prometheus_client.CollectorRegistry` without colliding
on the process-wide default one::

    from prometheus_client import CollectorRegistry

    registry = CollectorRegistry()
    metrics = GraphQLMetrics()
    metrics.register_on(registry)
    ...
    metrics.unregister_from(registry)

The module-level :func:`register` / :func:`unregister` helpers bind the lazily
created :func:`default_metrics` object to ``prometheus_client.REGISTRY``.
"""

import logging

from prometheus_client import REGISTRY, Counter, Histogram

logger = logging.getLogger(__name__)


class MetricsNotRegisteredError(RuntimeError):
    """Raised when an instrument is used before ``register_on`` or after ``unregister_from``."""


def exponential_buckets(start, factor, count):
    """Return ``count`` bucket boundaries starting at ``start``, each ``factor`` times the previous."""
    if count < 1:
        raise ValueError("count must be at least 1")
    if start <= 0:
        raise ValueError("start must be positive")
    if factor <= 1:
        raise ValueError("factor must be greater than 1")
    return [float(start * factor**index) for index in range(count)]


# 1, 2, 4, ... 1024 milliseconds.
DURATION_BUCKETS_MS = exponential_buckets(1, 2, 11)

RESOLVER_LABELS = ("object", "field")
RESOLVER_DURATION_LABELS = ("err_code", "exit_status", "object", "field")
REQUEST_DURATION_LABELS = ("exit_status",)


class GraphQLMetrics:
    """Container for the GraphQL request and resolver instruments.

    Instruments are only available between :meth:`register_on` and
    :meth:`unregister_from`; touching one outside that window raises
    :class:`MetricsNotRegisteredError`.
    """

    _INSTRUMENTS = (
        "request_started",
        "request_completed",
        "resolver_started",
        "resolver_completed",
        "resolver_duration",
        "request_duration",
    )

    def __init__(self):
        """Create an unregistered metrics container."""
        self._collectors = None
        self._registry = None

    @property
    def registered(self) -> bool:
        """Whether the instruments are currently registered on a registry."""
        return self._collectors is not None

    @property
    def registry(self):
        """The registry the instruments are registered on, or None."""
        return self._registry

    @staticmethod
    def _build_collectors():
        """Create the six instruments, detached from any registry."""
        return {
            "request_started": Counter(
                "graphql_request_started_total",
                "Total number of requests started on the graphql server.",
                registry=None,
            ),
            "request_completed": Counter(
                "graphql_request_completed_total",
                "Total number of requests completed on the graphql server.",
                registry=None,
            ),
            "resolver_started": Counter(
                "graphql_resolver_started_total",
                "Total number of resolver started on the graphql server.",
                RESOLVER_LABELS,
                registry=None,
            ),
            "resolver_completed": Counter(
                "graphql_resolver_completed_total",
                "Total number of resolver completed on the graphql server.",
                RESOLVER_LABELS,
                registry=None,
            ),
            "resolver_duration": Histogram(
                "graphql_resolver_duration_ms",
                "The time taken to resolve a field by graphql server.",
                RESOLVER_DURATION_LABELS,
                buckets=DURATION_BUCKETS_MS,
                registry=None,
            ),
            "request_duration": Histogram(
                "graphql_request_duration_ms",
                "The time taken to handle a request by graphql server.",
                REQUEST_DURATION_LABELS,
                buckets=DURATION_BUCKETS_MS,
                registry=None,
            ),
        }

    def register_on(self, registry):
        """Create the instruments and register all of them on ``registry``.

        Registration is all-or-nothing: if any metric name is already taken on
        ``registry``, the instruments registered so far by this call are
        removed again and the ``ValueError`` raised by prometheus_client
        propagates.

        Args:
            registry (CollectorRegistry): The registry to register on.

        Raises:
            ValueError: On a duplicate metric name, or if this object is already registered.
        """
        if self.registered:
            raise ValueError("GraphQL metrics are already registered; unregister them first")

        collectors = self._build_collectors()
        done = []
        try:
            for collector in collectors.values():
                registry.register(collector)
                done.append(collector)
        except ValueError:
            logger.error("Failed to register GraphQL metrics, rolling back %d instrument(s)", len(done))
            for collector in done:
                registry.unregister(collector)
            raise

        self._collectors = collectors
        self._registry = registry
        logger.debug("Registered %d GraphQL metrics on %r", len(collectors), registry)

    def unregister_from(self, registry):
        """Detach the instruments from ``registry``.

        Instruments that are not registered there are skipped, so calling this
        repeatedly, or with a registry they were never registered on, is safe.

        Args:
            registry (CollectorRegistry): The registry to unregister from.
        """
        if self._collectors is None or registry is not self._registry:
            logger.debug("GraphQL metrics are not registered on %r, nothing to unregister", registry)
            return

        for name, collector in self._collectors.items():
            try:
                registry.unregister(collector)
            except KeyError:
                logger.debug("GraphQL metric %s was not registered on %r", name, registry)

        self._collectors = None
        self._registry = None
        logger.debug("Unregistered GraphQL metrics from %r", registry)

    def _get(self, name):
        if self._collectors is None:
            raise MetricsNotRegisteredError(
                f"GraphQL metric {name!r} used before registration; call register() or register_on() first"
            )
        return self._collectors[name]

    @property
    def request_started(self) -> Counter:
        return self._get("request_started")

    @property
    def request_completed(self) -> Counter:
        return self._get("request_completed")

    @property
    def resolver_started(self) -> Counter:
        return self._get("resolver_started")

    @property
    def resolver_completed(self) -> Counter:
        return self._get("resolver_completed")

    @property
    def resolver_duration(self) -> Histogram:
        return self._get("resolver_duration")

    @property
    def request_duration(self) -> Histogram:
        return self._get("request_duration")


_default_metrics = None


def default_metrics() -> GraphQLMetrics:
    """Return the process-wide :class:`GraphQLMetrics`, creating it on first use.

    Creating it does not register it; see :func:`register`.
    """
    global _default_metrics  # noqa: PLW0603  # pylint: disable=global-statement
    if _default_metrics is None:
        _default_metrics = GraphQLMetrics()
    return _default_metrics


def register_on(registry):
    """Register the default metrics on ``registry``."""
    default_metrics().register_on(registry)


def register():
    """Register the default metrics on ``prometheus_client.REGISTRY``."""
    register_on(REGISTRY)


def unregister_from(registry):
    """Unregister the default metrics from ``registry``."""
    default_metrics().unregister_from(registry)


def unregister():
    """Unregister the default metrics from ``prometheus_client.REGISTRY``."""
    unregister_from(REGISTRY)
