"""graphql_prometheus — Django app declaration."""

from importlib import metadata

from django.apps import AppConfig

__version__ = metadata.version(__name__)


class GraphQLPrometheusConfig(AppConfig):
    """Django AppConfig for graphql_prometheus.

    Add this app to ``INSTALLED_APPS`` and register the Django HTTP
    middleware in ``MIDDLEWARE`` in your ``settings.py``::

        INSTALLED_APPS = [
            ...
            "graphql_prometheus",
        ]

        MIDDLEWARE = [
            ...
            "graphql_prometheus.django_middleware.GraphQLMetricsDjangoMiddleware",
        ]

    Then enable the Graphene field middleware in your ``GRAPHENE`` settings::

        GRAPHENE = {
            "SCHEMA": "myapp.schema.schema",
            "MIDDLEWARE": [
                "graphql_prometheus.middleware.PrometheusFieldMiddleware",
            ],
        }

    Configure the library via ``GRAPHQL_PROMETHEUS`` in ``settings.py``::

        GRAPHQL_PROMETHEUS = {
            "graphql_metrics_enabled": True,
            # Register the metrics on prometheus_client.REGISTRY at startup:
            "auto_register": True,
            # Override the paths that trigger instrumentation (default: ["/graphql/"]):
            "graphql_paths": ["/graphql/"],
        }
    """

    name = "graphql_prometheus"
    verbose_name = "GraphQL Prometheus Metrics"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        """Register the default GraphQL metrics before any request is served."""
        super().ready()
        from graphql_prometheus.metrics import default_metrics, register  # pylint: disable=import-outside-toplevel
        from graphql_prometheus.middleware import _get_app_settings  # pylint: disable=import-outside-toplevel

        if _get_app_settings().get("auto_register", True) and not default_metrics().registered:
            register()
