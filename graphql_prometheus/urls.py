"""Django urlpatterns for graphql_prometheus.

Mount the patterns in your root URL conf to expose a Prometheus-compatible
``/metrics/`` scrape endpoint::

    from django.urls import include, path

    urlpatterns = [
        ...
        path("graphql-prometheus/", include("graphql_prometheus.urls")),
    ]

Metrics are then available at ``/graphql-prometheus/metrics/``.
"""

from django.urls import path

from graphql_prometheus.views import metrics_view

app_name = "graphql_prometheus"

urlpatterns = [
    path("metrics/", metrics_view, name="metrics"),
]
