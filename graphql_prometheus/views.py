"""Views for graphql_prometheus."""

from django.http import HttpRequest, HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from graphql_prometheus.metrics import default_metrics


def metrics_view(request: HttpRequest) -> HttpResponse:
    """Render the registry holding the default GraphQL metrics for a Prometheus scrape.

    That is ``prometheus_client.REGISTRY`` unless the default metrics were
    registered elsewhere with :func:`~graphql_prometheus.metrics.register_on`.
    """
    registry = default_metrics().registry or REGISTRY
    return HttpResponse(generate_latest(registry), content_type=CONTENT_TYPE_LATEST)
