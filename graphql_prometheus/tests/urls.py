"""URL conf serving the test schema through graphene-django."""

from django.urls import include, path
from graphene_django.views import GraphQLView

from graphql_prometheus.tests.schema import schema

urlpatterns = [
    path("graphql/", GraphQLView.as_view(schema=schema)),
    path("graphql-prometheus/", include("graphql_prometheus.urls")),
]
