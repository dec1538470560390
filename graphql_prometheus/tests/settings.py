"""Minimal Django settings for running the graphql_prometheus test suite."""

SECRET_KEY = "graphql-prometheus-tests"  # noqa: S105

DEBUG = False

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "graphene_django",
    "graphql_prometheus",
]

MIDDLEWARE = [
    "graphql_prometheus.django_middleware.GraphQLMetricsDjangoMiddleware",
]

ROOT_URLCONF = "graphql_prometheus.tests.urls"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

USE_TZ = True

GRAPHENE = {
    "MIDDLEWARE": [
        "graphql_prometheus.middleware.PrometheusFieldMiddleware",
    ],
}
