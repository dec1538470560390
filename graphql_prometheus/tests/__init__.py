"""Tests for graphql_prometheus."""
