"""Observability for the relay: structlog setup, the Datadog client, and the
request middleware that feeds it.
"""
