"""Cashback export ingestion service."""
