"""Shared pytest setup for sessionkeeper tests."""
import os

# keep the service module away from a real Redis when it is imported
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("KEEPALIVE_INTERVAL_SEC", "0")
