"""Ingestion layer.

Adapters that turn raw data received from the Sengled cloud into typed
events.
"""

from pysengled.ingestion.status import decode_status_message, match_status_topic

__all__ = ["decode_status_message", "match_status_topic"]
