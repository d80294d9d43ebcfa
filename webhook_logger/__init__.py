"""Webhook logger: receives, verifies, records and replays inbound webhooks."""

__version__ = "0.1.0"
