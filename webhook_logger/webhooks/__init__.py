"""Webhook inbound pipeline.

Receives webhooks on /webhook/{source}. Bodies are collected from the
request stream, GitHub deliveries are signature-verified when a secret is
configured, and every accepted webhook is written to the record store.
"""
