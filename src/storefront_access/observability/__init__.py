"""
storefront_access.observability

Logging for the access layer.

Responsibilities:
- JSON event logging with secret redaction.
- Per-request context (request id, client ip) and the current-request handle.
"""
