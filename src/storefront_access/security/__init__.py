"""
storefront_access.security

Access-control and request-validation layer.

Responsibilities:
- Error taxonomy shared by every pipeline.
- Rate limiting, input sanitization and schema validation.
- Secure-action and secure-API-route pipelines, and the page route guard.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Mutating code paths are never exposed directly: they are always wrapped by
# `security.actions` or `security.api_routes` first.
