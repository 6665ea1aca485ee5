"""
storefront_access.api

API package for the storefront access service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring (security services, DB engine, page guards).
"""

# Package marker.
