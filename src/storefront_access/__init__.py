"""
storefront_access

Access control and request validation for the storefront: role/permission
checks, secure server actions and API routes, page guards and rate limiting.

`storefront_access.security.services.build_security_services` is the usual
entry point; `storefront_access.api.app.create_app` wires it into FastAPI.
"""

__version__ = "0.1.0"
