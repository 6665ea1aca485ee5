"""
storefront_access.auth

Authentication package.

Responsibilities:
- Principal and role types.
- Session transport (JWT bearer/cookie) and principal resolution.
- Request scoping for callers that receive no request argument.
"""

# Package marker.
