"""
storefront_access.db.repositories

Repository layer (async SQLAlchemy).
"""

# Package marker.
