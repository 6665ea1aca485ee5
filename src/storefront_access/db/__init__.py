"""
storefront_access.db

Persistence package (profile augmentation only).

Responsibilities:
- SQLAlchemy base, models, engine/session helpers.
- Repository for customer profile lookups.
"""

# Package marker.
