"""Customers domain: identity anchors for metered usage.

The customer store is injected (in-memory or SQLAlchemy); the usage service
only needs lookup by reference id, upsert, and listing.
"""
