"""Storefront core: cart, pricing gate, catalog queries, orders and payment webhooks."""

__version__ = "1.0.0"
