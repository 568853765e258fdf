"""
SuperMall Catalog

Marketplace catalog services: shops, products, offers and categories on top of
a persistence gateway that targets Redis or a local key-value store.
"""

__version__ = "1.0.0"
