"""
Instant Quote Package

Pricing and SKU engine for custom canvas products.
Builds a canonical SKU and an itemized cost breakdown from a product
configuration and a catalog of priced materials.
"""

__version__ = "2.0.0"
