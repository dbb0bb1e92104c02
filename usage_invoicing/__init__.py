"""
Usage Invoicing.

Batch tiered invoicing for per-customer usage records.
"""

__version__ = "0.1.0"
