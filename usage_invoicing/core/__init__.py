"""
Core modules for Usage Invoicing.

This package contains record validation and coercion, and the
tiered invoice calculation.
"""
