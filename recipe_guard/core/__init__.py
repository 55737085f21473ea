"""
Core modules for recipe_guard.

This package contains request normalization, identity resolution, the usage
ledger and rate limit, response validation and the request handler.
"""
