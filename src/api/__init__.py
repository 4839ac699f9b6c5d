"""Request-facing service layer.

This module authenticates callers and applies per-identity rate limits.
It maps SDK outcomes onto HTTP-style responses for a host adapter.
"""
