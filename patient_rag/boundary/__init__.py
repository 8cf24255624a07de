"""
Boundary layer for external system integrations.

Handles all interactions with embedding providers and vector stores.
Provides adapters that degrade instead of raising when a remote is down.
"""
