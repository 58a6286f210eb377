"""
Config module - Default settings for the Shopify bulk extractor.
"""

from .settings import DEFAULT_SETTINGS, PROVIDER_NAME

__all__ = [
    'DEFAULT_SETTINGS',
    'PROVIDER_NAME',
]
