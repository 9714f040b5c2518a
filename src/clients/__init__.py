"""
Clients Package for Slidesmith

Contains HTTP clients for external service integrations.
"""

from .unsplash_client import UnsplashClient

__all__ = [
    'UnsplashClient'
]
