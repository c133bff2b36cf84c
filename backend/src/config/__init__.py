"""
Configuration module for the LightChurch backend.

Provides centralized, environment-driven settings for:
- Access token signing
- Push gateways (Expo, Web Push)
- Rate limiting and CORS
"""

from backend.src.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
