"""Configuration module for the fabric_quality package."""

from .settings import QualityThresholds, Settings, get_settings

__all__ = ["QualityThresholds", "Settings", "get_settings"]
