"""Configuration module for the reconciliation client."""

from insurance_recon.config.logging import configure_logging
from insurance_recon.config.settings import FlatSettings, get_settings

__all__ = ["FlatSettings", "get_settings", "configure_logging"]
