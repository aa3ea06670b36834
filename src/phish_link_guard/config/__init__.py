"""Runtime settings and reference data."""

from phish_link_guard.config.reference import ReferenceData, default_reference_data, load_reference_data
from phish_link_guard.config.settings import AppConfig, load_config

__all__ = ["AppConfig", "ReferenceData", "load_config", "load_reference_data", "default_reference_data"]
