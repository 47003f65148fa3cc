"""Configuration for the flat-protocol backend."""

from .loader import ConfigLoader, load_config
from .models import BridgeConfig

__all__ = ["BridgeConfig", "ConfigLoader", "load_config"]
