# -*- coding: utf-8 -*-
from core.config.loader import DEFAULT_CONFIG_PATH, ConfigError, HelperConfig, resolve_config

__all__ = ["DEFAULT_CONFIG_PATH", "ConfigError", "HelperConfig", "resolve_config"]
