from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

import yaml


class ConfigService:
    """
    Manages layered config:
    - config/default.yaml (checked in)
    - config/config.yaml (local overrides)
    - an explicit config path (treated as overrides)
    - environment variables (PORT, MODEL_PATH, LOG_LEVEL)
    """

    DEFAULT_PATH = os.path.join("config", "default.yaml")
    OVERRIDES_PATH = os.path.join("config", "config.yaml")

    # env var -> (section, key); section None means top-level
    ENV_OVERRIDES = {
        "PORT": ("server", "port"),
        "MODEL_PATH": ("model", "path"),
        "LOG_LEVEL": (None, "log_level"),
    }

    @staticmethod
    def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        for k, v in (override or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                ConfigService._deep_merge(base[k], v)
            else:
                base[k] = v
        return base

    @staticmethod
    def _load_yaml(path: str) -> Dict[str, Any]:
        if not path or not os.path.exists(path):
            return {}
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def load_default() -> Dict[str, Any]:
        return ConfigService._load_yaml(ConfigService.DEFAULT_PATH)

    @staticmethod
    def load_overrides() -> Dict[str, Any]:
        return ConfigService._load_yaml(ConfigService.OVERRIDES_PATH)

    @staticmethod
    def apply_env_overrides(cfg: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if environ is None else environ
        for var, (section, key) in ConfigService.ENV_OVERRIDES.items():
            value = env.get(var)
            if not value:
                continue
            if var == "PORT":
                try:
                    value = int(value)
                except ValueError:
                    raise ValueError(f"PORT must be an integer, got {value!r}")
            if section is None:
                cfg[key] = value
            else:
                target = cfg.get(section)
                if not isinstance(target, dict):
                    target = cfg[section] = {}
                target[key] = value
        return cfg

    @staticmethod
    def load_effective_config(
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        merged = ConfigService.load_default()
        merged = ConfigService._deep_merge(merged, ConfigService.load_overrides())
        if config_path and os.path.abspath(config_path) != os.path.abspath(ConfigService.OVERRIDES_PATH):
            merged = ConfigService._deep_merge(merged, ConfigService._load_yaml(config_path))
        return ConfigService.apply_env_overrides(merged, environ)
