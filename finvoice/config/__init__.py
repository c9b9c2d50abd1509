"""Simple YAML configuration loader for finvoice."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",
        "port": 8080,
        "max_upload_mb": 25,
    },
    "groq": {
        "model": "whisper-large-v3-turbo",
        "base_url": "https://api.groq.com/openai/v1",
        "timeout_seconds": 60,
    },
    "gemini": {
        "model": "gemini-2.5-flash",
    },
    "capture": {
        "sample_rate": 16000,
        "channels": 1,
        "silence_timeout_ms": 2000,
        "silence_threshold": 10,
        "monitor_delay_ms": 500,
        "timeslice_ms": 100,
    },
    "client": {
        "server_url": "http://localhost:8080",
        "timeout_seconds": 90,
    },
    "logging": {
        "level": "INFO",
        "file_path": "logs/finvoice.log",
        "console_output": True,
    },
}


class FinVoiceConfig:
    """finvoice configuration loader.

    Values come from the built-in defaults, overlaid with the YAML file when
    one is given. API keys are read from the environment first so they never
    need to live in the file.
    """

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, defaults are used.
        """
        self.config_file: Optional[Path] = Path(config_path) if config_path else None

        if self.config_file is not None and not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        self.config = copy.deepcopy(DEFAULTS)
        if self.config_file is not None:
            logger.info(f"Loading configuration from: {self.config_file}")
            _deep_merge(self.config, self._load_config())
            self._resolve_paths(self.config)
        else:
            logger.info("No configuration file given, using defaults")

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        log_path = config.get('logging', {}).get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'capture.sample_rate').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'gemini.model')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_groq_api_key(self) -> Optional[str]:
        """Speech-to-text credential, or None when unset."""
        return os.environ.get("GROQ_API_KEY") or self.get('groq.api_key') or None

    def get_gemini_api_key(self) -> Optional[str]:
        """Language-model credential, or None when unset."""
        return os.environ.get("GEMINI_API_KEY") or self.get('gemini.api_key') or None


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
