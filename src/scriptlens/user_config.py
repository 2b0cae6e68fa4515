"""
ScriptLens User Configuration

Hierarchical config system with global defaults + local overrides:
- Global: ~/.scriptlens/config.json (cross-project settings)
- Local: .scriptlens/config.json (project-specific overrides)

Config structure:
{
  "resolution": {
    "dedup_strategy": "filename",      // "filename" (fast) or "load" (authoritative)
    "library_extensions": [".dll", ".exe"],
    "ignore_namespaces": []            // extra namespaces never resolved
  },
  "host": {
    "companion_prefix": "nppscripts"   // loaded module prefix of the host library
  },
  "probe": {
    "timeout_seconds": 30
  }
}
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

from scriptlens.logging_config import logger
from scriptlens.paths import get_paths


# Default configuration
DEFAULT_CONFIG = {
    "resolution": {
        "dedup_strategy": "filename",
        "library_extensions": [".dll", ".exe"],
        "ignore_namespaces": [],
    },
    "host": {
        "companion_prefix": "nppscripts",
    },
    "probe": {
        "timeout_seconds": 30,
    },
}


class UserConfig:
    """
    Manages hierarchical user configuration.

    Load order (with override):
    1. Default config (hardcoded)
    2. Global config (~/.scriptlens/config.json)
    3. Local config (.scriptlens/config.json)
    """

    def __init__(self, project_root: Optional[Path] = None, global_config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            project_root: Project root directory (defaults to CWD)
            global_config_path: Override for the global config file
        """
        self.project_root = project_root or Path.cwd()
        self.global_config_path = global_config_path or get_paths().global_config
        self.local_config_path = self.project_root / ".scriptlens" / "config.json"

        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        config = copy.deepcopy(DEFAULT_CONFIG)

        for label, path in (("global", self.global_config_path), ("local", self.local_config_path)):
            if not path.exists():
                continue
            try:
                with open(path, 'r') as f:
                    loaded = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load {label} config: {e}")
                continue

            if not isinstance(loaded, dict):
                logger.warning(f"Ignoring {label} config {path}: expected a JSON object, got {type(loaded).__name__}")
                continue
            config = self._deep_merge(config, loaded)
            logger.debug(f"Loaded {label} config from {path}")

        return config

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """
        Deep merge two dictionaries, with override taking precedence.
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value by dot-separated key.

        Args:
            key: Dot-separated key (e.g., "resolution.dedup_strategy")
            default: Default value if key not found

        Returns:
            Config value

        Examples:
            config.get("resolution.dedup_strategy")  # "filename"
            config.get("probe.timeout_seconds")  # 30
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_all(self) -> Dict[str, Any]:
        """Get the entire merged configuration."""
        return copy.deepcopy(self._config)

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._config = self._load_config()


# Global singleton
_config: Optional[UserConfig] = None


def get_user_config(project_root: Optional[Path] = None) -> UserConfig:
    """
    Get the user configuration singleton.

    Args:
        project_root: Optional project root override

    Returns:
        UserConfig instance
    """
    global _config
    if project_root is not None:
        return UserConfig(project_root)
    if _config is None:
        _config = UserConfig()
    return _config


def reset_user_config() -> None:
    """Reset the global config singleton (for testing)."""
    global _config
    _config = None
