"""
ScriptLens Path Configuration

Centralized path management for the directories ScriptLens reads and writes.

Directory Structure:
~/Documents/
└── NppScripts/          # Default user scripts directory (probed for libraries)
~/.scriptlens/
├── config.json          # Global user config
└── logs/                # Log files (opt-in)
<tmp>/scriptlens/
└── imports/             # Materialized (generated) imported scripts
"""

import tempfile
from pathlib import Path
from typing import Optional

# Environment variable pointing at the script engine installation root
ROOT_ENV_VAR = "CSSCRIPT_DIR"


class ScriptLensPaths:
    """
    Centralized path configuration for ScriptLens.

    All paths are lazily resolved. Roots default to the user's home and the
    system temp directory and can be overridden (useful for tests).
    """

    SCRIPTS_DIR_NAME = "NppScripts"
    DOCUMENTS_DIR_NAME = "Documents"
    SCRIPTLENS_DIR = ".scriptlens"

    CONFIG_NAME = "config.json"
    LOGS_DIR = "logs"
    IMPORTS_DIR = "imports"

    def __init__(
        self,
        documents_root: Optional[Path] = None,
        home: Optional[Path] = None,
        cache_root: Optional[Path] = None,
    ):
        """
        Initialize paths configuration.

        Args:
            documents_root: The user's personal documents folder. Defaults to ~/Documents.
            home: Home directory holding the global .scriptlens dir. Defaults to ~.
            cache_root: Root for generated files. Defaults to <tmp>/scriptlens.
        """
        self._documents_root = Path(documents_root) if documents_root else None
        self._home = Path(home) if home else None
        self._cache_root = Path(cache_root) if cache_root else None

    @property
    def home(self) -> Path:
        if self._home is None:
            return Path.home()
        return self._home

    @property
    def documents_root(self) -> Path:
        """Get the personal documents root."""
        if self._documents_root is None:
            return self.home / self.DOCUMENTS_DIR_NAME
        return self._documents_root

    @property
    def user_scripts_dir(self) -> Path:
        """
        Get the default user scripts directory, creating it on first access.
        """
        scripts_dir = self.documents_root / self.SCRIPTS_DIR_NAME
        if not scripts_dir.exists():
            scripts_dir.mkdir(parents=True, exist_ok=True)
        return scripts_dir

    @property
    def global_dir(self) -> Path:
        return self.home / self.SCRIPTLENS_DIR

    @property
    def global_config(self) -> Path:
        """Get the global config file path."""
        return self.global_dir / self.CONFIG_NAME

    @property
    def logs_dir(self) -> Path:
        """Get the logs directory path."""
        return self.global_dir / self.LOGS_DIR

    @property
    def cache_root(self) -> Path:
        if self._cache_root is None:
            return Path(tempfile.gettempdir()) / "scriptlens"
        return self._cache_root

    @property
    def imports_cache_dir(self) -> Path:
        """Get the directory holding generated copies of imported scripts."""
        return self.cache_root / self.IMPORTS_DIR


# Global instance for convenience
_default_paths: Optional[ScriptLensPaths] = None


def get_paths() -> ScriptLensPaths:
    """
    Get the process-wide paths configuration.

    Returns:
        ScriptLensPaths instance
    """
    global _default_paths
    if _default_paths is None:
        _default_paths = ScriptLensPaths()
    return _default_paths


def reset_paths() -> None:
    """Reset the global paths instance (useful for testing)."""
    global _default_paths
    _default_paths = None
