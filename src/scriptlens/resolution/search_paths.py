"""
Global search-path discovery.

Builds the ordered list of directories probed for libraries from the
script engine root (CSSCRIPT_DIR) and its XML configuration file.
"""

import os
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from scriptlens.logging_config import logger
from .config import ROOT_ENV_VAR, SEARCH_PATH_CONFIG

# %VAR%, ${VAR} and $VAR references
_ENV_VAR_RE = re.compile(
    r"%([A-Za-z_][A-Za-z0-9_]*)%|\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)"
)


def normalize_search_dirs(dirs: Iterable[Optional[str]]) -> List[str]:
    """
    Drop empty entries and exact duplicates, keeping first-seen order.

    Args:
        dirs: Directory strings, possibly with blanks or repeats

    Returns:
        Normalized search path
    """
    seen = set()
    normalized: List[str] = []
    for entry in dirs:
        if not entry:
            continue
        if entry in seen:
            continue
        seen.add(entry)
        normalized.append(entry)
    return normalized


def expand_env_vars(value: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Expand %VAR%, $VAR and ${VAR} references. Unknown variables are kept verbatim.
    """
    env = os.environ if environ is None else environ

    def _replace(match):
        name = match.group(1) or match.group(2) or match.group(3)
        return env.get(name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


class SearchPathProvider:
    """
    Produces the global library search directories.

    Missing environment or a broken configuration file never raises: the
    provider just returns fewer directories.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            environ: Environment mapping to read from (defaults to os.environ)
        """
        self.environ = environ

    @property
    def _env(self) -> Mapping[str, str]:
        return os.environ if self.environ is None else self.environ

    def get_root_dir(self) -> Optional[str]:
        return self._env.get(ROOT_ENV_VAR) or None

    def get_search_directories(self) -> List[str]:
        """
        Get the global search directories.

        Returns:
            [<root>/Lib, <configured dirs>...] normalized, or [] when the
            root environment variable is not set.
        """
        root = self.get_root_dir()
        if root is None:
            logger.debug(f"{ROOT_ENV_VAR} is not set, skipping global search dirs")
            return []

        dirs = [str(Path(root) / SEARCH_PATH_CONFIG["library_subdir"])]
        dirs.extend(self._read_config_dirs(Path(root) / SEARCH_PATH_CONFIG["config_file"]))
        return normalize_search_dirs(dirs)

    def _read_config_dirs(self, config_file: Path) -> List[str]:
        """
        Read the searchDirs list from the XML config file.

        Any failure yields no extra directories.
        """
        if not config_file.is_file():
            return []

        try:
            root = ET.parse(config_file).getroot()
            node = root.find(SEARCH_PATH_CONFIG["search_dirs_node"])
            if node is None:
                logger.debug(f"No <{SEARCH_PATH_CONFIG['search_dirs_node']}> in {config_file}")
                return []
            text = "".join(node.itertext())
        except (ET.ParseError, OSError, UnicodeDecodeError) as e:
            logger.debug(f"Ignoring unreadable config {config_file}: {e}")
            return []

        return [
            expand_env_vars(entry.strip(), self.environ)
            for entry in text.split(SEARCH_PATH_CONFIG["separator"])
        ]
