"""
Configuration for closure resolution.

Defines environment names, file names and lookup settings shared by the
search-path provider, namespace resolver and deduplicators.
"""

from scriptlens.parser.config import DEFAULT_IGNORE_NAMESPACES
from scriptlens.paths import ROOT_ENV_VAR

# Global search-path settings (relative to ROOT_ENV_VAR)
SEARCH_PATH_CONFIG = {
    "library_subdir": "Lib",
    "config_file": "css_config.xml",
    "search_dirs_node": "searchDirs",
    "separator": ";",
}

# File extensions recognized as libraries, in probing order
LIBRARY_EXTENSIONS = (".dll", ".exe")

# Host companion library detection
HOST_CONFIG = {
    "companion_prefix": "nppscripts",
}

# Isolated identity probe settings
PROBE_CONFIG = {
    "module": "scriptlens.resolution.identity_probe",
    "timeout_seconds": 30,
}
