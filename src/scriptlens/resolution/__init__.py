"""
Resolution package: search paths, reference aggregation, identity
deduplication and closure building.
"""

from .facade import (
    resolve_script_closure,
    get_project_files,
    get_search_directories,
)
from .search_paths import SearchPathProvider, normalize_search_dirs, expand_env_vars
from .namespace_resolver import NamespaceResolver, candidate_names, find_library
from .reference_sources import (
    ReferenceSource,
    NamespaceReferenceSource,
    DirectiveReferenceSource,
    PackageReferenceSource,
    ResolutionContext,
)
from .aggregator import ReferenceAggregator
from .deduplicator import (
    FilenameDeduplicator,
    LoadBasedDeduplicator,
    IsolatedProbe,
    get_deduplicator,
    filter_duplicates,
)
from .closure_builder import (
    ClosureBuilder,
    CompanionLibrary,
    get_companion_library,
    reset_companion_library,
)
from .config import (
    DEFAULT_IGNORE_NAMESPACES,
    LIBRARY_EXTENSIONS,
    ROOT_ENV_VAR,
    SEARCH_PATH_CONFIG,
)

__all__ = [
    "resolve_script_closure",
    "get_project_files",
    "get_search_directories",
    "SearchPathProvider",
    "normalize_search_dirs",
    "expand_env_vars",
    "NamespaceResolver",
    "candidate_names",
    "find_library",
    "ReferenceSource",
    "NamespaceReferenceSource",
    "DirectiveReferenceSource",
    "PackageReferenceSource",
    "ResolutionContext",
    "ReferenceAggregator",
    "FilenameDeduplicator",
    "LoadBasedDeduplicator",
    "IsolatedProbe",
    "get_deduplicator",
    "filter_duplicates",
    "ClosureBuilder",
    "CompanionLibrary",
    "get_companion_library",
    "reset_companion_library",
    "DEFAULT_IGNORE_NAMESPACES",
    "LIBRARY_EXTENSIONS",
    "ROOT_ENV_VAR",
    "SEARCH_PATH_CONFIG",
]
