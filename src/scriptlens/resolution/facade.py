"""
Public API for closure resolution.

Provides high-level functions for resolving a script's source files and
libraries.
"""

from typing import List, Optional, Union

from scriptlens.logging_config import logger
from scriptlens.schemas import DedupStrategy, ScriptClosure
from scriptlens.user_config import UserConfig, get_user_config
from .closure_builder import ClosureBuilder
from .search_paths import SearchPathProvider


def resolve_script_closure(
    script: str,
    dedup_strategy: Optional[Union[DedupStrategy, str]] = None,
    config: Optional[UserConfig] = None,
    **kwargs,
) -> ScriptClosure:
    """
    Resolve the compilation closure of a script.

    This is the main entry point. It:
    1. Builds a ClosureBuilder from the user configuration
    2. Parses the script and its imports
    3. Returns the source files and deduplicated libraries

    Args:
        script: Path of the script
        dedup_strategy: "filename" or "load"; defaults to the configured strategy
        config: User configuration (process-wide one by default)
        **kwargs: Passed to ClosureBuilder (paths, package_resolver, ...)

    Returns:
        ScriptClosure
    """
    config = config or get_user_config()
    strategy = DedupStrategy(dedup_strategy) if dedup_strategy else None
    builder = ClosureBuilder.from_config(config, dedup_strategy=strategy, **kwargs)
    return builder.resolve(script)


def get_project_files(script: str, **kwargs):
    """
    Resolve a script into a (source_files, libraries) pair.
    """
    closure = resolve_script_closure(script, **kwargs)
    return closure.source_files, closure.libraries


def get_search_directories() -> List[str]:
    """
    Get the global library search directories ($CSSCRIPT_DIR based).
    """
    dirs = SearchPathProvider().get_search_directories()
    logger.debug(f"Global search dirs: {dirs}")
    return dirs
