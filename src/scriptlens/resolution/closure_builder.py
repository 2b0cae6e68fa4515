"""
Closure building: the source files and libraries needed to compile a script.

    parse script (+ imports)
      -> merge search dirs (script, global, user scripts dir)
      -> materialize imported scripts
      -> aggregate namespace / directive / package references
      -> dedupe by library identity
      -> append host companion library
"""

import sys
from typing import Callable, Dict, List, Optional, Sequence

from scriptlens.exceptions import ConfigError
from scriptlens.logging_config import logger
from scriptlens.packages import LocalPackageResolver
from scriptlens.parser import ScriptParser
from scriptlens.paths import ScriptLensPaths, get_paths
from scriptlens.schemas import DedupStrategy, ScriptClosure
from .aggregator import ReferenceAggregator
from .config import DEFAULT_IGNORE_NAMESPACES, HOST_CONFIG, LIBRARY_EXTENSIONS, PROBE_CONFIG
from .deduplicator import Deduplicator, get_deduplicator
from .namespace_resolver import NamespaceResolver
from .search_paths import SearchPathProvider, normalize_search_dirs


class CompanionLibrary:
    """
    Location of the host environment's own library, if the host is loaded.

    The host is detected among the modules imported in this process by
    package name prefix. Computed on first access, read-only afterwards.
    """

    def __init__(self, prefix: str = HOST_CONFIG["companion_prefix"], modules: Optional[Callable[[], Dict]] = None):
        """
        Args:
            prefix: Top-level package name of the host library
            modules: Returns the loaded modules mapping (defaults to sys.modules)
        """
        self.prefix = prefix
        self._modules = modules or (lambda: dict(sys.modules))
        self._located = False
        self._path: Optional[str] = None

    @property
    def path(self) -> Optional[str]:
        if not self._located:
            self._path = self._locate()
            self._located = True
        return self._path

    def _locate(self) -> Optional[str]:
        matches = []
        for name, module in self._modules().items():
            if name.split(".")[0] != self.prefix:
                continue
            location = getattr(module, "__file__", None)
            if location:
                matches.append((name.count("."), name, location))

        if not matches:
            return None
        # The top-level package wins over its submodules
        location = min(matches)[2]
        logger.debug(f"Host companion library: {location}")
        return location


_companion: Optional[CompanionLibrary] = None


def get_companion_library() -> CompanionLibrary:
    """Get the process-wide companion library lookup."""
    global _companion
    if _companion is None:
        _companion = CompanionLibrary()
    return _companion


def reset_companion_library() -> None:
    """Forget the memoized companion lookup (for testing)."""
    global _companion
    _companion = None


class ClosureBuilder:
    """
    Resolves a script's compilation closure.

    A builder can serve many requests; every resolve() call parses afresh and
    uses its own namespace resolver, so nothing leaks between calls.
    """

    def __init__(
        self,
        dedup_strategy: DedupStrategy = DedupStrategy.FILENAME,
        search_path_provider: Optional[SearchPathProvider] = None,
        package_resolver: Optional[LocalPackageResolver] = None,
        paths: Optional[ScriptLensPaths] = None,
        companion: Optional[CompanionLibrary] = None,
        deduplicator: Optional[Deduplicator] = None,
        aggregator: Optional[ReferenceAggregator] = None,
        library_extensions: Sequence[str] = LIBRARY_EXTENSIONS,
        ignore_namespaces: Sequence[str] = (),
        probe_timeout: float = PROBE_CONFIG["timeout_seconds"],
    ):
        """
        Args:
            dedup_strategy: Identity strategy when no deduplicator is given
            search_path_provider: Global search dir source
            package_resolver: Package resolver handed to the script parser
            paths: Path configuration (user scripts dir, imports cache)
            companion: Host companion lookup (process-wide one by default)
            deduplicator: Explicit deduplicator, overrides dedup_strategy
            aggregator: Explicit aggregator (a fresh one per call otherwise)
            library_extensions: Extensions recognized as libraries
            ignore_namespaces: Extra namespaces never resolved
            probe_timeout: Timeout of the load-based identity probe
        """
        self.search_path_provider = search_path_provider or SearchPathProvider()
        self.package_resolver = package_resolver
        self.paths = paths or get_paths()
        self.companion = companion or get_companion_library()
        if deduplicator is None:
            options = {"timeout": probe_timeout} if DedupStrategy(dedup_strategy) is DedupStrategy.LOAD else {}
            deduplicator = get_deduplicator(dedup_strategy, **options)
        self.deduplicator = deduplicator
        self.aggregator = aggregator
        self.library_extensions = tuple(library_extensions)
        self.ignore_namespaces = tuple(DEFAULT_IGNORE_NAMESPACES) + tuple(ignore_namespaces)

    @classmethod
    def from_config(cls, config, dedup_strategy: Optional[DedupStrategy] = None, **kwargs) -> "ClosureBuilder":
        """
        Build from a UserConfig, letting explicit arguments win.

        Raises:
            ConfigError: if the configured dedup strategy is unknown
        """
        prefix = config.get("host.companion_prefix", HOST_CONFIG["companion_prefix"])
        if "companion" not in kwargs and prefix != HOST_CONFIG["companion_prefix"]:
            kwargs["companion"] = CompanionLibrary(prefix)
        configured = config.get("resolution.dedup_strategy", DedupStrategy.FILENAME)
        try:
            strategy = DedupStrategy(dedup_strategy or configured)
        except ValueError as e:
            raise ConfigError(f"Unknown resolution.dedup_strategy '{configured}'") from e

        return cls(
            dedup_strategy=strategy,
            library_extensions=config.get("resolution.library_extensions", LIBRARY_EXTENSIONS),
            ignore_namespaces=config.get("resolution.ignore_namespaces", []),
            probe_timeout=config.get("probe.timeout_seconds", PROBE_CONFIG["timeout_seconds"]),
            **kwargs,
        )

    def search_dirs_for(self, parser: ScriptParser) -> List[str]:
        """Script-declared dirs, then global dirs, then the user scripts dir."""
        dirs = list(parser.search_dirs)
        dirs.extend(self.search_path_provider.get_search_directories())
        dirs.append(str(self.paths.user_scripts_dir))
        return normalize_search_dirs(dirs)

    def _new_aggregator(self) -> ReferenceAggregator:
        if self.aggregator is not None:
            return self.aggregator
        return ReferenceAggregator(
            NamespaceResolver(self.library_extensions, self.ignore_namespaces)
        )

    def resolve(self, script: str) -> ScriptClosure:
        """
        Resolve the compilation closure of a script.

        Args:
            script: Path of the script

        Returns:
            ScriptClosure with source files (script last) and libraries

        Raises:
            ScriptParseError, ImportNotFoundError: the script or an import cannot be read
            OSError: a generated import cannot be written
        """
        logger.info(f"Resolving closure for {script}")

        parser = ScriptParser(script, package_resolver=self.package_resolver, paths=self.paths)
        search_dirs = self.search_dirs_for(parser)

        source_files = parser.save_imported_scripts()
        source_files.append(str(parser.script))

        candidates = self._new_aggregator().aggregate(
            parser.referenced_namespaces,
            parser.ignore_namespaces,
            parser.referenced_assemblies,
            parser.resolve_packages,
            search_dirs,
        )
        libraries = self.deduplicator.dedupe([c.path for c in candidates])

        companion = self.companion.path
        if companion:
            libraries.append(companion)

        logger.info(f"Closure: {len(source_files)} source file(s), {len(libraries)} librar(ies)")
        return ScriptClosure(
            script=str(parser.script),
            source_files=source_files,
            libraries=libraries,
            search_dirs=search_dirs,
            dedup_strategy=getattr(self.deduplicator, "strategy_used", self.deduplicator.strategy),
        )
