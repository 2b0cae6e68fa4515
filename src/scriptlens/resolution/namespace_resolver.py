"""
Namespace-to-library lookup.

A namespace (or an explicit reference's text) is treated as a library base
name. The name and its dotted prefixes are probed, most specific first,
against every search directory:

    using Newtonsoft.Json.Linq;  ->  Newtonsoft.Json.Linq.dll? Newtonsoft.Json.dll? Newtonsoft.dll?

The first name that matches anywhere wins. All files carrying that name
(any recognized extension, any directory) are returned so platform
variants reach the deduplicator.
"""

import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from scriptlens.logging_config import logger
from .config import DEFAULT_IGNORE_NAMESPACES, LIBRARY_EXTENSIONS


def strip_quotes(text: str) -> str:
    return text.replace('"', "").replace("'", "").strip()


def candidate_names(name: str) -> List[str]:
    """
    Return the name and its dotted prefixes, most specific first.

    Examples:
        "A.B.C" -> ["A.B.C", "A.B", "A"]
    """
    parts = [p for p in name.split(".") if p]
    return [".".join(parts[:i]) for i in range(len(parts), 0, -1)]


class NamespaceResolver:
    """
    Maps namespace names to candidate library files.

    Directory listings are cached for the lifetime of the resolver, which is
    meant to live for a single resolution.
    """

    def __init__(
        self,
        library_extensions: Sequence[str] = LIBRARY_EXTENSIONS,
        ignore_namespaces: Iterable[str] = DEFAULT_IGNORE_NAMESPACES,
    ):
        """
        Args:
            library_extensions: Extensions (with dot) treated as libraries
            ignore_namespaces: Namespaces never looked up
        """
        self.library_extensions = tuple(ext.lower() for ext in library_extensions)
        self.ignore_namespaces = set(ignore_namespaces)
        self._listing_cache: Dict[str, Dict[str, List[str]]] = {}

    def is_ignored(self, name: str, extra: Iterable[str] = ()) -> bool:
        return name in self.ignore_namespaces or name in set(extra)

    def is_library_file(self, path: str) -> bool:
        return os.path.splitext(path)[1].lower() in self.library_extensions

    def find_library(self, name: str, search_dirs: Sequence[str]) -> List[str]:
        """
        Find library files for a namespace or reference name.

        Args:
            name: Namespace, assembly name, file name or path
            search_dirs: Ordered directories to probe

        Returns:
            Matching file paths (possibly empty), in search-path order
        """
        key = strip_quotes(name)
        if not key:
            return []

        direct = self._find_direct_file(key, search_dirs)
        if direct:
            return [direct]

        # "Foo.dll" names one assembly: only "Foo" is tried, never its prefixes
        stem, ext = os.path.splitext(key)
        if ext.lower() in self.library_extensions:
            key = stem
            names = [stem]
        else:
            names = candidate_names(key)

        if os.sep in key or (os.altsep and os.altsep in key):
            return []

        for candidate in names:
            matches = self._find_by_name(candidate, search_dirs)
            if matches:
                logger.debug(f"Resolved '{name}' -> {matches}")
                return matches

        logger.debug(f"No library found for '{name}'")
        return []

    def _find_direct_file(self, key: str, search_dirs: Sequence[str]) -> Optional[str]:
        """
        Resolve a key that already names a library file.
        """
        if not self.is_library_file(key):
            return None

        path = Path(key)
        if path.is_absolute():
            return str(path) if path.is_file() else None

        for directory in search_dirs:
            probe = Path(directory) / path
            if probe.is_file():
                return str(probe)
        return None

    def _find_by_name(self, name: str, search_dirs: Sequence[str]) -> List[str]:
        wanted = name.lower()
        matches: List[str] = []
        for directory in search_dirs:
            matches.extend(self._listing(directory).get(wanted, []))
        return matches

    def _listing(self, directory: str) -> Dict[str, List[str]]:
        """
        Map lowercase stem -> library paths for one directory.
        """
        cached = self._listing_cache.get(directory)
        if cached is not None:
            return cached

        listing: Dict[str, List[str]] = {}
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as e:
            logger.debug(f"Cannot list search dir {directory}: {e}")
            entries = []

        for entry in entries:
            stem, ext = os.path.splitext(entry.name)
            ext = ext.lower()
            if ext not in self.library_extensions:
                continue
            try:
                if not entry.is_file():
                    continue
            except OSError:
                continue
            listing.setdefault(stem.lower(), []).append(os.path.join(directory, entry.name))

        # Keep the configured extension order (.dll before .exe) within a name
        for paths in listing.values():
            paths.sort(key=lambda p: self.library_extensions.index(os.path.splitext(p)[1].lower()))

        self._listing_cache[directory] = listing
        return listing


def find_library(name: str, search_dirs: Sequence[str]) -> List[str]:
    """Convenience wrapper using a fresh NamespaceResolver."""
    return NamespaceResolver().find_library(name, search_dirs)
