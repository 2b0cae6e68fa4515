"""
Reference aggregation.

Unions the candidates of every reference source into one ordered list.
Identical paths collapse here; different paths that are the same library
are left for the identity deduplicator.
"""

from typing import Iterable, List, Optional, Sequence

from scriptlens.logging_config import logger
from scriptlens.schemas import ReferenceCandidate
from .namespace_resolver import NamespaceResolver
from .reference_sources import (
    DEFAULT_SOURCES,
    PackageResolverFn,
    ReferenceSource,
    ResolutionContext,
)


class ReferenceAggregator:
    """
    Combines namespace, directive and package references into one candidate set.
    """

    def __init__(
        self,
        namespace_resolver: Optional[NamespaceResolver] = None,
        sources: Optional[Sequence[ReferenceSource]] = None,
    ):
        """
        Args:
            namespace_resolver: Resolver shared by all sources (fresh one by default)
            sources: Reference sources in union order (namespace, directive, package by default)
        """
        self.namespace_resolver = namespace_resolver or NamespaceResolver()
        self.sources = list(sources) if sources is not None else [cls() for cls in DEFAULT_SOURCES]

    def aggregate(
        self,
        namespaces: Iterable[str],
        ignored_namespaces: Iterable[str],
        explicit_references: Iterable[str],
        package_resolver: PackageResolverFn,
        search_dirs: Sequence[str],
    ) -> List[ReferenceCandidate]:
        """
        Resolve every reference kind against the search path.

        Args:
            namespaces: Namespaces declared by the script
            ignored_namespaces: Namespaces never to resolve
            explicit_references: Explicit reference directive values
            package_resolver: Callable accepting suppress_downloading
            search_dirs: Normalized search path

        Returns:
            Candidates in source order, unique by path
        """
        context = ResolutionContext(
            namespaces=list(namespaces),
            ignored_namespaces=frozenset(ignored_namespaces),
            explicit_references=list(explicit_references),
            package_resolver=package_resolver,
            search_dirs=list(search_dirs),
            namespace_resolver=self.namespace_resolver,
        )

        seen = set()
        candidates: List[ReferenceCandidate] = []
        for source in self.sources:
            found = source.resolve(context)
            logger.debug(f"{source.kind.value} references: {len(found)} candidate(s)")
            for candidate in found:
                if candidate.path in seen:
                    continue
                seen.add(candidate.path)
                candidates.append(candidate)

        return candidates

    def aggregate_paths(self, *args, **kwargs) -> List[str]:
        """Same as aggregate() but returns plain paths."""
        return [c.path for c in self.aggregate(*args, **kwargs)]
