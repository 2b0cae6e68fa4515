"""
Reference sources: the independent ways a script names the libraries it needs.

Each source turns a ResolutionContext into ReferenceCandidates. The
aggregator unions whatever the configured sources return, so adding a new
discovery mechanism means adding a source class here.
"""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Sequence

from scriptlens.logging_config import logger
from scriptlens.schemas import ReferenceCandidate, ReferenceSourceKind
from .namespace_resolver import NamespaceResolver, strip_quotes


# resolve_packages(suppress_downloading=...) -> library paths
PackageResolverFn = Callable[..., List[str]]


@dataclass
class ResolutionContext:
    """
    Everything a reference source may consult during one resolution.
    """
    namespaces: Sequence[str]
    ignored_namespaces: FrozenSet[str]
    explicit_references: Sequence[str]
    package_resolver: PackageResolverFn
    search_dirs: Sequence[str]
    namespace_resolver: NamespaceResolver = field(default_factory=NamespaceResolver)


class ReferenceSource:
    """Base class for reference discovery mechanisms."""

    kind: ReferenceSourceKind

    def resolve(self, context: ResolutionContext) -> List[ReferenceCandidate]:
        raise NotImplementedError

    def _candidates(self, key: str, paths: Sequence[str]) -> List[ReferenceCandidate]:
        return [ReferenceCandidate(path=p, source=self.kind, key=key) for p in paths]


class NamespaceReferenceSource(ReferenceSource):
    """Libraries inferred from `using` namespaces."""

    kind = ReferenceSourceKind.NAMESPACE

    def resolve(self, context: ResolutionContext) -> List[ReferenceCandidate]:
        resolver = context.namespace_resolver
        candidates: List[ReferenceCandidate] = []
        for namespace in context.namespaces:
            if resolver.is_ignored(namespace, context.ignored_namespaces):
                continue
            found = resolver.find_library(namespace, context.search_dirs)
            candidates.extend(self._candidates(namespace, found))
        return candidates


class DirectiveReferenceSource(ReferenceSource):
    """Libraries named by //css_reference directives."""

    kind = ReferenceSourceKind.DIRECTIVE

    def resolve(self, context: ResolutionContext) -> List[ReferenceCandidate]:
        candidates: List[ReferenceCandidate] = []
        for reference in context.explicit_references:
            key = strip_quotes(reference)
            found = context.namespace_resolver.find_library(key, context.search_dirs)
            if not found:
                logger.debug(f"Explicit reference '{key}' not found on search path")
            candidates.extend(self._candidates(key, found))
        return candidates


class PackageReferenceSource(ReferenceSource):
    """
    Libraries from package-manager dependencies.

    Downloads are always suppressed here: resolution stays offline and a
    package that is not available locally contributes nothing.
    """

    kind = ReferenceSourceKind.PACKAGE

    def resolve(self, context: ResolutionContext) -> List[ReferenceCandidate]:
        found = context.package_resolver(suppress_downloading=True)
        return self._candidates("", found)


DEFAULT_SOURCES = (
    NamespaceReferenceSource,
    DirectiveReferenceSource,
    PackageReferenceSource,
)
