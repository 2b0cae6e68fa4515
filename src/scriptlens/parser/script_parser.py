"""
Script parser: the primary script plus every script it transitively imports.

Namespaces, references, search dirs and packages are aggregated across the
whole import graph in first-seen order (the primary script first, then
imports in dependency order).
"""

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from scriptlens.exceptions import ImportNotFoundError, ScriptParseError
from scriptlens.logging_config import logger
from scriptlens.packages import LocalPackageResolver
from scriptlens.paths import ScriptLensPaths, get_paths
from scriptlens.schemas import ImportDirective, PackageReference
from .config import DEFAULT_IGNORE_NAMESPACES, SCRIPT_EXTENSION
from .directives import ScriptDirectives, extract_directives


@dataclass
class ParsedScript:
    """One file of the import graph."""
    path: Path
    directives: ScriptDirectives
    search_dirs: List[str]
    renames: Tuple[Tuple[str, str], ...] = ()
    generated_text: Optional[str] = None  # set when the import is a renamed copy

    @property
    def is_generated(self) -> bool:
        return self.generated_text is not None


def rename_namespaces(content: str, renames: Iterable[Tuple[str, str]]) -> str:
    """Apply rename_namespace(Old, New) pairs to script text."""
    for old, new in renames:
        content = re.sub(rf"(?<![\w.]){re.escape(old)}(?![\w])", new, content)
    return content


def _read_script(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ScriptParseError(str(path), f"cannot read script: {e}") from e


class ScriptParser:
    """
    Parses a script and its import graph.

    Raises ScriptParseError / ImportNotFoundError at construction when the
    script or one of its imports cannot be read or located.
    """

    def __init__(
        self,
        script: str,
        search_dirs: Sequence[str] = (),
        package_resolver: Optional[LocalPackageResolver] = None,
        paths: Optional[ScriptLensPaths] = None,
    ):
        """
        Args:
            script: Path of the primary script
            search_dirs: Extra directories probed for imported scripts
            package_resolver: Resolver for //css_nuget packages
            paths: Path configuration (generated imports go to its cache dir)
        """
        self.script = Path(script).resolve()
        self._extra_dirs = [str(d) for d in search_dirs if d]
        self.package_resolver = package_resolver or LocalPackageResolver()
        self.paths = paths or get_paths()

        self._files: List[ParsedScript] = []
        self._declared_dirs: List[str] = []
        self._visited: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], ParsedScript] = {}
        self.root = self._parse(self.script, _read_script(self.script), ())

    # ------------------------------------------------------------------ parsing

    def _parse(self, path: Path, content: str, renames: Tuple[Tuple[str, str], ...]) -> ParsedScript:
        key = (str(path), renames)
        if key in self._visited:
            return self._visited[key]

        generated = None
        if renames:
            content = generated = rename_namespaces(content, renames)

        directives = extract_directives(content, str(path))
        declared_dirs = [str((path.parent / d).resolve()) for d in directives.search_dirs]
        for directory in declared_dirs:
            if directory not in self._declared_dirs:
                self._declared_dirs.append(directory)
        parsed = ParsedScript(path, directives, declared_dirs, renames, generated)
        self._visited[key] = parsed
        logger.debug(f"Parsed {path}: {len(directives.namespaces)} namespaces, {len(directives.imports)} imports")

        for directive in directives.imports:
            import_path = self._locate_import(directive, parsed)
            import_renames = tuple((old, new) for old, new in directive.renames)
            self._parse(import_path, _read_script(import_path), import_renames)

        # Post-order: a file follows everything it imports
        self._files.append(parsed)
        return parsed

    def _locate_import(self, directive: ImportDirective, importer: ParsedScript) -> Path:
        """
        Find an imported script next to the importer, then on the search dirs.
        """
        name = Path(directive.name)
        names = [name]
        if name.suffix.lower() != SCRIPT_EXTENSION:
            names.append(name.with_name(name.name + SCRIPT_EXTENSION))

        if name.is_absolute():
            probes = names
        else:
            dirs = [str(importer.path.parent)] + importer.search_dirs + self._declared_dirs + self._extra_dirs
            probes = [Path(d) / n for d in dirs for n in names]

        for probe in probes:
            if probe.is_file():
                return probe.resolve()

        raise ImportNotFoundError(str(importer.path), directive.name, [str(p) for p in probes])

    # ---------------------------------------------------------------- aggregates

    @property
    def files(self) -> List[ParsedScript]:
        """Primary script first, then imports in dependency order."""
        return [self.root] + [f for f in self._files if f is not self.root]

    def _collect(self, attribute: str) -> List[str]:
        values: List[str] = []
        for parsed in self.files:
            for value in getattr(parsed.directives, attribute):
                if value not in values:
                    values.append(value)
        return values

    @property
    def referenced_namespaces(self) -> List[str]:
        return self._collect("namespaces")

    @property
    def referenced_assemblies(self) -> List[str]:
        return self._collect("references")

    @property
    def ignore_namespaces(self) -> List[str]:
        ignored = list(DEFAULT_IGNORE_NAMESPACES)
        for value in self._collect("ignore_namespaces"):
            if value not in ignored:
                ignored.append(value)
        return ignored

    @property
    def search_dirs(self) -> List[str]:
        """
        The primary script's directory followed by every declared //css_dir.
        """
        dirs = [str(self.script.parent)]
        for parsed in self.files:
            for directory in parsed.search_dirs:
                if directory not in dirs:
                    dirs.append(directory)
        return dirs

    @property
    def packages(self) -> List[PackageReference]:
        packages: List[PackageReference] = []
        seen = set()
        for parsed in self.files:
            for package in parsed.directives.packages:
                if package.name.lower() in seen:
                    continue
                seen.add(package.name.lower())
                packages.append(package)
        return packages

    @property
    def imports(self) -> List[ParsedScript]:
        """Imported files in dependency order, excluding the primary script."""
        return [f for f in self._files if f is not self.root]

    @property
    def needs_autoclass(self) -> bool:
        return self.root.directives.autoclass

    # ---------------------------------------------------------------- operations

    def resolve_packages(self, suppress_downloading: bool = True) -> List[str]:
        """
        Library paths of the declared packages.

        Args:
            suppress_downloading: When True only locally available packages are used
        """
        return self.package_resolver.resolve(self.packages, suppress_downloading=suppress_downloading)

    def save_imported_scripts(self) -> List[str]:
        """
        Materialize every imported script and return their paths in dependency order.

        Plain imports are used in place. Imports with rename_namespace() are
        written to the imports cache unless an up-to-date copy exists.
        """
        saved: List[str] = []
        for parsed in self.imports:
            path = self._materialize(parsed) if parsed.is_generated else str(parsed.path)
            if path not in saved:
                saved.append(path)
        return saved

    def _materialize(self, parsed: ParsedScript) -> str:
        digest = hashlib.sha1(repr((str(parsed.path), parsed.renames)).encode("utf-8")).hexdigest()[:12]
        target = self.paths.imports_cache_dir / f"{parsed.path.stem}.{digest}{parsed.path.suffix}"

        if target.exists() and target.stat().st_mtime >= parsed.path.stat().st_mtime:
            if target.read_text(encoding="utf-8") == parsed.generated_text:
                return str(target)

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(parsed.generated_text, encoding="utf-8")
        logger.debug(f"Materialized {parsed.path} -> {target}")
        return str(target)
