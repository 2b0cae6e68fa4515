"""
Directive extraction for a single script file.

Pure text scanning: no file system access happens here.
"""

from dataclasses import dataclass, field
from typing import List

from scriptlens.schemas import ImportDirective, PackageReference
from .config import (
    AUTOCLASS_RE,
    BLOCK_COMMENT_RE,
    DIRECTIVE_ALIASES,
    DIRECTIVE_RE,
    RENAME_NAMESPACE_RE,
    USING_RE,
)


@dataclass
class ScriptDirectives:
    """Everything one file declares about its dependencies."""
    namespaces: List[str] = field(default_factory=list)
    references: List[str] = field(default_factory=list)
    imports: List[ImportDirective] = field(default_factory=list)
    search_dirs: List[str] = field(default_factory=list)
    packages: List[PackageReference] = field(default_factory=list)
    ignore_namespaces: List[str] = field(default_factory=list)
    autoclass: bool = False


def _unquote(value: str) -> str:
    return value.strip().strip('"').strip("'").strip()


def _blank_block_comments(content: str) -> str:
    # Keep newlines so line numbers survive
    return BLOCK_COMMENT_RE.sub(lambda m: "\n" * m.group(0).count("\n"), content)


def _append_unique(items: List[str], value: str) -> None:
    if value and value not in items:
        items.append(value)


def parse_import(value: str, declared_in: str, line: int) -> ImportDirective:
    """
    Parse `file[, rename_namespace(Old, New)...]`.
    """
    name, _, options = value.partition(",")
    renames = [[old, new] for old, new in RENAME_NAMESPACE_RE.findall(options)]
    return ImportDirective(name=_unquote(name), declared_in=declared_in, renames=renames, line=line)


def parse_nuget(value: str) -> List[PackageReference]:
    """
    Parse `[-noref] [-ver:V] Name[, Name...]`.

    Unknown options are ignored.
    """
    version = None
    no_ref = False
    names = []
    for token in value.replace(",", " ").split():
        if token.startswith("-"):
            option = token[1:]
            if option.lower() == "noref":
                no_ref = True
            elif option.lower().startswith("ver:"):
                version = _unquote(option[4:]) or None
            continue
        names.append(_unquote(token))
    return [PackageReference(name=n, version=version, no_ref=no_ref) for n in names if n]


def extract_directives(content: str, file_path: str = "") -> ScriptDirectives:
    """
    Extract namespaces and //css_* directives from script text.

    Args:
        content: Script source
        file_path: Used to tag import directives with their origin

    Returns:
        ScriptDirectives with values in source order, de-duplicated
    """
    result = ScriptDirectives()
    result.autoclass = bool(AUTOCLASS_RE.search(content))
    content = _blank_block_comments(content)

    for match in USING_RE.finditer(content):
        _append_unique(result.namespaces, match.group(1))

    for match in DIRECTIVE_RE.finditer(content):
        kind = DIRECTIVE_ALIASES.get(match.group(1).lower())
        value = match.group(2).strip().rstrip(";").strip()
        if kind is None or not value:
            continue

        if kind == "reference":
            _append_unique(result.references, _unquote(value))
        elif kind == "import":
            line = content.count("\n", 0, match.start()) + 1
            result.imports.append(parse_import(value, file_path, line))
        elif kind == "searchdir":
            _append_unique(result.search_dirs, _unquote(value))
        elif kind == "nuget":
            result.packages.extend(parse_nuget(value))
        elif kind == "ignore_namespace":
            _append_unique(result.ignore_namespaces, _unquote(value))

    return result
