"""
Script parsing: namespaces, //css_* directives and the import graph.
"""

from .directives import ScriptDirectives, extract_directives, parse_import, parse_nuget
from .script_parser import ParsedScript, ScriptParser, rename_namespaces
from .config import DEFAULT_IGNORE_NAMESPACES, SCRIPT_EXTENSION

__all__ = [
    "ScriptDirectives",
    "extract_directives",
    "parse_import",
    "parse_nuget",
    "ParsedScript",
    "ScriptParser",
    "rename_namespaces",
    "DEFAULT_IGNORE_NAMESPACES",
    "SCRIPT_EXTENSION",
]
