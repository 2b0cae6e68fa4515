"""
ScriptLens - Script Compilation Closure Resolver

Resolves the source files and libraries a script needs so an editor can
offer intellisense without compiling it.
"""

__version__ = "1.0.0"

from scriptlens.resolution import (
    ClosureBuilder,
    get_project_files,
    get_search_directories,
    resolve_script_closure,
)
from scriptlens.schemas import DecorationInfo, ReferenceCandidate, ScriptClosure
from scriptlens.decoration import get_decoration_info, needs_autoclass_wrapper

__all__ = [
    "__version__",
    "ClosureBuilder",
    "get_project_files",
    "get_search_directories",
    "resolve_script_closure",
    "DecorationInfo",
    "ReferenceCandidate",
    "ScriptClosure",
    "get_decoration_info",
    "needs_autoclass_wrapper",
]
