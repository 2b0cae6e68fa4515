from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ReferenceSourceKind(str, Enum):
    """
    The discovery mechanism that produced a library candidate.
    """
    NAMESPACE = "namespace"
    DIRECTIVE = "directive"
    PACKAGE = "package"


class DedupStrategy(str, Enum):
    """
    How libraries sharing a logical identity are recognized.
    """
    FILENAME = "filename"  # file stem, no I/O
    LOAD = "load"          # declared assembly name, read in an isolated process


class ReferenceCandidate(BaseModel):
    """
    A resolved library file plus the reference that produced it.
    """
    path: str
    source: ReferenceSourceKind
    key: str = ""  # namespace, directive text or package name


class PackageReference(BaseModel):
    """
    A package dependency declared with //css_nuget.
    """
    name: str
    version: Optional[str] = None
    no_ref: bool = False  # -noref: package is restored but not referenced


class ImportDirective(BaseModel):
    """
    A //css_import (or //css_include) directive.
    """
    name: str
    declared_in: str
    renames: List[List[str]] = Field(default_factory=list)  # [[old, new], ...]
    line: int = 0


class ScriptClosure(BaseModel):
    """
    The compilation closure of a script.

    source_files ends with the script itself; libraries hold one path per
    logical library identity.
    dedup_strategy is the identity rule that was actually applied, which is
    "filename" when a load-based check could not run.
    """
    script: str
    source_files: List[str] = Field(default_factory=list)
    libraries: List[str] = Field(default_factory=list)
    search_dirs: List[str] = Field(default_factory=list)
    dedup_strategy: DedupStrategy = DedupStrategy.FILENAME


class DecorationInfo(BaseModel):
    """
    Offset/length of a code region injected by the auto-class transform.

    offset is -1 (and length 0) when the script carries no injected region.
    """
    offset: int = -1
    length: int = 0

    @property
    def found(self) -> bool:
        return self.offset >= 0
