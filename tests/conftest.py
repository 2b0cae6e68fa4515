"""
Pytest configuration for the ScriptLens test suite.

This conftest.py provides:
- Machine-mode logging (suppresses console output)
- An isolated environment (no real CSSCRIPT_DIR, home or package cache)
- Fixtures for temp script projects and synthesized .NET assemblies
"""

import os
import struct
from pathlib import Path

import pytest

from scriptlens.logging_config import setup_logging
from scriptlens.packages import LocalPackageResolver
from scriptlens.paths import ScriptLensPaths, reset_paths
from scriptlens.resolution import CompanionLibrary, reset_companion_library
from scriptlens.user_config import reset_user_config


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

def pytest_configure(config):
    """Configure pytest for machine-mode operation."""
    os.environ.setdefault("SCRIPTLENS_MACHINE_MODE", "1")


@pytest.fixture(autouse=True)
def setup_test_logging():
    """
    Machine mode by default - suppress console logs for clean test output.
    """
    setup_logging(level="DEBUG", suppress_console=True)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Keep tests away from the real engine root, home and package cache.
    """
    monkeypatch.delenv("CSSCRIPT_DIR", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("NUGET_PACKAGES", str(tmp_path / "nuget"))
    reset_paths()
    reset_user_config()
    reset_companion_library()
    yield
    reset_paths()
    reset_user_config()
    reset_companion_library()


# ============================================================================
# PROJECT FIXTURES
# ============================================================================

@pytest.fixture
def lens_paths(tmp_path):
    """Path configuration rooted in the test's temp directory."""
    return ScriptLensPaths(
        documents_root=tmp_path / "Documents",
        home=tmp_path / "home",
        cache_root=tmp_path / "cache",
    )


@pytest.fixture
def package_resolver(tmp_path):
    """A package resolver over an empty, test-local package root."""
    root = tmp_path / "packages"
    root.mkdir()
    return LocalPackageResolver(roots=[root])


@pytest.fixture
def no_companion():
    """Companion lookup that never finds a host library."""
    return CompanionLibrary(modules=lambda: {})


@pytest.fixture
def write_file():
    """
    Write a text file, creating parent directories.

    Usage:
        path = write_file(tmp_path / "a" / "script.cs", "using Foo;")
    """
    def _write(path: Path, content: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_library():
    """
    Create a placeholder library file (contents irrelevant for lookups).
    """
    def _make(path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"MZ")
        return path

    return _make


# ============================================================================
# ASSEMBLY SYNTHESIS
# ============================================================================

def build_assembly(name: str, module_name: str = None) -> bytes:
    """
    Build the smallest PE32 image whose ECMA-335 metadata declares an
    assembly called `name` (Module and Assembly tables only).
    """
    module_name = module_name or f"{name}.dll"
    strings = b"\0" + name.encode() + b"\0" + module_name.encode() + b"\0"
    strings += b"\0" * (-len(strings) % 4)
    name_index = 1
    module_index = len(name.encode()) + 2

    valid = (1 << 0x00) | (1 << 0x20)
    tables = struct.pack("<IBBBBQQ", 0, 2, 0, 0, 1, valid, 0)
    tables += struct.pack("<II", 1, 1)
    tables += struct.pack("<HHHHH", 0, module_index, 1, 0, 0)
    tables += struct.pack("<IHHHHIHHH", 0x8004, 1, 0, 0, 0, 0, 0, name_index, 0)
    tables += b"\0" * (-len(tables) % 4)

    version = b"v4.0.30319\0\0"
    tables_offset = 16 + len(version) + 4 + (8 + 4) + (8 + 12)
    strings_offset = tables_offset + len(tables)
    metadata = struct.pack("<IHHII", 0x424A5342, 1, 1, 0, len(version)) + version
    metadata += struct.pack("<HH", 0, 2)
    metadata += struct.pack("<II", tables_offset, len(tables)) + b"#~\0\0"
    metadata += struct.pack("<II", strings_offset, len(strings)) + b"#Strings\0\0\0\0"
    metadata += tables + strings

    cli_rva = 0x2000
    cli = struct.pack("<IHHII", 72, 2, 5, cli_rva + 72, len(metadata)) + b"\0" * (72 - 16)
    section = cli + metadata
    section += b"\0" * (-len(section) % 0x200)

    dos = bytearray(0x40)
    dos[0:2] = b"MZ"
    struct.pack_into("<I", dos, 0x3C, 0x40)
    coff = b"PE\0\0" + struct.pack("<HHIIIHH", 0x14C, 1, 0, 0, 0, 224, 0x2102)
    optional = bytearray(224)
    struct.pack_into("<H", optional, 0, 0x10B)
    struct.pack_into("<II", optional, 96 + 14 * 8, cli_rva, 72)
    section_header = struct.pack(
        "<8sIIIIIIHHI", b".text", len(section), cli_rva, len(section), 0x200, 0, 0, 0, 0, 0x60000020
    )
    headers = bytes(dos) + coff + bytes(optional) + section_header
    headers += b"\0" * (0x200 - len(headers))
    return headers + section


@pytest.fixture
def make_assembly():
    """
    Write a synthesized assembly declaring `name` to `path`.
    """
    def _make(path: Path, name: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_assembly(name))
        return path

    return _make


@pytest.fixture
def assembly_bytes():
    """
    The raw image builder, for tests that tamper with the bytes.
    """
    return build_assembly
