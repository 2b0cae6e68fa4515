"""
Local package resolution for //css_nuget dependencies.

Only packages already present in a package root are resolved. Fetching
missing packages is delegated to an optional downloader and never happens
when downloading is suppressed, which is always the case during closure
resolution.

Supported layouts under each root:

    <root>/<id lowercase>/<version>/lib/<framework>/*.dll    (global packages folder)
    <root>/<Id>.<version>/lib/<framework>/*.dll              (packages.config folder)
"""

import os
import re
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from scriptlens.exceptions import PackageResolutionError
from scriptlens.logging_config import logger
from scriptlens.paths import ROOT_ENV_VAR
from scriptlens.schemas import PackageReference

# Downloader(package) is expected to place the package under one of the roots
Downloader = Callable[[PackageReference], None]

PACKAGE_LIBRARY_EXTENSIONS = (".dll",)
_VERSION_SUFFIX_RE = re.compile(r"^(?P<id>.+?)\.(?P<version>\d+(?:\.\d+)*(?:-[0-9A-Za-z.-]+)?)$")

# Target framework monikers, newest family first: net5.0+, netstandard, netcoreapp, net4x
_MODERN_TFM_RE = re.compile(r"^net(\d+\.\d+(?:\.\d+)*)$")
_NETSTANDARD_TFM_RE = re.compile(r"^netstandard(\d+(?:\.\d+)*)$")
_NETCOREAPP_TFM_RE = re.compile(r"^netcoreapp(\d+(?:\.\d+)*)$")
_LEGACY_TFM_RE = re.compile(r"^net(\d+)$")


def version_key(version: str) -> Tuple:
    """
    Sort key for package versions: numeric parts compared numerically and a
    release sorts after its prereleases.
    """
    release, _, prerelease = version.partition("-")
    numbers = []
    for part in release.split("."):
        numbers.append(int(part) if part.isdigit() else -1)
    return (tuple(numbers), prerelease == "", prerelease)


def framework_key(name: str) -> Tuple:
    """
    Sort key for lib/<tfm> folders; higher sorts newer.

    Platform suffixes ("net8.0-windows") are ignored. Unknown monikers sort last.
    """
    moniker = name.lower().partition("-")[0]
    for rank, pattern in ((4, _MODERN_TFM_RE), (3, _NETSTANDARD_TFM_RE), (2, _NETCOREAPP_TFM_RE)):
        match = pattern.match(moniker)
        if match:
            return (rank, tuple(int(p) for p in match.group(1).split(".")), name)
    match = _LEGACY_TFM_RE.match(moniker)
    if match:
        # net472 -> 4.7.2
        return (1, tuple(int(d) for d in match.group(1)), name)
    return (0, (), name)


def default_package_roots(environ: Optional[Mapping[str, str]] = None) -> List[Path]:
    """
    Package roots probed when none are configured.

    $NUGET_PACKAGES (or ~/.nuget/packages), then <CSSCRIPT_DIR>/Lib/Bin/NuGet.
    """
    env = os.environ if environ is None else environ
    roots = [Path(env["NUGET_PACKAGES"]) if env.get("NUGET_PACKAGES") else Path.home() / ".nuget" / "packages"]
    if env.get(ROOT_ENV_VAR):
        roots.append(Path(env[ROOT_ENV_VAR]) / "Lib" / "Bin" / "NuGet")
    return roots


class LocalPackageResolver:
    """
    Translates package dependencies into library paths from local package roots.
    """

    def __init__(self, roots: Optional[Sequence[Path]] = None, downloader: Optional[Downloader] = None):
        """
        Args:
            roots: Package roots in probing order (defaults to default_package_roots())
            downloader: Called for packages missing locally when downloading is allowed
        """
        self.roots = [Path(r) for r in roots] if roots is not None else default_package_roots()
        self.downloader = downloader

    def resolve(self, packages: Iterable[PackageReference], suppress_downloading: bool = True) -> List[str]:
        """
        Resolve packages to library paths.

        Args:
            packages: Declared package dependencies
            suppress_downloading: Never fetch missing packages when True

        Returns:
            Library paths of locally available packages, in declaration order

        Raises:
            PackageResolutionError: if the downloader fails
        """
        libraries: List[str] = []
        for package in packages:
            if package.no_ref:
                continue

            package_dir = self.find_package_dir(package)
            if package_dir is None and not suppress_downloading and self.downloader is not None:
                logger.info(f"Fetching missing package {package.name}")
                try:
                    self.downloader(package)
                except OSError as e:
                    raise PackageResolutionError(package.name, f"download failed: {e}") from e
                package_dir = self.find_package_dir(package)

            if package_dir is None:
                logger.debug(f"Package {package.name} is not available locally")
                continue

            for library in self.package_libraries(package_dir):
                if library not in libraries:
                    libraries.append(library)
        return libraries

    def find_package_dir(self, package: PackageReference) -> Optional[Path]:
        """
        Locate the installed package directory (the one holding lib/).
        """
        for root in self.roots:
            candidates = self._versions_in_root(root, package.name)
            if package.version:
                candidates = [c for c in candidates if c[0] == package.version]
            if candidates:
                candidates.sort(key=lambda c: version_key(c[0]), reverse=True)
                return candidates[0][1]
        return None

    def _versions_in_root(self, root: Path, name: str) -> List[Tuple[str, Path]]:
        found: List[Tuple[str, Path]] = []
        wanted = name.lower()
        try:
            entries = list(root.iterdir())
        except OSError:
            return found

        for entry in entries:
            if not entry.is_dir():
                continue
            if entry.name.lower() == wanted:
                # <root>/<id>/<version>/
                try:
                    found.extend((v.name, v) for v in entry.iterdir() if v.is_dir())
                except OSError:
                    continue
                continue
            match = _VERSION_SUFFIX_RE.match(entry.name)
            if match and match.group("id").lower() == wanted:
                found.append((match.group("version"), entry))
        return found

    def package_libraries(self, package_dir: Path) -> List[str]:
        """
        List the package's libraries, newest target framework first.
        """
        lib_dir = package_dir / "lib"
        if not lib_dir.is_dir():
            return []

        libraries: List[str] = []
        frameworks = sorted(
            (d for d in lib_dir.iterdir() if d.is_dir()),
            key=lambda d: framework_key(d.name),
            reverse=True,
        )
        for directory in [lib_dir] + frameworks:
            for item in sorted(directory.iterdir()):
                if item.is_file() and item.suffix.lower() in PACKAGE_LIBRARY_EXTENSIONS:
                    libraries.append(str(item))
        return libraries
