"""
Library identity deduplication.

Two files at different locations can be the same library; loading both
into one runtime is a hard failure for the host. Deduplicators keep the
first path seen for every logical identity.
"""

import json
import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from scriptlens.exceptions import ProbeError
from scriptlens.logging_config import logger
from scriptlens.schemas import DedupStrategy
from .config import PROBE_CONFIG


def _first_per_identity(paths: Iterable[str], identity: Callable[[str], Optional[str]]) -> List[str]:
    unique: List[str] = []
    seen = set()
    for path in paths:
        name = identity(path)
        if name is None or name in seen:
            continue
        seen.add(name)
        unique.append(path)
    return unique


class FilenameDeduplicator:
    """
    Identity = file name without extension, compared case-sensitively.

    Fast and approximate: no file is opened.
    """

    strategy = DedupStrategy.FILENAME
    strategy_used = DedupStrategy.FILENAME

    def identity(self, path: str) -> Optional[str]:
        try:
            name = Path(path).stem
        except TypeError as e:
            logger.debug(f"Skipping un-inspectable candidate {path!r}: {e}")
            return None
        return name or None

    def dedupe(self, paths: Iterable[str]) -> List[str]:
        return _first_per_identity(paths, self.identity)


class IsolatedProbe:
    """
    A short-lived child interpreter that reads assembly identities.

    Probing happens out of process so reading a candidate never touches the
    caller's loaded state. Use as a context manager; the process is killed
    on every exit path.
    """

    def __init__(self, timeout: float = PROBE_CONFIG["timeout_seconds"], python: Optional[str] = None):
        self.timeout = timeout
        self.python = python or sys.executable
        self._process: Optional[subprocess.Popen] = None

    def __enter__(self) -> "IsolatedProbe":
        self._process = subprocess.Popen(
            [self.python, "-m", PROBE_CONFIG["module"]],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        process = self._process
        self._process = None
        if process is None:
            return
        if process.poll() is None:
            process.kill()
        process.wait()
        for stream in (process.stdin, process.stdout, process.stderr):
            if stream is not None:
                stream.close()

    def identities(self, paths: List[str]) -> Dict[str, Optional[str]]:
        """
        Map each path to its declared assembly name (None when it cannot be read).

        Raises:
            ProbeError: if the worker process fails or times out
        """
        if self._process is None:
            raise ProbeError("probe process is not running")

        try:
            out, err = self._process.communicate(json.dumps(paths), timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"identity probe timed out after {self.timeout}s") from e

        if self._process.returncode != 0:
            raise ProbeError(
                f"identity probe exited with {self._process.returncode}",
                returncode=self._process.returncode,
                stderr=err,
            )

        try:
            results = json.loads(out)
        except ValueError as e:
            raise ProbeError(f"identity probe returned invalid output: {e}", stderr=err) from e

        identities = {}
        for item in results:
            if item.get("error"):
                logger.debug(f"Dropping {item['path']}: {item['error']}")
            identities[item["path"]] = item.get("name")
        return identities


class LoadBasedDeduplicator:
    """
    Identity = the simple name the assembly declares in its metadata.

    Authoritative but expensive. Candidates that cannot be read are dropped.
    If the isolated probe itself breaks, falls back to file names.
    `strategy_used` records which identity the last dedupe actually applied.
    """

    strategy = DedupStrategy.LOAD

    def __init__(self, timeout: float = PROBE_CONFIG["timeout_seconds"], probe_factory=None):
        self.timeout = timeout
        self.probe_factory = probe_factory or (lambda: IsolatedProbe(timeout=self.timeout))
        self.strategy_used = DedupStrategy.LOAD

    def dedupe(self, paths: Iterable[str]) -> List[str]:
        paths = [str(p) for p in paths]
        self.strategy_used = DedupStrategy.LOAD
        if not paths:
            return []

        try:
            with self.probe_factory() as probe:
                identities = probe.identities(paths)
        except (ProbeError, OSError) as e:
            logger.warning(f"Load-based identity check unavailable ({e}); using file names")
            self.strategy_used = DedupStrategy.FILENAME
            return FilenameDeduplicator().dedupe(paths)

        return _first_per_identity(paths, identities.get)


Deduplicator = Union[FilenameDeduplicator, LoadBasedDeduplicator]


def get_deduplicator(strategy: Union[DedupStrategy, str] = DedupStrategy.FILENAME, **kwargs) -> Deduplicator:
    """
    Build the deduplicator for a strategy name.

    Args:
        strategy: "filename" (default) or "load"
        **kwargs: Passed to LoadBasedDeduplicator (e.g. timeout)
    """
    strategy = DedupStrategy(strategy)
    if strategy is DedupStrategy.LOAD:
        return LoadBasedDeduplicator(**kwargs)
    return FilenameDeduplicator()


def filter_duplicates(paths: Iterable[str], strategy: Union[DedupStrategy, str] = DedupStrategy.FILENAME) -> List[str]:
    return get_deduplicator(strategy).dedupe(paths)
