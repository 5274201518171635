"""Filesystem probes for server-data folders and CFG files.

INVARIANT: The filesystem is the source of truth at validation time.
Nothing here caches a probe result between calls.

A server-data folder is recognised by one structural fact: it has a
``resources`` subdirectory.  When the user's path lacks it, a fixed list
of recovery strategies guesses where the path sits relative to the real
folder.  The first strategy to produce a verified path wins; the path is
returned as a suggestion, never applied.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from setupctl.domain.paths import join, normalize_folder, parent_folder
from setupctl.domain.recovery import RecoverySuggestion

logger = logging.getLogger(__name__)

RESOURCES_DIR = "resources"
DEFAULT_CFG_NAME = "server.cfg"
LOCATE_FAILURE = "Couldn't locate or read a resources folder inside of the path provided."


# ---------------------------------------------------------------------------
# Directory scanning
# ---------------------------------------------------------------------------


@dataclass
class ScanReport:
    """Directories that could not be enumerated during one locate() call."""

    unreadable: list[str] = field(default_factory=list)

    def note(self, path: str, exc: OSError) -> None:
        logger.debug("Cannot enumerate %s: %s", path, exc)
        if path not in self.unreadable:
            self.unreadable.append(path)


def has_resources(folder: str, scan: ScanReport | None = None) -> bool:
    """Whether *folder* contains a ``resources`` directory."""
    try:
        return (Path(folder) / RESOURCES_DIR).is_dir()
    except OSError as exc:
        if scan is not None:
            scan.note(folder, exc)
        return False


def list_directories(folder: str, scan: ScanReport) -> list[str]:
    """Names of the directories directly inside *folder*, in enumeration order.

    An unreadable *folder* yields an empty list and is recorded on *scan*.
    """
    names: list[str] = []
    try:
        for entry in Path(folder).iterdir():
            try:
                if entry.is_dir():
                    names.append(entry.name)
            except OSError as exc:
                scan.note(str(entry), exc)
    except OSError as exc:
        scan.note(folder, exc)
        return []
    return names


def find_data_folders_inside(folder: str, scan: ScanReport) -> list[str]:
    """Folder-form paths of the subdirectories of *folder* that hold ``resources``."""
    return [
        normalize_folder(join(folder, name))
        for name in list_directories(folder, scan)
        if has_resources(join(folder, name), scan)
    ]


# ---------------------------------------------------------------------------
# DataFolderLocator
# ---------------------------------------------------------------------------


class LocateStatus(StrEnum):
    OK = "ok"
    RECOVERABLE = "recoverable"
    FAIL = "fail"


@dataclass(frozen=True)
class LocateOutcome:
    """Result of :func:`locate_data_folder`."""

    status: LocateStatus
    suggestion: RecoverySuggestion | None = None
    reason: str | None = None
    unreadable: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status is LocateStatus.OK


RecoveryStrategy = Callable[[str, ScanReport], str | None]


def _parent_has_resources(candidate: str, scan: ScanReport) -> str | None:
    parent = parent_folder(candidate)
    if parent != candidate and has_resources(parent, scan):
        return parent
    return None


def _sibling_in_parent(candidate: str, scan: ScanReport) -> str | None:
    parent = parent_folder(candidate)
    if parent == candidate:
        return None
    matches = find_data_folders_inside(parent, scan)
    return matches[0] if matches else None


def _embedded_resources_segment(candidate: str, scan: ScanReport) -> str | None:
    marker = f"/{RESOURCES_DIR}"
    if marker not in candidate:
        return None
    truncated = candidate.split(marker, 1)[0] or "/"
    if has_resources(truncated, scan):
        return normalize_folder(truncated)
    return None


def _subfolder_has_resources(candidate: str, scan: ScanReport) -> str | None:
    matches = find_data_folders_inside(candidate, scan)
    return matches[0] if matches else None


# Evaluated in order; the first strategy returning a path wins.
RECOVERY_STRATEGIES: tuple[RecoveryStrategy, ...] = (
    _parent_has_resources,
    _sibling_in_parent,
    _embedded_resources_segment,
    _subfolder_has_resources,
)


def locate_data_folder(
    candidate: str,
    *,
    strategies: tuple[RecoveryStrategy, ...] = RECOVERY_STRATEGIES,
) -> LocateOutcome:
    """Decide whether *candidate* is a server-data folder.

    *candidate* must already be normalized (folder form).  Returns
    ``OK`` on a direct hit, ``RECOVERABLE`` with a suggestion when one of
    the recovery *strategies* finds a verified alternative, else ``FAIL``.
    """
    scan = ScanReport()
    if has_resources(candidate, scan):
        return LocateOutcome(status=LocateStatus.OK)

    for strategy in strategies:
        found = strategy(candidate, scan)
        if found is not None:
            logger.debug("Data folder recovery via %s: %s", strategy.__name__, found)
            return LocateOutcome(
                status=LocateStatus.RECOVERABLE,
                suggestion=RecoverySuggestion.for_path(found),
                unreadable=tuple(scan.unreadable),
            )

    reason = LOCATE_FAILURE
    if scan.unreadable:
        listed = ", ".join(f"<code>{p}</code>" for p in scan.unreadable)
        reason = f"{LOCATE_FAILURE} <br>\nSome folders could not be read: {listed}"
    return LocateOutcome(
        status=LocateStatus.FAIL,
        reason=reason,
        unreadable=tuple(scan.unreadable),
    )


# ---------------------------------------------------------------------------
# CfgResolver
# ---------------------------------------------------------------------------


class CfgPathError(Exception):
    """The CFG file could not be found or read."""


def _path_exists(path: str) -> bool:
    try:
        return Path(path).exists()
    except OSError:
        return False


def resolve_cfg_path(data_folder: str, cfg_ref: str) -> str:
    """Resolve *cfg_ref* against *data_folder*.

    A reference that exists as given (absolute, or relative to the process)
    is used unchanged; anything else is taken relative to the data folder.
    Both inputs must already be normalized.
    """
    if _path_exists(cfg_ref):
        return cfg_ref
    return join(data_folder, cfg_ref)


def runner_cfg_path(cfg_ref: str, resolved: str) -> str:
    """The CFG path to persist for a server started inside the data folder.

    *resolved* is what :func:`resolve_cfg_path` returned for *cfg_ref*.  A
    relative reference that was found from the process working directory
    is made absolute; anything else already points at the right file from
    the data folder and is kept as given.
    """
    if resolved == cfg_ref and not Path(cfg_ref).is_absolute():
        return Path(cfg_ref).absolute().as_posix()
    return cfg_ref


def read_cfg_file(cfg_path: str) -> str:
    """Return the text of *cfg_path* or raise :class:`CfgPathError`."""
    path = Path(cfg_path)
    if not _path_exists(cfg_path):
        raise CfgPathError("File doesn't exist or its unreadable.")
    try:
        if path.is_dir():
            raise CfgPathError("File path is a directory.")
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise CfgPathError("Cannot read CFG file.") from exc


def is_readable_cfg(cfg_path: str) -> bool:
    """Whether :func:`read_cfg_file` would succeed for *cfg_path*."""
    try:
        read_cfg_file(cfg_path)
    except CfgPathError:
        return False
    return True


@dataclass(frozen=True)
class CfgLookup:
    """Outcome of :func:`lookup_cfg_file`.

    Exactly one of *text* (read OK at *path*), *suggestion* (the
    default ``server.cfg`` reads instead) or *error* is set.
    """

    path: str
    text: str | None = None
    suggestion: RecoverySuggestion | None = None
    error: str | None = None


def lookup_cfg_file(data_folder: str, cfg_ref: str) -> CfgLookup:
    """Resolve and read a CFG file, with a single ``server.cfg`` fallback."""
    cfg_path = resolve_cfg_path(data_folder, cfg_ref)
    try:
        return CfgLookup(path=cfg_path, text=read_cfg_file(cfg_path))
    except CfgPathError as exc:
        error = str(exc)

    fallback = join(data_folder, DEFAULT_CFG_NAME)
    if fallback != cfg_path and is_readable_cfg(fallback):
        return CfgLookup(path=cfg_path, suggestion=RecoverySuggestion.for_path(fallback))
    return CfgLookup(path=cfg_path, error=error)
