"""Resource directory discovery.

A resource directory carries an ``info.json`` descriptor:

    {"info": "<name> resource files", "version": "<version>"}

Candidates are probed in order and the first one whose descriptor matches
both name and version wins. When none matches, the reason each candidate was
rejected is logged and ResourceDirNotFoundError is raised.
"""

import json
import logging
import sys
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ValidationError

from src.acc_common.errors import ResourceDirNotFoundError

logger = logging.getLogger(__name__)

INFO_FILE = "info.json"


class ResourceCheckError(Exception):
    """A candidate directory is not a usable resource directory."""


class ResourceInfo(BaseModel):
    info: str = ""
    version: str = ""


def check_resource_dir(directory: Path, name: str, version: str) -> None:
    """Raise ResourceCheckError unless ``directory`` holds resources ``name``@``version``."""
    if not directory.exists():
        raise ResourceCheckError(f"No such directory: {directory}")
    if not directory.is_dir():
        raise ResourceCheckError("Not a directory")

    info_path = directory / INFO_FILE
    try:
        raw = info_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ResourceCheckError(f"Cannot read {INFO_FILE}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ResourceCheckError(f"Malformed {INFO_FILE}: {exc}") from exc

    try:
        info = ResourceInfo.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ResourceCheckError(f"Malformed {INFO_FILE}: {exc}") from exc

    if info.version != version:
        raise ResourceCheckError(f"Wrong version: {info.version}")
    if info.info != f"{name} resource files":
        raise ResourceCheckError("Not a resource directory")


def default_candidates(name: str, executable: str | None = None) -> list[Path]:
    """Standard locations relative to the running executable."""
    cmd_dir = Path(executable or sys.argv[0] or sys.executable).resolve().parent
    return [
        cmd_dir / "share" / name,
        cmd_dir.parent / "share" / name,
        cmd_dir / "rsc",
        cmd_dir / "resources",
        cmd_dir,
    ]


def find_resource_dir(
    name: str,
    version: str,
    extra: Iterable[str | Path] = (),
    executable: str | None = None,
) -> Path:
    """Return the first candidate directory holding resources ``name``@``version``."""
    candidates = [Path(p) for p in extra] + default_candidates(name, executable)
    failures: list[tuple[Path, ResourceCheckError]] = []

    for directory in candidates:
        try:
            check_resource_dir(directory, name, version)
        except ResourceCheckError as exc:
            failures.append((directory, exc))
            continue
        logger.info("Using resource directory %s", directory)
        return directory

    for directory, exc in failures:
        logger.warning("No resource directory at location [%s]: %s", directory, exc)
    raise ResourceDirNotFoundError(name, version)
