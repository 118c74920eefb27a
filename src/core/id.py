"""ID Generation.

ULID-based identifiers: lexicographically sortable, so frames created later in a
run sort after earlier ones. Entity ids (projects, frames) are bare ULIDs;
workflow run ids carry a prefix to keep logs readable.
"""

from datetime import datetime
from typing import NewType
from ulid import ULID

ProjectID = NewType("ProjectID", str)
FrameID = NewType("FrameID", str)
RunID = NewType("RunID", str)


class Prefix:
    """ID prefix constants."""

    GENERATION = "gen"
    REGENERATION = "regen"


def generate_raw() -> str:
    """Generate a bare ULID string."""
    return str(ULID())


def new_project_id() -> ProjectID:
    return ProjectID(generate_raw())


def new_frame_id() -> FrameID:
    return FrameID(generate_raw())


def new_run_id(prefix: str = Prefix.GENERATION) -> RunID:
    """Generate a workflow run id such as ``gen_01J...``."""
    return RunID(f"{prefix}_{generate_raw()}")


def _ulid_part(id_str: str) -> str:
    return id_str.rsplit("_", 1)[-1]


def is_valid(id_str: str) -> bool:
    """Check if string is a (optionally prefixed) ULID."""
    ulid_part = _ulid_part(id_str)
    if len(ulid_part) != 26:
        return False
    try:
        ULID.from_str(ulid_part)
        return True
    except ValueError:
        return False


def extract_timestamp(id_str: str) -> datetime | None:
    """Creation time encoded in a ULID, or None if not a ULID."""
    if not is_valid(id_str):
        return None
    return ULID.from_str(_ulid_part(id_str)).datetime


def extract_prefix(id_str: str) -> str | None:
    parts = id_str.split("_")
    return parts[0] if len(parts) == 2 else None
