"""Append-only version ledger for compliance documents.

Pure functions over an immutable tuple of versions plus the current-version
pointer. Rules enforced here:

- version numbers are max(existing) + 1, starting at 1
- version ids are unique per document
- the first version always becomes current
- an official (authority-issued) version always becomes current
- versions are never edited or removed
"""

from datetime import datetime
from typing import Optional, Tuple
from uuid import uuid4

from .errors import LedgerError
from .models import ComplianceDocumentVersion, VersionDraft


Versions = Tuple[ComplianceDocumentVersion, ...]


def generate_version_id() -> str:
    return f"ver_{uuid4().hex[:12]}"


def next_version_number(versions: Versions) -> int:
    """Next version number for the ledger (1 when empty)."""
    return max((v.version for v in versions), default=0) + 1


def has_version(versions: Versions, version_id: str) -> bool:
    return any(v.id == version_id for v in versions)


def get_version(versions: Versions, version_id: str) -> Optional[ComplianceDocumentVersion]:
    return next((v for v in versions if v.id == version_id), None)


def current_version(
    versions: Versions,
    current_version_id: Optional[str],
) -> Optional[ComplianceDocumentVersion]:
    if current_version_id is None:
        return None
    return get_version(versions, current_version_id)


def append_version(
    versions: Versions,
    current_version_id: Optional[str],
    draft: VersionDraft,
    now: datetime,
    set_current: bool = False,
) -> Tuple[Versions, Optional[str], ComplianceDocumentVersion]:
    """Append a version to the ledger.

    Args:
        versions: Existing versions (oldest first)
        current_version_id: Current pointer before the append
        draft: Version content; id and created_at are filled when absent
        now: Timestamp used when the draft has no created_at
        set_current: Move the current pointer to the new version

    Returns:
        (new versions, new current version id, appended version)

    Raises:
        LedgerError: If the draft id is already in the ledger

    Example:
        versions, current, v1 = append_version((), None, draft, now)
        assert current == v1.id and v1.version == 1
    """
    version_id = draft.id or generate_version_id()
    if has_version(versions, version_id):
        raise LedgerError(f"Version id {version_id} already exists in the ledger")

    version = ComplianceDocumentVersion(
        id=version_id,
        version=next_version_number(versions),
        label=draft.label,
        created_at=draft.created_at or now,
        created_by=draft.created_by,
        status=draft.status,
        official=draft.official,
        note=draft.note,
        file_name=draft.file_name,
        file_url=draft.file_url,
    )

    if set_current or version.official or not has_version(versions, current_version_id or ""):
        new_current = version.id
    else:
        new_current = current_version_id

    return versions + (version,), new_current, version
