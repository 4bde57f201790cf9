"""Compare a fresh feed listing with the local catalog and store."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from lawindex.legal_types import DocumentStub

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UpdateReport:
    updated: tuple[DocumentStub, ...]
    new: tuple[DocumentStub, ...]

    @property
    def has_updates(self) -> bool:
        return bool(self.updated or self.new)


def _parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def is_newer(remote: str, local: str) -> bool:
    """True when the *remote* timestamp is strictly later than *local*.

    Unparseable timestamps never count as newer.
    """
    remote_ts, local_ts = _parse_timestamp(remote), _parse_timestamp(local)
    if remote_ts is None or local_ts is None:
        return False
    if (remote_ts.tzinfo is None) != (local_ts.tzinfo is None):
        remote_ts = remote_ts.replace(tzinfo=None)
        local_ts = local_ts.replace(tzinfo=None)
    return remote_ts > local_ts


def detect_updates(
    remote_entries: Iterable[DocumentStub],
    local_index: Iterable[DocumentStub],
    local_document_ids: Iterable[str],
) -> UpdateReport:
    """Split remote entries into new documents and updated documents.

    An entry whose id is not in *local_document_ids* is new. Otherwise it is
    updated when its ``updated`` timestamp is later than the matching
    (year, number) entry in *local_index*.
    """
    known_ids = set(local_document_ids)
    local_by_key = {stub.key: stub for stub in local_index}
    updated: list[DocumentStub] = []
    new: list[DocumentStub] = []
    for entry in remote_entries:
        if entry.document_id not in known_ids:
            new.append(entry)
            continue
        local = local_by_key.get(entry.key)
        if local is not None and is_newer(entry.updated, local.updated):
            updated.append(entry)
    logger.info("Update check: %d updated, %d new", len(updated), len(new))
    return UpdateReport(updated=tuple(updated), new=tuple(new))
