"""Persisted canonical → versions summary (``versions.json``)."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from models import CanonicalVersion, CanonicalVersions

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = "versions.json"


class SummaryWriteError(OSError):
    """The summary file could not be written; the indexing run has failed."""

    def __init__(self, target: Path, cause: Exception):
        super().__init__(f"Failed to write version summary {target}: {cause}")
        self.target = target
        self.errno = getattr(cause, "errno", None)


def versions_summary_path(destination: str | Path, filename: str = SUMMARY_FILENAME) -> Path:
    """Location of the summary: next to the destination directory, not inside it."""
    return Path(destination).expanduser().resolve().parent / filename


def dump_versions_summary(canonical_versions: Mapping[str, Sequence[CanonicalVersion]]) -> str:
    payload = {
        canonical: [{"version": v.version, "url": v.url} for v in versions]
        for canonical, versions in canonical_versions.items()
    }
    # inf/nan versions have no JSON form; raises ValueError
    return json.dumps(payload, indent=2, ensure_ascii=False, allow_nan=False) + "\n"


def write_versions_summary(
    canonical_versions: Mapping[str, Sequence[CanonicalVersion]],
    destination: str | Path,
    *,
    filename: str = SUMMARY_FILENAME,
) -> Path:
    """Write the summary one level above ``destination``.

    The parent directory must already exist. The file is written to a
    temporary sibling and moved into place, so a failed run leaves any
    previous summary intact. Serialization and I/O failures are raised as
    SummaryWriteError; nothing is retried.
    """
    target = versions_summary_path(destination, filename)
    try:
        content = dump_versions_summary(canonical_versions)
    except ValueError as e:
        raise SummaryWriteError(target, e) from e

    tmp = target.with_name(f".{target.name}.tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, target)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise SummaryWriteError(target, e) from e
    logger.info("Wrote %d canonical paths to %s", len(canonical_versions), target)
    return target


def load_versions_summary(path: str | Path) -> dict[str, list[CanonicalVersion]]:
    """Read a summary back, validating its shape."""
    return CanonicalVersions.validate_json(Path(path).read_bytes())


__all__ = [
    "SUMMARY_FILENAME",
    "SummaryWriteError",
    "dump_versions_summary",
    "load_versions_summary",
    "versions_summary_path",
    "write_versions_summary",
]
