"""Version segment parsing for document URLs.

Splits a URL such as ``/docs/1.2/guide`` into the root that precedes the
version segment (``/docs/``), the version token (``1.2``) and the remainder
(``guide``). The root plus the remainder is the canonical, version-less
identity shared by every version of a page.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Greedy root: with several numeric segments the last one is the version.
VERSION_PATTERN = re.compile(r"(.*/)(\d+(?:\.\d+)*)(?:/(.*))?")

_LEADING_NUMBER = re.compile(r"\d+(?:\.\d+)?")


@dataclass(frozen=True)
class ParsedUrl:
    root: str
    version_string: str
    version: float
    suffix: str = ""

    @property
    def canonical(self) -> str:
        return self.root + self.suffix


def version_to_float(version_string: str) -> float:
    """Convert a dotted version token into its numeric sort key.

    Only the leading ``major.minor`` part is significant, so ``"2.1.0"`` and
    ``"2.1"`` share the key ``2.1``. This is a known limitation of keying
    versions by a single float and is relied on by existing consumers of
    ``versions.json``.

    Examples:
        >>> version_to_float("3")
        3.0
        >>> version_to_float("2.1.0")
        2.1
    """
    match = _LEADING_NUMBER.match(version_string)
    if match is None:
        raise ValueError(f"not a version token: {version_string!r}")
    return float(match.group(0))


def parse_version_url(url: str) -> ParsedUrl | None:
    """Split ``url`` into root, version and suffix.

    Returns None when the URL carries no version segment.

    Examples:
        >>> parse_version_url("/docs/2.1/intro").canonical
        '/docs/intro'
        >>> parse_version_url("/about") is None
        True
    """
    match = VERSION_PATTERN.fullmatch(url)
    if match is None:
        return None
    root, version_string, suffix = match.groups()
    return ParsedUrl(
        root=root,
        version_string=version_string,
        version=version_to_float(version_string),
        suffix=suffix or "",
    )


def make_canonical(url: str) -> str | None:
    """Return the version-less identity of ``url`` (None if unversioned)."""
    parsed = parse_version_url(url)
    return parsed.canonical if parsed else None


__all__ = ["VERSION_PATTERN", "ParsedUrl", "make_canonical", "parse_version_url", "version_to_float"]
