from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol

from config import Config
from labels import load_root_labels
from models import CanonicalVersion, RootGroup, RootVersion, Site, VersionedDocument
from summary import SUMMARY_FILENAME, write_versions_summary
from urls import parse_version_url

logger = logging.getLogger(__name__)

# Document data keys read by the version switcher templates
COMPILATION_NAME_KEY = "_compilation-name"
DOC_VERSION_KEY = "_doc-version"
DOC_VERSIONS_KEY = "_doc-versions"

# Site data keys
ROOT_LABELS_DATA_KEY = "versioned_root_labels"
ROOT_VERSIONS_DATA_KEY = "_versioned-roots"


class SourceDocument(Protocol):
    url: str
    path: Any


class AnnotatableDocument(SourceDocument, Protocol):
    data: dict[str, Any]


class IndexStateError(RuntimeError):
    """An indexing step was invoked in the wrong phase of a run."""


class IndexNotReadyError(IndexStateError):
    """Lookup or annotation attempted before aggregation finished."""


class IndexerState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    EMITTED = "emitted"


class VersionIndex:
    """Read-only result of one aggregation pass.

    canonical_versions keeps the order in which canonical paths were first
    seen; every version list is sorted by version, highest first.
    """

    def __init__(
        self,
        documents: Mapping[str, VersionedDocument],
        canonical_versions: Mapping[str, tuple[CanonicalVersion, ...]],
        root_versions: Mapping[str, RootGroup],
    ):
        self._documents = MappingProxyType(dict(documents))
        self._canonical_versions = MappingProxyType(dict(canonical_versions))
        self._root_versions = MappingProxyType(dict(root_versions))

    @property
    def documents(self) -> Mapping[str, VersionedDocument]:
        return self._documents

    @property
    def canonical_versions(self) -> Mapping[str, tuple[CanonicalVersion, ...]]:
        return self._canonical_versions

    @property
    def root_versions(self) -> Mapping[str, RootGroup]:
        return self._root_versions

    def __contains__(self, url: object) -> bool:
        return url in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[VersionedDocument]:
        return iter(self._documents.values())

    def get(self, url: str) -> VersionedDocument | None:
        return self._documents.get(url)

    def versions_for(self, url: str) -> tuple[CanonicalVersion, ...]:
        """Sibling versions of ``url`` (including itself); empty if unversioned."""
        doc = self._documents.get(url)
        if doc is None:
            return ()
        return self._canonical_versions[doc.canonical]

    def canonical_summary(self) -> dict[str, list[dict[str, Any]]]:
        return {
            canonical: [v.model_dump() for v in versions]
            for canonical, versions in self._canonical_versions.items()
        }

    def root_summary(self) -> dict[str, dict[str, Any]]:
        return {root: group.to_data() for root, group in self._root_versions.items()}


class VersionAggregator:
    """Collects versioned documents and groups them by canonical path and by root.

    Groups are insertion-ordered sets keyed by the full entry value, so
    registering the same entry twice leaves a single copy. build() closes
    the aggregator and returns the read-only VersionIndex.
    """

    def __init__(self, root_labels: Mapping[str, str] | None = None):
        self._root_labels = dict(root_labels or {})
        self._documents: dict[str, VersionedDocument] = {}
        self._canonical: dict[str, dict[tuple[str, float, str], None]] = {}
        self._roots: dict[str, dict[tuple[float, str], None]] = {}
        self._built = False

    def add(self, document: SourceDocument) -> VersionedDocument | None:
        """Register one document. Returns None for unversioned URLs."""
        if self._built:
            raise IndexStateError("aggregation already finished; start a new VersionAggregator")

        url = document.url
        parsed = parse_version_url(url)
        if parsed is None:
            logger.debug("Skipping unversioned document %s", url)
            return None

        existing = self._documents.get(url)
        if existing is not None:
            if existing.path != str(document.path):
                logger.warning("URL %s produced by both %s and %s; keeping the first", url, existing.path, document.path)
            return existing

        versioned = VersionedDocument(
            url=url,
            path=str(document.path),
            root=parsed.root,
            version=parsed.version,
            version_string=parsed.version_string,
            canonical=parsed.canonical,
            root_label=self._root_labels.get(parsed.root),
        )
        self._documents[url] = versioned
        self._canonical.setdefault(versioned.canonical, {})[(url, versioned.version, versioned.version_string)] = None
        self._roots.setdefault(versioned.root, {})[(versioned.version, versioned.version_string)] = None
        return versioned

    def add_all(self, documents: Iterable[SourceDocument]) -> int:
        added = 0
        for document in documents:
            if self.add(document) is not None:
                added += 1
        return added

    def build(self) -> VersionIndex:
        if self._built:
            raise IndexStateError("build() may only be called once per aggregation")
        self._built = True

        # Equal versions: URL order for pages, token order for roots
        canonical_versions = {
            canonical: tuple(
                CanonicalVersion(version=version, url=url)
                for url, version, _ in sorted(entries, key=lambda e: (-e[1], e[0]))
            )
            for canonical, entries in self._canonical.items()
        }
        root_versions = {
            root: RootGroup(
                label=self._root_labels.get(root),
                versions=tuple(
                    RootVersion(version=version, version_string=version_string)
                    for version, version_string in sorted(entries, key=lambda e: (-e[0], e[1]))
                ),
            )
            for root, entries in self._roots.items()
        }

        unlabeled = [root for root, group in root_versions.items() if group.label is None]
        if unlabeled:
            logger.debug("No label configured for versioned roots: %s", ", ".join(unlabeled))
        logger.info(
            "Indexed %d versioned documents: %d canonical paths under %d roots",
            len(self._documents),
            len(canonical_versions),
            len(root_versions),
        )
        return VersionIndex(self._documents, canonical_versions, root_versions)


def aggregate(documents: Iterable[SourceDocument], root_labels: Mapping[str, str] | None = None) -> VersionIndex:
    """Run a complete aggregation pass over ``documents``."""
    aggregator = VersionAggregator(root_labels)
    aggregator.add_all(documents)
    return aggregator.build()


def annotate_document(document: AnnotatableDocument, index: VersionIndex) -> bool:
    """Stamp version metadata onto ``document.data``.

    Unversioned documents are left untouched and False is returned.
    """
    versioned = index.get(document.url)
    if versioned is None:
        return False

    document.data[COMPILATION_NAME_KEY] = versioned.root_label
    document.data[DOC_VERSION_KEY] = versioned.version_string
    document.data[DOC_VERSIONS_KEY] = [v.model_dump() for v in index.canonical_versions[versioned.canonical]]
    return True


class VersionIndexer:
    """Drives one indexing run through the site build's three lifecycle points.

    The host calls, in this order:
      1. pre_render(site) once, before any document is rendered
      2. post_convert(document) for each document once its content is final
      3. post_write(site) once after the site is written

    post_convert before pre_render raises IndexNotReadyError. An indexer is
    good for a single run.

    When ``destination`` is given, the summary is written next to it instead
    of next to ``site.destination``.
    """

    def __init__(
        self,
        root_labels: Mapping[str, str] | None = None,
        *,
        summary_filename: str = SUMMARY_FILENAME,
        destination: str | Path | None = None,
    ):
        self._root_labels = dict(root_labels) if root_labels is not None else None
        self._summary_filename = summary_filename
        self._destination = Path(destination) if destination is not None else None
        self._index: VersionIndex | None = None
        self._state = IndexerState.UNINITIALIZED
        self.summary_path: Path | None = None

    @classmethod
    def from_config(cls, cfg: Config) -> VersionIndexer:
        return cls(
            load_root_labels(cfg.root_labels_path),
            summary_filename=cfg.SUMMARY_FILENAME,
            destination=cfg.destination_path,
        )

    @property
    def state(self) -> IndexerState:
        return self._state

    @property
    def index(self) -> VersionIndex:
        if self._index is None:
            raise IndexNotReadyError("version index is not built yet; call pre_render() first")
        return self._index

    def pre_render(self, site: Site) -> VersionIndex:
        """Aggregate all documents, publish root versions to site data, write the summary."""
        if self._state is not IndexerState.UNINITIALIZED:
            raise IndexStateError(f"pre_render() already ran (state: {self._state.value})")

        labels = self._root_labels
        if labels is None:
            labels = site.data.get(ROOT_LABELS_DATA_KEY) or {}

        self._index = aggregate(site.documents, labels)
        self._state = IndexerState.READY
        site.data[ROOT_VERSIONS_DATA_KEY] = self._index.root_summary()

        self.emit(self._destination or site.destination)
        return self._index

    def post_convert(self, document: AnnotatableDocument) -> bool:
        return annotate_document(document, self.index)

    def post_write(self, site: Site) -> None:
        # Reserved for persisting index state between builds
        logger.debug("post_write: nothing to persist for %s", site.destination)

    def emit(self, destination: str | Path) -> Path:
        """Write versions.json one level above ``destination``. Runs once per indexer."""
        if self._state is IndexerState.EMITTED:
            raise IndexStateError(f"version summary already written to {self.summary_path}")
        index = self.index
        self.summary_path = write_versions_summary(
            index.canonical_versions,
            destination,
            filename=self._summary_filename,
        )
        self._state = IndexerState.EMITTED
        return self.summary_path


def index_site(site: Site, root_labels: Mapping[str, str] | None = None) -> VersionIndex:
    """Run the full lifecycle over an in-memory site."""
    indexer = VersionIndexer(root_labels)
    index = indexer.pre_render(site)
    for document in site.documents:
        indexer.post_convert(document)
    indexer.post_write(site)
    return index


__all__ = [
    "COMPILATION_NAME_KEY",
    "DOC_VERSIONS_KEY",
    "DOC_VERSION_KEY",
    "ROOT_LABELS_DATA_KEY",
    "ROOT_VERSIONS_DATA_KEY",
    "IndexNotReadyError",
    "IndexStateError",
    "IndexerState",
    "VersionAggregator",
    "VersionIndex",
    "VersionIndexer",
    "aggregate",
    "annotate_document",
    "index_site",
]
