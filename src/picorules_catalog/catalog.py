"""Orchestration of a full extraction pass.

Sources are loaded first (the only I/O), then rule blocks are parsed, then
templates, then template references are joined onto the variable records.
The resulting `Catalog` is the unit stored in the cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from picorules_catalog.cache import CACHE_VERSION, now_ms
from picorules_catalog.common import RULEBLOCK_SUFFIX, TEMPLATE_SUFFIX
from picorules_catalog.local_source import read_directory
from picorules_catalog.models import Catalog
from picorules_catalog.ruleblock_parser import extract_variables_from_files
from picorules_catalog.stats import calculate_stats
from picorules_catalog.template_parser import (
    annotate_template_references,
    parse_template_files,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from _typeshed import StrPath

    from picorules_catalog.cache import CachePort
    from picorules_catalog.github_api import GitHubClient, ProgressCallback
    from picorules_catalog.models import FileItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SourceFiles:
    """Fully materialized source contents, keyed by file name."""

    files: tuple[FileItem, ...] = ()
    ruleblocks: Mapping[str, str] = field(default_factory=dict)
    templates: Mapping[str, str] = field(default_factory=dict)


type SourceLoader = Callable[[], SourceFiles]


def build_catalog(
    ruleblocks: Mapping[str, str],
    templates: Mapping[str, str],
    /,
    *,
    files: Iterable[FileItem] = (),
    timestamp: int | None = None,
) -> Catalog:
    """
    Run the extraction engine over materialized sources.

    Args:
        ruleblocks: Rule-block file name (`*.prb`) to content.
        templates: Template file name (`*.txt`) to content.
        files: Listing metadata carried along into the catalog.
        timestamp: Build time in epoch milliseconds; defaults to now.

    Returns:
        The catalog with template references joined and stats computed.
    """
    variables = extract_variables_from_files(ruleblocks)
    template_references = parse_template_files(templates)
    variables = annotate_template_references(variables, template_references)

    return Catalog(
        files=tuple(files),
        variables=tuple(variables),
        stats=calculate_stats(variables),
        timestamp=now_ms() if timestamp is None else timestamp,
    )


def github_source(
    client: GitHubClient,
    /,
    *,
    concurrency: int = 5,
    on_progress: ProgressCallback | None = None,
) -> SourceLoader:
    def load() -> SourceFiles:
        ruleblock_items = client.list_ruleblocks()
        template_items = client.list_templates()
        logger.info(
            'Found %d rule blocks and %d templates',
            len(ruleblock_items),
            len(template_items),
        )

        items = [*ruleblock_items, *template_items]
        contents = client.fetch_contents(
            items, concurrency=concurrency, on_progress=on_progress
        )

        return SourceFiles(
            files=tuple(items),
            ruleblocks={
                name: text
                for name, text in contents.items()
                if name.endswith(RULEBLOCK_SUFFIX)
            },
            templates={
                name: text
                for name, text in contents.items()
                if name.endswith(TEMPLATE_SUFFIX)
            },
        )

    return load


def directory_source(
    ruleblock_dir: StrPath, template_dir: StrPath | None = None, /
) -> SourceLoader:
    def load() -> SourceFiles:
        ruleblock_items, ruleblocks = read_directory(ruleblock_dir, RULEBLOCK_SUFFIX)
        template_items: list[FileItem] = []
        templates: dict[str, str] = {}
        if template_dir is not None:
            template_items, templates = read_directory(template_dir, TEMPLATE_SUFFIX)

        return SourceFiles(
            files=(*ruleblock_items, *template_items),
            ruleblocks=ruleblocks,
            templates=templates,
        )

    return load


def load_catalog(
    loader: SourceLoader,
    cache: CachePort | None = None,
    /,
    *,
    force_refresh: bool = False,
    version: str = CACHE_VERSION,
    source: str = '',
) -> tuple[Catalog, bool]:
    """
    Return the cached catalog, or build and cache a fresh one.

    Args:
        loader: Source loader used on a cache miss.
        cache: Cache port; `None` disables caching.
        force_refresh: Ignore any cached entry.
        version: Cache version tag.
        source: Fingerprint of the source, appended to the version tag so
            catalogs built from different sources never share an entry.

    Returns:
        The catalog and whether it came from the cache.

    Raises:
        CatalogError: Propagated from the loader.
    """
    if source:
        version = f'{version}-{source}'

    if cache is not None and not force_refresh:
        cached = cache.get(version)
        if cached is not None:
            return cached, True

    sources = loader()
    catalog = build_catalog(sources.ruleblocks, sources.templates, files=sources.files)
    logger.info(
        'Extracted %d variables from %d rule blocks',
        catalog.stats.total_variables,
        catalog.stats.total_ruleblocks,
    )

    if cache is not None:
        cache.set(catalog, version)

    return catalog, False
