"""Tests for end-to-end catalog building and cache-aware loading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from picorules_catalog.cache import MemoryCache
from picorules_catalog.catalog import (
    SourceFiles,
    build_catalog,
    directory_source,
    load_catalog,
)
from picorules_catalog.errors import FetchError
from picorules_catalog.local_source import read_directory

if TYPE_CHECKING:
    from pathlib import Path


class TestBuildCatalog:
    def test_scenario(self) -> None:
        catalog = build_catalog(
            {'sales.prb': 'revenue => price * qty;'},
            {'report.txt': '{% if sales.revenue > 100 %}big{% endif %}'},
            timestamp=42,
        )

        [record] = catalog.variables
        assert record.key == 'sales.revenue'
        assert record.referenced_in_templates == 'report.txt'
        assert catalog.stats.with_template_references_count == 1
        assert catalog.timestamp == 42

    def test_empty(self) -> None:
        catalog = build_catalog({}, {}, timestamp=0)

        assert catalog.variables == ()
        assert catalog.stats.total_variables == 0
        assert catalog.stats.total_ruleblocks == 0

    def test_deterministic(
        self, ruleblock_files: dict[str, str], template_files: dict[str, str]
    ) -> None:
        first = build_catalog(ruleblock_files, template_files, timestamp=1)
        second = build_catalog(ruleblock_files, template_files, timestamp=1)

        assert first.to_json() == second.to_json()


class TestDirectorySource:
    def test_reads_only_matching_suffix(self, source_tree: tuple[Path, Path]) -> None:
        ruleblock_dir, _ = source_tree
        items, contents = read_directory(ruleblock_dir, '.prb')

        assert [item.name for item in items] == ['ckd.prb', 'dm.prb']
        assert set(contents) == {'ckd.prb', 'dm.prb'}

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert read_directory(tmp_path / 'nope', '.prb') == ([], {})

    def test_undecodable_file_is_skipped(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / 'bad.prb').write_bytes(b'a1 => b1; \xff\xfe')
        (tmp_path / 'good.prb').write_text('c1 => d1;', encoding='utf-8')

        sources = directory_source(tmp_path)()

        assert list(sources.ruleblocks) == ['good.prb']
        assert [item.name for item in sources.files] == ['good.prb']
        assert 'bad.prb' in caplog.text

    def test_loader(self, source_tree: tuple[Path, Path]) -> None:
        sources = directory_source(*source_tree)()

        assert [item.name for item in sources.files] == [
            'ckd.prb',
            'dm.prb',
            'ckd_summary.txt',
            'dm_summary.txt',
        ]
        assert set(sources.templates) == {'ckd_summary.txt', 'dm_summary.txt'}

    def test_loader_without_templates(self, source_tree: tuple[Path, Path]) -> None:
        sources = directory_source(source_tree[0])()
        assert sources.templates == {}


class TestLoadCatalog:
    def test_builds_and_caches(self, source_tree: tuple[Path, Path]) -> None:
        cache = MemoryCache()
        catalog, from_cache = load_catalog(directory_source(*source_tree), cache)

        assert not from_cache
        assert catalog.stats.total_variables == 6
        assert cache.get() is catalog

    def test_uses_cache(self, source_tree: tuple[Path, Path]) -> None:
        cache = MemoryCache()
        first, _ = load_catalog(directory_source(*source_tree), cache)

        def failing_loader() -> SourceFiles:
            raise AssertionError('loader should not run on a cache hit')

        second, from_cache = load_catalog(failing_loader, cache)
        assert from_cache
        assert second is first

    def test_force_refresh(self, source_tree: tuple[Path, Path]) -> None:
        cache = MemoryCache()
        first, _ = load_catalog(directory_source(*source_tree), cache)

        second, from_cache = load_catalog(
            lambda: SourceFiles(ruleblocks={'x.prb': 'a1 => b1;'}),
            cache,
            force_refresh=True,
        )

        assert not from_cache
        assert second is not first
        assert cache.get() is second
        assert second.stats.total_variables == 1

    def test_without_cache(self) -> None:
        catalog, from_cache = load_catalog(lambda: SourceFiles())
        assert not from_cache
        assert catalog.variables == ()

    def test_loader_errors_propagate(self) -> None:
        cache = MemoryCache()

        def loader() -> SourceFiles:
            raise FetchError('listing failed', status=500)

        with pytest.raises(FetchError):
            load_catalog(loader, cache)
        assert cache.get() is None

    def test_sources_do_not_share_entries(self) -> None:
        cache = MemoryCache()
        first, _ = load_catalog(
            lambda: SourceFiles(ruleblocks={'a.prb': 'a1 => b1;'}), cache, source='aaa'
        )

        second, from_cache = load_catalog(
            lambda: SourceFiles(ruleblocks={'b.prb': 'c1 => d1;'}), cache, source='bbb'
        )

        assert not from_cache
        assert [v.key for v in second.variables] == ['b.c1']
        assert cache.get('v2-aaa') is first
        assert cache.get('v2-bbb') is second
