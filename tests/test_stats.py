from __future__ import annotations

import pytest

from picorules_catalog.catalog import build_catalog
from picorules_catalog.models import ParsedVariable, ParsingStats
from picorules_catalog.ruleblock_parser import extract_variables_from_content
from picorules_catalog.stats import calculate_stats


class TestCalculateStats:
    def test_empty(self) -> None:
        assert calculate_stats([]) == ParsingStats()

    def test_sample(
        self, ruleblock_files: dict[str, str], template_files: dict[str, str]
    ) -> None:
        catalog = build_catalog(ruleblock_files, template_files, timestamp=0)

        assert catalog.stats == ParsingStats(
            total_variables=6,
            functional_count=5,
            conditional_count=1,
            with_metadata_count=2,
            without_metadata_count=4,
            total_ruleblocks=2,
            with_template_references_count=4,
        )

    def test_template_count_before_join_is_zero(self) -> None:
        variables = extract_variables_from_content('a1 => b1;', 'blk')
        assert calculate_stats(variables).with_template_references_count == 0

    @pytest.mark.parametrize(
        'content',
        [
            'a1 => b1;',
            'a1 : { b1 > 1 => 1 };',
            '#define_attribute(a1, { label: "A" }); a1 => b1; c1 : { a1 => 1 };',
            'junk; more junk;',
        ],
    )
    def test_sums(self, content: str) -> None:
        stats = calculate_stats(extract_variables_from_content(content, 'blk'))

        assert stats.functional_count + stats.conditional_count == (
            stats.total_variables
        )
        assert stats.with_metadata_count + stats.without_metadata_count == (
            stats.total_variables
        )

    def test_distinct_ruleblocks(self) -> None:
        variables = [
            ParsedVariable('a', 'x1', 'functional', 'x1 => 1'),
            ParsedVariable('a', 'x1', 'functional', 'x1 => 2'),
            ParsedVariable('b', 'x1', 'conditional', 'x1 : { => 1 }'),
        ]
        stats = calculate_stats(variables)

        assert stats.total_ruleblocks == 2
        assert stats.conditional_count == 1

    def test_to_json_keys(self) -> None:
        assert list(ParsingStats().to_json()) == [
            'totalVariables',
            'functionalCount',
            'conditionalCount',
            'withMetadataCount',
            'withoutMetadataCount',
            'totalRuleblocks',
            'withTemplateReferencesCount',
        ]
