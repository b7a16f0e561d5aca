from __future__ import annotations

from picorules_catalog.directives import parse_define_attribute, parse_doc
from picorules_catalog.models import VariableMetadata


class TestParseDefineAttribute:
    """Tests for `#define_attribute` lookup."""

    def test_all_fields(self) -> None:
        content = (
            '#define_attribute(egfr, {\n'
            '    label: "Last eGFR",\n'
            '    type: 2,\n'
            '    is_reportable: 1,\n'
            '    is_bi_obj: 0\n'
            '});\n'
        )
        assert parse_define_attribute(content, 'egfr') == VariableMetadata(
            label='Last eGFR', type='2', is_reportable='1', is_bi_obj='0'
        )

    def test_single_quoted_label(self) -> None:
        content = "#define_attribute(egfr, { label: 'eGFR' })"
        assert parse_define_attribute(content, 'egfr').label == 'eGFR'

    def test_fields_are_independent(self) -> None:
        content = '#define_attribute(revenue, {label: "Revenue", is_reportable: 1})'
        metadata = parse_define_attribute(content, 'revenue')

        assert metadata.label == 'Revenue'
        assert metadata.is_reportable == '1'
        assert metadata.type is None
        assert metadata.is_bi_obj is None

    def test_missing_directive_gives_empty_metadata(self) -> None:
        metadata = parse_define_attribute('revenue => price;', 'revenue')
        assert metadata.is_empty

    def test_directive_for_other_name_is_ignored(self) -> None:
        content = '#define_attribute(other, { label: "Other" })'
        assert parse_define_attribute(content, 'revenue').is_empty

    def test_name_is_not_a_prefix_match(self) -> None:
        content = '#define_attribute(egfr_last, { label: "Last" })'
        assert parse_define_attribute(content, 'egfr').is_empty

    def test_first_occurrence_wins(self) -> None:
        content = (
            '#define_attribute(x1, { label: "First" });\n'
            '#define_attribute(x1, { label: "Second" });\n'
        )
        assert parse_define_attribute(content, 'x1').label == 'First'

    def test_non_numeric_type_is_absent(self) -> None:
        content = '#define_attribute(x1, { label: "X", type: abc })'
        metadata = parse_define_attribute(content, 'x1')

        assert metadata.label == 'X'
        assert metadata.type is None

    def test_non_ascii_digits_are_absent(self) -> None:
        content = '#define_attribute(x1, { type: \u0663, is_reportable: 1 })'
        metadata = parse_define_attribute(content, 'x1')

        assert metadata.type is None
        assert metadata.is_reportable == '1'

    def test_unterminated_directive_is_absent(self) -> None:
        content = '#define_attribute(x1, { label: "X"'
        assert parse_define_attribute(content, 'x1').is_empty


class TestParseDoc:
    def test_txt_field(self) -> None:
        content = '#doc(egfr, { txt: "Most recent eGFR" });'
        assert parse_doc(content, 'egfr') == 'Most recent eGFR'

    def test_multiline_body(self) -> None:
        content = '#doc(egfr, {\n    txt: "Spans lines"\n});'
        assert parse_doc(content, 'egfr') == 'Spans lines'

    def test_missing_doc(self) -> None:
        assert parse_doc('', 'egfr') == ''

    def test_doc_without_txt(self) -> None:
        assert parse_doc('#doc(egfr, { note: "x" })', 'egfr') == ''
