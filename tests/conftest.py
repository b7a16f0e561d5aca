"""Pytest fixtures shared by the catalog tests.

Provides small rule-block and template sources, in memory and on disk.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

CKD_PRB = """\
/* Chronic kidney disease rule block */
#define_attribute(egfr_last, {
    label: "Last eGFR",
    type: 2,
    is_reportable: 1
});
#doc(egfr_last, { txt: "Most recent eGFR value" });

egfr_last => eadv.lab_bld_egfr.val.last(); // latest value
egfr_dt => eadv.lab_bld_egfr.dt.last();
dm => rout_dm.dm.val.bind();
ckd_icd => eadv.[icd_n17%, icd_n18%].dt.min();

#define_attribute(ckd_stage, { label: "CKD stage", is_bi_obj: 1 });
ckd_stage : { egfr_last < 15 => 5 }, { egfr_last < 30 => 4 }, { => 0 };
"""

DM_PRB = """\
dm => eadv.[icd_e11%].dt.min().where(val > 0);
"""

CKD_TEMPLATE = """\
{% if ckd.ckd_stage %}
CKD stage {{ ckd.ckd_stage }} with eGFR {{ picoformat('ckd.egfr_last') }}
measured {{ picodate("ckd.egfr_dt") }}
{% endif %}
"""

DM_TEMPLATE = """\
{% if dm.dm > 0 %}Diabetes{% endif %}
{% if ckd.ckd_stage > 3 %}Refer to nephrology{% endif %}
"""


@pytest.fixture
def ruleblock_files() -> dict[str, str]:
    return {'ckd.prb': CKD_PRB, 'dm.prb': DM_PRB}


@pytest.fixture
def template_files() -> dict[str, str]:
    return {'ckd_summary.txt': CKD_TEMPLATE, 'dm_summary.txt': DM_TEMPLATE}


@pytest.fixture
def source_tree(
    tmp_path: Path, ruleblock_files: dict[str, str], template_files: dict[str, str]
) -> tuple[Path, Path]:
    """Write the sample sources to rule_blocks/ and template_blocks/."""
    ruleblock_dir = tmp_path / 'rule_blocks'
    template_dir = tmp_path / 'template_blocks'
    ruleblock_dir.mkdir()
    template_dir.mkdir()

    for name, text in ruleblock_files.items():
        (ruleblock_dir / name).write_text(text, encoding='utf-8')
    for name, text in template_files.items():
        (template_dir / name).write_text(text, encoding='utf-8')
    (ruleblock_dir / 'README.md').write_text('not a rule block', encoding='utf-8')

    return ruleblock_dir, template_dir

