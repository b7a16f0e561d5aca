from __future__ import annotations

from pathlib import Path
from typing import Final

PACKAGE_ROOT: Final = Path(__file__).resolve().parent
CATALOG_SCHEMA_PATH: Final = PACKAGE_ROOT / 'catalog.schema.json'

RULEBLOCK_SUFFIX: Final = '.prb'
TEMPLATE_SUFFIX: Final = '.txt'

DEFAULT_CACHE_DIR: Final = Path.home() / '.cache' / 'picorules-catalog'
