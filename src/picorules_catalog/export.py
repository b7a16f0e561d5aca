from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import TYPE_CHECKING

from picorules_catalog.models import ParsedVariable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from _typeshed import StrPath

    from picorules_catalog.models import Catalog


def write_json(catalog: Catalog, path: StrPath, /) -> None:
    data = {'$schema': './catalog.schema.json', **catalog.to_json()}
    Path(path).write_text(json.dumps(data, indent=2), encoding='utf-8')


def write_csv(variables: Iterable[ParsedVariable], path: StrPath, /) -> None:
    """Write one row per record, columns in `ParsedVariable` field order."""
    with Path(path).open('w', encoding='utf-8', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=ParsedVariable.field_names())
        writer.writeheader()
        for variable in variables:
            writer.writerow(variable.to_json())
