from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING, Final

import typer
from jsonschema import validators
from jsonschema.exceptions import SchemaError, ValidationError
from rich import print

from picorules_catalog.common import CATALOG_SCHEMA_PATH

if TYPE_CHECKING:
    from picorules_catalog._types import CatalogDict

_SCHEMA: Final = json.loads(CATALOG_SCHEMA_PATH.read_text(encoding='utf-8'))


def check_stats_consistency(data: CatalogDict, /) -> list[str]:
    """Cross-field checks the schema cannot express."""
    stats = data['stats']
    variables = data['variables']

    errors: list[str] = []
    if stats['totalVariables'] != len(variables):
        errors.append(
            f'totalVariables is {stats["totalVariables"]}, '
            f'catalog has {len(variables)} variables'
        )
    if stats['functionalCount'] + stats['conditionalCount'] != stats['totalVariables']:
        errors.append('functionalCount + conditionalCount != totalVariables')
    if (
        stats['withMetadataCount'] + stats['withoutMetadataCount']
        != stats['totalVariables']
    ):
        errors.append('withMetadataCount + withoutMetadataCount != totalVariables')
    return errors


def validate(files: list[Path]) -> None:
    for file in files:
        data = json.loads(file.read_text(encoding='utf-8'))
        try:
            validators.validate(data, _SCHEMA)
        except (SchemaError, ValidationError) as e:
            print(f'{file}: {e.message}')
            raise typer.Exit(code=1) from e

        if errors := check_stats_consistency(data):
            for error in errors:
                print(f'{file}: {error}')
            raise typer.Exit(code=1)

        print(f'[green]{file}: ok[/green]')


def main() -> None:
    typer.run(validate)


if __name__ == '__main__':
    main()
