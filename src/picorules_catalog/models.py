"""Value objects produced by the extraction engine.

All records are frozen. The template cross-reference join produces new
`ParsedVariable` instances through `dataclasses.replace` rather than mutating
the ones returned by the rule-block parser.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Final, Self

if TYPE_CHECKING:
    from picorules_catalog._types import (
        CatalogDict,
        FileItemDict,
        ParsedVariableDict,
        ParsingStatsDict,
        StatementType,
    )

STATEMENT_TYPES: Final = ('functional', 'conditional')


@dataclass(frozen=True, slots=True)
class VariableMetadata:
    """Fields of a `#define_attribute` directive. `None` means absent."""

    label: str | None = None
    type: str | None = None
    is_reportable: str | None = None
    is_bi_obj: str | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.label is None
            and self.type is None
            and self.is_reportable is None
            and self.is_bi_obj is None
        )


@dataclass(frozen=True, slots=True)
class ParsedVariable:
    """One classified statement of a rule block.

    A variable name that is assigned by several statements produces several
    records, so `key` is not unique across a catalog.
    """

    ruleblock: str
    variable: str
    statement_type: StatementType
    statement: str
    label: str = ''
    description: str = ''
    type: str = ''
    is_reportable: str = ''
    is_bi_obj: str = ''
    eadv_attributes: str = ''
    depends_on: str = ''
    referenced_in_templates: str = ''

    @property
    def key(self) -> str:
        return f'{self.ruleblock}.{self.variable}'

    @property
    def dependencies(self) -> list[str]:
        return self.depends_on.split(',') if self.depends_on else []

    @property
    def templates(self) -> list[str]:
        return (
            self.referenced_in_templates.split(',')
            if self.referenced_in_templates
            else []
        )

    def to_json(self) -> ParsedVariableDict:
        return {
            'ruleblock': self.ruleblock,
            'variable': self.variable,
            'statement_type': self.statement_type,
            'statement': self.statement,
            'label': self.label,
            'description': self.description,
            'type': self.type,
            'is_reportable': self.is_reportable,
            'is_bi_obj': self.is_bi_obj,
            'eadv_attributes': self.eadv_attributes,
            'depends_on': self.depends_on,
            'referenced_in_templates': self.referenced_in_templates,
        }

    @classmethod
    def from_json(cls, data: ParsedVariableDict) -> Self:
        if data['statement_type'] not in STATEMENT_TYPES:
            raise ValueError(f'Invalid statement_type: {data["statement_type"]}')

        return cls(
            ruleblock=data['ruleblock'],
            variable=data['variable'],
            statement_type=data['statement_type'],
            statement=data['statement'],
            label=data.get('label', ''),
            description=data.get('description', ''),
            type=data.get('type', ''),
            is_reportable=data.get('is_reportable', ''),
            is_bi_obj=data.get('is_bi_obj', ''),
            eadv_attributes=data.get('eadv_attributes', ''),
            depends_on=data.get('depends_on', ''),
            referenced_in_templates=data.get('referenced_in_templates', ''),
        )

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]


@dataclass(frozen=True, slots=True)
class TemplateReference:
    template_name: str
    variable_references: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ParsingStats:
    total_variables: int = 0
    functional_count: int = 0
    conditional_count: int = 0
    with_metadata_count: int = 0
    without_metadata_count: int = 0
    total_ruleblocks: int = 0
    with_template_references_count: int = 0

    def to_json(self) -> ParsingStatsDict:
        return {
            'totalVariables': self.total_variables,
            'functionalCount': self.functional_count,
            'conditionalCount': self.conditional_count,
            'withMetadataCount': self.with_metadata_count,
            'withoutMetadataCount': self.without_metadata_count,
            'totalRuleblocks': self.total_ruleblocks,
            'withTemplateReferencesCount': self.with_template_references_count,
        }

    @classmethod
    def from_json(cls, data: ParsingStatsDict) -> Self:
        return cls(
            total_variables=data['totalVariables'],
            functional_count=data['functionalCount'],
            conditional_count=data['conditionalCount'],
            with_metadata_count=data['withMetadataCount'],
            without_metadata_count=data['withoutMetadataCount'],
            total_ruleblocks=data['totalRuleblocks'],
            with_template_references_count=data.get('withTemplateReferencesCount', 0),
        )


@dataclass(frozen=True, slots=True)
class FileItem:
    """Listing metadata for one source file."""

    name: str
    path: str
    sha: str | None = None
    size: int | None = None
    download_url: str | None = None
    html_url: str | None = None

    def to_json(self) -> FileItemDict:
        item: FileItemDict = {'name': self.name, 'path': self.path}

        if self.sha is not None:
            item['sha'] = self.sha

        if self.size is not None:
            item['size'] = self.size

        if self.download_url is not None:
            item['download_url'] = self.download_url

        if self.html_url is not None:
            item['html_url'] = self.html_url

        return item

    @classmethod
    def from_json(cls, data: FileItemDict) -> Self:
        return cls(
            name=data['name'],
            path=data['path'],
            sha=data.get('sha'),
            size=data.get('size'),
            download_url=data.get('download_url'),
            html_url=data.get('html_url'),
        )


@dataclass(frozen=True, slots=True)
class Catalog:
    """The unit persisted by the cache: listing, records and stats."""

    files: tuple[FileItem, ...]
    variables: tuple[ParsedVariable, ...]
    stats: ParsingStats
    timestamp: int

    def to_json(self) -> CatalogDict:
        return {
            'files': [item.to_json() for item in self.files],
            'variables': [variable.to_json() for variable in self.variables],
            'stats': self.stats.to_json(),
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_json(cls, data: CatalogDict) -> Self:
        return cls(
            files=tuple(FileItem.from_json(item) for item in data['files']),
            variables=tuple(
                ParsedVariable.from_json(variable) for variable in data['variables']
            ),
            stats=ParsingStats.from_json(data['stats']),
            timestamp=data['timestamp'],
        )
