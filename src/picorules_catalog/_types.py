from __future__ import annotations

from typing import Literal, NotRequired, TypedDict

type StatementType = Literal['functional', 'conditional']


class ParsedVariableDict(TypedDict):
    ruleblock: str
    variable: str
    statement_type: StatementType
    statement: str
    label: str
    description: str
    type: str
    is_reportable: str
    is_bi_obj: str
    eadv_attributes: str
    depends_on: str
    referenced_in_templates: str


class ParsingStatsDict(TypedDict):
    totalVariables: int
    functionalCount: int
    conditionalCount: int
    withMetadataCount: int
    withoutMetadataCount: int
    totalRuleblocks: int
    withTemplateReferencesCount: int


class FileItemDict(TypedDict):
    name: str
    path: str
    sha: NotRequired[str]
    size: NotRequired[int]
    download_url: NotRequired[str | None]
    html_url: NotRequired[str | None]
    type: NotRequired[str]


class CatalogDict(TypedDict):
    files: list[FileItemDict]
    variables: list[ParsedVariableDict]
    stats: ParsingStatsDict
    timestamp: int
    version: NotRequired[str]
