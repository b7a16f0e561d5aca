from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING, Annotated, Final

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress
from rich.table import Table

from picorules_catalog.cache import (
    FileCache,
    format_cache_timestamp,
    source_fingerprint,
)
from picorules_catalog.catalog import directory_source, github_source, load_catalog
from picorules_catalog.common import DEFAULT_CACHE_DIR
from picorules_catalog.errors import CatalogError
from picorules_catalog.export import write_csv, write_json
from picorules_catalog.filters import VariableFilter, ruleblock_options
from picorules_catalog.github_api import GitHubClient, RepoConfig, template_file_url

if TYPE_CHECKING:
    from picorules_catalog.catalog import SourceLoader
    from picorules_catalog.models import Catalog, ParsedVariable

console: Final = Console()
err_console: Final = Console(stderr=True)


class StatementTypeChoice(str, Enum):
    all = 'all'
    functional = 'functional'
    conditional = 'conditional'


class TriStateChoice(str, Enum):
    all = 'all'
    yes = 'yes'
    no = 'no'


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(message)s',
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _print_stats(catalog: Catalog, *, from_cache: bool) -> None:
    stats = catalog.stats
    table = Table(title='Picorules variable catalog', show_header=False)
    table.add_column('Metric')
    table.add_column('Value', justify='right')
    table.add_row('Rule blocks', str(stats.total_ruleblocks))
    table.add_row('Variables', str(stats.total_variables))
    table.add_row('Functional', str(stats.functional_count))
    table.add_row('Conditional', str(stats.conditional_count))
    table.add_row('With label', str(stats.with_metadata_count))
    table.add_row('Without label', str(stats.without_metadata_count))
    table.add_row('Used in templates', str(stats.with_template_references_count))
    console.print(table)

    origin = 'cache' if from_cache else 'source'
    console.print(
        f'[dim]Loaded from {origin}, built '
        f'{format_cache_timestamp(catalog.timestamp)}[/dim]'
    )


def _print_variables(variables: list[ParsedVariable], *, limit: int) -> None:
    table = Table(title=f'Variables ({len(variables)})')
    columns = ('Rule block', 'Variable', 'Type', 'Label', 'Depends on', 'Templates')
    for column in columns:
        table.add_column(column, overflow='fold')

    for variable in variables[:limit] if limit > 0 else variables:
        table.add_row(
            variable.ruleblock,
            variable.variable,
            variable.statement_type,
            variable.label,
            variable.depends_on.replace(',', ', '),
            variable.referenced_in_templates.replace(',', ', '),
        )

    console.print(table)
    if 0 < limit < len(variables):
        console.print(f'[dim]... {len(variables) - limit} more not shown[/dim]')


def _print_templates(
    variables: list[ParsedVariable], *, config: RepoConfig | None
) -> None:
    counts: dict[str, int] = {}
    for variable in variables:
        for template_name in variable.templates:
            counts[template_name] = counts.get(template_name, 0) + 1

    table = Table(title=f'Templates ({len(counts)})')
    table.add_column('Template')
    table.add_column('Variables', justify='right')
    if config is not None:
        table.add_column('URL', overflow='fold')

    for template_name in sorted(counts):
        row = [template_name, str(counts[template_name])]
        if config is not None:
            row.append(template_file_url(config, template_name))
        table.add_row(*row)

    console.print(table)


def _catalog(  # noqa: PLR0913
    *,
    source_dir: Annotated[
        Path | None,
        typer.Option(
            file_okay=False,
            dir_okay=True,
            exists=True,
            resolve_path=True,
            help='Read *.prb rule blocks from this directory instead of GitHub.',
        ),
    ] = None,
    template_dir: Annotated[
        Path | None,
        typer.Option(
            file_okay=False,
            dir_okay=True,
            exists=True,
            resolve_path=True,
            help='Read *.txt templates from this directory (with --source-dir).',
        ),
    ] = None,
    cache_dir: Annotated[
        Path,
        typer.Option(
            envvar='PICORULES_CACHE_DIR',
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
            help='Directory for the version-tagged catalog cache.',
        ),
    ] = DEFAULT_CACHE_DIR,
    refresh: Annotated[
        bool, typer.Option('--refresh', help='Ignore the cache and rebuild.')
    ] = False,
    no_cache: Annotated[
        bool, typer.Option('--no-cache', help='Neither read nor write the cache.')
    ] = False,
    concurrency: Annotated[
        int, typer.Option(min=1, help='Concurrent downloads from GitHub.')
    ] = 5,
    json_output: Annotated[
        Path | None,
        typer.Option(
            '--json', dir_okay=False, writable=True, help='Write the catalog as JSON.'
        ),
    ] = None,
    csv_output: Annotated[
        Path | None,
        typer.Option(
            '--csv',
            dir_okay=False,
            writable=True,
            help='Write the filtered variables as CSV.',
        ),
    ] = None,
    search: Annotated[str, typer.Option(help='Search term.')] = '',
    ruleblock: Annotated[str, typer.Option(help='Only this rule block.')] = 'all',
    statement_type: Annotated[
        StatementTypeChoice, typer.Option(help='Statement type filter.')
    ] = StatementTypeChoice.all,
    has_metadata: Annotated[
        TriStateChoice, typer.Option(help='Require or exclude a label.')
    ] = TriStateChoice.all,
    reportable: Annotated[
        TriStateChoice, typer.Option(help='Require or exclude is_reportable.')
    ] = TriStateChoice.all,
    limit: Annotated[
        int, typer.Option(help='Maximum rows to print (0 for all).')
    ] = 50,
    show_templates: Annotated[
        bool,
        typer.Option('--templates', help='List the templates that print variables.'),
    ] = False,
    verbose: Annotated[bool, typer.Option('--verbose', '-v')] = False,
) -> None:
    _configure_logging(verbose=verbose)

    progress = Progress(console=err_console, transient=True)
    task = progress.add_task('Fetching sources', total=None)

    def on_progress(completed: int, total: int) -> None:
        progress.update(task, completed=completed, total=total)

    config: RepoConfig | None = None
    loader: SourceLoader
    if source_dir is not None:
        loader = directory_source(source_dir, template_dir)
        source = source_fingerprint(source_dir, template_dir)
    else:
        config = RepoConfig.from_env()
        loader = github_source(
            GitHubClient(config), concurrency=concurrency, on_progress=on_progress
        )
        source = source_fingerprint(
            config.owner,
            config.repo,
            config.branch,
            config.ruleblock_path,
            config.template_path,
        )

    cache = None if no_cache else FileCache(cache_dir)

    try:
        with progress:
            catalog, from_cache = load_catalog(
                loader, cache, force_refresh=refresh, source=source
            )
    except CatalogError as e:
        err_console.print(f'[red]{e}[/red]')
        raise typer.Exit(code=1) from e

    options = ruleblock_options(catalog.variables)
    if ruleblock != 'all' and ruleblock not in options:
        err_console.print(
            f'[yellow]Unknown rule block {ruleblock!r}; '
            f'available: {", ".join(options)}[/yellow]'
        )

    variables = VariableFilter(
        search_term=search,
        ruleblock=ruleblock,
        statement_type=statement_type.value,
        has_metadata=has_metadata.value,
        is_reportable=reportable.value,
    ).apply(catalog.variables)

    _print_stats(catalog, from_cache=from_cache)
    _print_variables(variables, limit=limit)
    if show_templates:
        _print_templates(variables, config=config)

    if json_output is not None:
        write_json(catalog, json_output)
    if csv_output is not None:
        write_csv(variables, csv_output)


def main() -> None:
    typer.run(_catalog)


if __name__ == '__main__':
    main()
