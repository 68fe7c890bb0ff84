"""v8cov convert command - profiler coverage to Istanbul coverage-final.json."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from v8cov.cli.utils import load_document, resolve_config
from v8cov.core.errors import V8CovError
from v8cov.coverage import convert_process, entry_url, script_entries


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write coverage here instead of stdout",
)
@click.option(
    "--source",
    "source_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Source text of the script (single-script input only)",
)
@click.option(
    "--strategy",
    type=click.Choice(["lines", "structural"]),
    default=None,
    help="Mapping strategy (default from config: lines)",
)
@click.option("--workers", type=int, default=None, help="Worker processes for multi-file input")
@click.option(
    "--include-internal", is_flag=True, default=False, help="Also convert node:/internal scripts"
)
def convert_command(
    input_path: Path,
    output: Path | None,
    source_path: Path | None,
    strategy: str | None,
    workers: int | None,
    include_internal: bool,
) -> None:
    """Convert V8 coverage to Istanbul coverage.

    INPUT_PATH is a NODE_V8_COVERAGE file ({"result": [...]}), a list of
    script coverages, or a single script coverage.
    """
    config = resolve_config(strategy=strategy, workers=workers, include_internal=include_internal)
    document = load_document(input_path)

    sources: dict[str, str] = {}
    if source_path is not None:
        try:
            entries = script_entries(document)
        except V8CovError as e:
            raise click.ClickException(str(e)) from e
        if len(entries) != 1:
            raise click.UsageError("--source requires an input holding exactly one script")
        url = entry_url(entries[0])
        sources[url] = source_path.read_text(encoding=config.source_encoding)

    try:
        result = convert_process(document, sources=sources, config=config)
    except V8CovError as e:
        raise click.ClickException(str(e)) from e
    _write_json(result.coverage, output)

    for failure in result.failures:
        click.echo(f"{failure.url}: [{failure.error['code']}] {failure.error['message']}", err=True)
    if not result.ok:
        raise SystemExit(1)


def _write_json(data: dict[str, Any], output: Path | None) -> None:
    text = json.dumps(data, indent=2)
    if output is None:
        click.echo(text)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n")
