"""v8cov summary command - statement/branch/function coverage per file."""

import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from v8cov.cli.utils import load_document
from v8cov.coverage.report import build_summary, compress_ranges


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def summary_command(input_path: Path, as_json: bool) -> None:
    """Summarize an Istanbul coverage map.

    INPUT_PATH is a coverage-final.json as written by 'v8cov convert'.
    """
    coverage = load_document(input_path)
    if not isinstance(coverage, dict):
        raise click.ClickException(f"{input_path} is not a coverage map keyed by path")

    summary = build_summary(coverage)
    if as_json:
        click.echo(json.dumps(summary, indent=2))
        return

    Console().print(_summary_table(summary))


def _percent(rate: float) -> str:
    return f"{rate * 100:.1f}%"


def _summary_table(summary: dict[str, Any]) -> Table:
    table = Table(title="Coverage summary")
    table.add_column("File", overflow="fold")
    table.add_column("Stmts", justify="right")
    table.add_column("Branches", justify="right")
    table.add_column("Funcs", justify="right")
    table.add_column("Uncovered lines", overflow="fold")

    for stats in summary["files"]:
        table.add_row(
            stats["path"],
            _percent(stats["statement_rate"]),
            _percent(stats["branch_rate"]),
            _percent(stats["function_rate"]),
            compress_ranges(stats["uncovered_lines"]),
        )

    total = summary["summary"]
    table.add_section()
    table.add_row(
        f"[bold]All files ({total['total_files']})[/bold]",
        _percent(total["statement_rate"]),
        _percent(total["branch_rate"]),
        _percent(total["function_rate"]),
        "",
    )
    return table
