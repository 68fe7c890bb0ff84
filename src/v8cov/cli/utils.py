"""CLI utilities."""

import json
from pathlib import Path
from typing import Any

import click

from v8cov.config.loader import load_config
from v8cov.config.models import ConversionConfig
from v8cov.core.errors import ConfigError


def load_document(path: Path) -> Any:
    """Read a JSON document.

    Raises:
        click.ClickException: If the file is not valid JSON.
    """
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Failed to read JSON from {path}: {e}") from e


def resolve_config(
    *,
    strategy: str | None = None,
    workers: int | None = None,
    include_internal: bool = False,
) -> ConversionConfig:
    """Load the conversion config and apply command line overrides.

    Raises:
        click.ClickException: If the configuration is invalid.
    """
    try:
        config = load_config().conversion
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    overrides: dict[str, Any] = {}
    if strategy is not None:
        overrides["strategy"] = strategy
    if workers is not None:
        if workers < 1:
            raise click.BadParameter("must be >= 1", param_hint="--workers")
        overrides["workers"] = workers
    if include_internal:
        overrides["include_non_file_urls"] = True
    return config.model_copy(update=overrides)
