"""CLI interface for Document Chat ingestion."""
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml

from ..config.models import IngestConfig, UploadCandidate
from ..ingest.batch import failure_message, parse_files_detailed
from ..ingest.file_utils import create_content_preview, format_file_size
from ..ingest.reader import build_registry, parse_file
from ..ingest.errors import IngestError
from ..ingest.validator import validate_files

app = typer.Typer(help="Document Chat - validate uploads and extract plain text")

logger = logging.getLogger(__name__)


def _load_config(config_path: Optional[str] = None) -> IngestConfig:
    """Build an IngestConfig from env vars, overridden by a YAML or JSON file."""
    base = IngestConfig.from_env()
    if config_path is None:
        return base
    path = Path(config_path)
    with open(path, encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)
    if not isinstance(data, dict):
        raise typer.BadParameter(f"Config must be a mapping: {config_path}")
    return IngestConfig(**{**base.model_dump(), **data})


def _load_candidates(paths: List[str]) -> List[UploadCandidate]:
    candidates = []
    for p in paths:
        try:
            candidates.append(UploadCandidate.from_path(p))
        except (FileNotFoundError, ValueError) as e:
            raise typer.BadParameter(str(e))
    return candidates


@app.callback()
def cli_root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging once per invocation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command("validate")
def cli_validate(
    files: List[str] = typer.Argument(..., help="Files to check"),
    config: Optional[str] = typer.Option(None, help="Path to config YAML/JSON"),
):
    """Check file types and sizes without parsing."""
    cfg = _load_config(config)
    candidates = _load_candidates(files)
    result = validate_files(candidates, cfg)
    for c in candidates:
        typer.echo(f"  {c.name} ({format_file_size(c.size_bytes)})")
    if result.valid:
        typer.echo(f"✓ {len(candidates)} file(s) valid")
        return
    for err in result.errors:
        typer.echo(f"✗ {err}", err=True)
    raise typer.Exit(code=1)


@app.command("parse")
def cli_parse(
    files: List[str] = typer.Argument(..., help="Files to extract"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Parallel workers"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON outcomes"),
    config: Optional[str] = typer.Option(None, help="Path to config YAML/JSON"),
):
    """Extract plain text from each file.

    Exits with status 1 when validation fails or any file fails to parse.
    """
    cfg = _load_config(config)
    candidates = _load_candidates(files)
    result = validate_files(candidates, cfg)
    if not result.valid:
        for err in result.errors:
            typer.echo(f"✗ {err}", err=True)
        raise typer.Exit(code=1)

    outcomes = parse_files_detailed(
        candidates, build_registry(cfg), workers or cfg.max_workers,
    )

    if as_json:
        typer.echo(json.dumps([o.model_dump() for o in outcomes], ensure_ascii=False, indent=2))
    else:
        for o in outcomes:
            typer.echo(f"==> {o.file_name} <==")
            typer.echo(o.render())
            typer.echo("")

    message = failure_message(outcomes)
    if message:
        typer.echo(message, err=True)
        raise typer.Exit(code=1)


@app.command("preview")
def cli_preview(
    file: str = typer.Argument(..., help="File to preview"),
    max_length: Optional[int] = typer.Option(None, "--max-length", help="Preview length"),
    config: Optional[str] = typer.Option(None, help="Path to config YAML/JSON"),
):
    """Print the stored-metadata preview of one file's text."""
    cfg = _load_config(config)
    [candidate] = _load_candidates([file])
    try:
        text = parse_file(candidate, build_registry(cfg))
    except IngestError as e:
        typer.echo(f"✗ {candidate.name}: {e.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(create_content_preview(text, max_length or cfg.preview_length))


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
