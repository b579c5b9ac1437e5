"""pagesift CLI — run the scrape pipeline from a terminal.

Usage:
    python cli/main.py --help

Commands:
    scrape     → fetch-or-render a URL and print its extracted content
    classify   → check a saved HTML file for bot-protection signatures
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from pagesift.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json

import typer

from pagesift.config import settings
from pagesift.logging_config import configure_logging
from pagesift.scraper.checkpoint import classify
from pagesift.scraper.errors import ScrapeError, ScrapingBlockedError
from pagesift.scraper.extractor import extract_title
from pagesift.scraper.pipeline import build_pipeline

app = typer.Typer(
    name="pagesift",
    help="pagesift web content extraction CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Configure logging for every command.  Logs go to stderr."""
    configure_logging(
        settings.log_format,
        "DEBUG" if verbose else settings.log_level,
        stream=sys.stderr,
    )


@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="Page to scrape; https:// is assumed if no scheme."),
    as_json: bool = typer.Option(False, "--json", help="Print the API response body."),
) -> None:
    """Retrieve a page and print its title, description and content."""
    pipeline = build_pipeline(settings)
    try:
        result = asyncio.run(pipeline.run(url))
    except ScrapeError as exc:
        if as_json:
            typer.echo(json.dumps(exc.to_dict(), indent=2))
        else:
            typer.echo(f"[scrape] {exc.message}")
            if isinstance(exc, ScrapingBlockedError):
                typer.echo(f"[scrape] {exc.suggestion}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    data = result.data
    typer.echo(f"URL:         {data.url}")
    typer.echo(f"Title:       {data.title}")
    typer.echo(f"Description: {data.description}")
    typer.echo(f"Method:      {result.extraction_method}")
    typer.echo("")
    typer.echo(data.content)


@app.command("classify")
def classify_file(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Saved HTML file."),
    title: str = typer.Option(None, "--title", help="Override the page title."),
) -> None:
    """Report whether a saved page is a bot-protection checkpoint."""
    html = path.read_text(encoding="utf-8", errors="replace")
    verdict = classify(html, title if title is not None else extract_title(html))
    if not verdict.is_checkpoint:
        typer.echo("[classify] No checkpoint detected.")
        return
    typer.echo(f"[classify] Checkpoint: {verdict.type.value}")
    typer.echo(f"[classify] {verdict.message}")


if __name__ == "__main__":
    app()
