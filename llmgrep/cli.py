import asyncio
from pathlib import Path

import click
from rich.console import Console

from llmgrep import __version__
from llmgrep.config import Config
from llmgrep.errors import SetupError
from llmgrep.llm import create_client
from llmgrep.logging import configure_logging, get_logger, log_level
from llmgrep.models import SearchRun
from llmgrep.prompts import SYSTEM_PROMPT
from llmgrep.report import print_report, report_json
from llmgrep.search import run_search

console = Console()
err_console = Console(stderr=True)

_logger = get_logger(__name__)


async def _search(directory: Path, query: str, config: Config, run: SearchRun) -> None:
    client = create_client(config, system=SYSTEM_PROMPT)
    try:
        await run_search(directory, query, config, client, run)
    finally:
        await client.close()


def _emit(run: SearchRun, as_json: bool, verbose: bool) -> None:
    if as_json:
        click.echo(report_json(run))
    else:
        print_report(run, console, verbose=verbose)


@click.command()
@click.argument("directory", type=click.Path(path_type=Path))
@click.argument("query")
@click.option("--model", help="Model used for scoring (default: dolphin-mistral:latest)")
@click.option("--provider", type=click.Choice(["ollama", "openai", "anthropic"]), help="Scoring service")
@click.option("--base-url", help="Base URL of the scoring service")
@click.option("--top-n", type=int, help="Files kept after filename triage")
@click.option("--concurrency", type=int, help="Maximum in-flight scoring calls")
@click.option("--chunk-size", type=int, help="Characters per content chunk")
@click.option("--max-file-size", type=int, help="Largest file considered, in bytes")
@click.option("--aggregation", type=click.Choice(["max", "mean", "top_k_mean"]), help="How chunk scores combine")
@click.option("--timeout", type=float, help="Per-call timeout in seconds")
@click.option("--retries", type=int, help="Attempts per scoring call")
@click.option("--ignore", help="Comma-separated names or paths to ignore (replaces the defaults)")
@click.option("--no-follow-symlinks", is_flag=True, help="Do not descend into symlinked directories")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logs and per-item details")
@click.version_option(__version__, prog_name="llmgrep")
def main(
    directory: Path,
    query: str,
    model: str | None,
    provider: str | None,
    base_url: str | None,
    top_n: int | None,
    concurrency: int | None,
    chunk_size: int | None,
    max_file_size: int | None,
    aggregation: str | None,
    timeout: float | None,
    retries: int | None,
    ignore: str | None,
    no_follow_symlinks: bool,
    as_json: bool,
    verbose: bool,
):
    """Semantic search of DIRECTORY for QUERY using a language model."""
    configure_logging(log_level(verbose, machine_output=as_json), json_logs=as_json)

    overrides = {
        "model": model,
        "provider": provider,
        "base_url": base_url,
        "top_n": top_n,
        "concurrency": concurrency,
        "chunk_size": chunk_size,
        "max_file_size": max_file_size,
        "aggregation": aggregation,
        "request_timeout": timeout,
        "max_attempts": retries,
        "ignore_paths": ignore,
        "follow_symlinks": False if no_follow_symlinks else None,
    }
    try:
        config = Config(**{k: v for k, v in overrides.items() if v is not None})
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] invalid configuration: {e}")
        raise SystemExit(1)

    _logger.debug("Starting search", root=str(directory), query=query, model=config.model, provider=config.provider)

    run = SearchRun(root=directory.absolute(), query=query)
    try:
        asyncio.run(_search(directory, query, config, run))
    except SetupError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    except KeyboardInterrupt:
        run.interrupted = True
        err_console.print("[yellow]Interrupted, reporting partial results[/yellow]")
        _emit(run, as_json, verbose)
        raise SystemExit(130)

    _emit(run, as_json, verbose)


if __name__ == "__main__":
    main()
