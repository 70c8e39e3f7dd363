import json
from collections import Counter

from rich.console import Console
from rich.markup import escape

from llmgrep.models import RankedResult, SearchRun


def _skip_counts(run: SearchRun) -> Counter:
    return Counter(s.reason.value for s in run.skipped)


def summary_line(run: SearchRun, results: list[RankedResult]) -> str:
    line = f"{len(results)} result(s) · {len(run.skipped)} skipped · {len(run.unscored)} unscored"
    if run.interrupted:
        line += " · interrupted"
    return line


def print_report(run: SearchRun, console: Console, verbose: bool = False) -> None:
    results = run.results()

    title = f'[bold]Results for[/bold] "{escape(run.query)}" in [cyan]{escape(str(run.root))}[/cyan]'
    if run.interrupted:
        title += " [yellow](partial: interrupted)[/yellow]"
    console.print(title)
    console.print()

    if not results:
        console.print("[dim]No relevant files found.[/dim]")
    for r in results:
        console.print(f"[bold green]{r.score:5.1f}[/bold green]  [cyan]{escape(r.rel_path)}[/cyan]")
        if r.explanation:
            console.print(f"       {escape(r.explanation)}")
        if verbose:
            filename = f"{r.filename_score:.1f}" if r.filename_score is not None else "-"
            console.print(f"[dim]       filename score {filename}, chunks {r.chunks_scored}/{r.chunks_total}[/dim]")

    if run.skipped:
        counts = ", ".join(f"{reason.replace('_', ' ')} {n}" for reason, n in sorted(_skip_counts(run).items()))
        console.print()
        console.print(f"[yellow]Skipped {len(run.skipped)} file(s):[/yellow] {counts}")
        if verbose:
            for s in run.skipped:
                detail = f" ({escape(s.detail)})" if s.detail else ""
                console.print(f"[dim]  {s.reason.value:<12} {escape(str(s.path))}{detail}[/dim]")

    if run.unscored:
        console.print()
        console.print(f"[red]Could not evaluate {len(run.unscored)} item(s):[/red]")
        for phase, u in run.unscored:
            console.print(f"  {phase.value:<8} {escape(str(u.subject))}  [red]{u.reason.value}[/red]  {escape(u.detail)}")
            if verbose and u.raw_sample:
                console.print(f"[dim]           raw: {escape(repr(u.raw_sample))}[/dim]")

    console.print()
    console.print(f"[bold]{summary_line(run, results)}[/bold]")


def report_dict(run: SearchRun) -> dict:
    results = run.results()
    return {
        "root": str(run.root),
        "query": run.query,
        "interrupted": run.interrupted,
        "results": [
            {
                "path": r.rel_path,
                "score": r.score,
                "explanation": r.explanation,
                "filename_score": r.filename_score,
                "chunks_scored": r.chunks_scored,
                "chunks_total": r.chunks_total,
            }
            for r in results
        ],
        "skipped": [{"path": str(s.path), "reason": s.reason.value, "detail": s.detail} for s in run.skipped],
        "unscored": [
            {
                "phase": phase.value,
                "subject": str(u.subject),
                "reason": u.reason.value,
                "detail": u.detail,
                "raw_sample": u.raw_sample,
            }
            for phase, u in run.unscored
        ],
        "summary": {
            "candidates": len(run.candidates),
            "results": len(results),
            "skipped": dict(_skip_counts(run)),
            "unscored": len(run.unscored),
        },
    }


def report_json(run: SearchRun) -> str:
    return json.dumps(report_dict(run), indent=2)
