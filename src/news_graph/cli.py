"""Command-line entry points for exploring a JSONL news corpus."""

import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich import print as rprint

from .config import get_settings
from .errors import NewsGraphError
from .logging_utils import setup_logging
from .models import to_plain
from .partition import format_date_key
from .session import Workspace

app = typer.Typer(
    help="Build per-day entity co-occurrence graphs and quizzes from a JSONL news corpus."
)


def _load_workspace(path: Path, date: Optional[str], compact: bool = False) -> Workspace:
    if not path.exists():
        raise typer.BadParameter(f"{path} does not exist.")
    workspace = Workspace(compact=compact)
    try:
        workspace.load_file(path)
    except NewsGraphError as exc:
        _fail(exc)
    if date:
        try:
            workspace.select_date(date)
        except KeyError:
            raise typer.BadParameter(
                f"{date} is not in the file. Available: {', '.join(workspace.dates)}"
            )
    return workspace


def _fail(exc: Exception) -> None:
    rprint(f"[red]{exc}[/red]")
    raise typer.Exit(code=1)


def _write_output(out_path: Path, payload: Any) -> None:
    out_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override NEWS_GRAPH_LOG_LEVEL (e.g. DEBUG)."
    ),
):
    setup_logging(log_level or get_settings().log_level)


@app.command("dates")
def dates_command(
    path: Path = typer.Argument(..., help="Path to a JSONL article file."),
):
    """List the days available in the file."""
    workspace = _load_workspace(path, None)
    for date_key in workspace.dates:
        count = len(workspace.state.by_date[date_key])
        rprint(f"[cyan]{format_date_key(date_key)}[/cyan]  {count} article(s)")


@app.command("graph")
def graph_command(
    path: Path = typer.Argument(..., help="Path to a JSONL article file."),
    date: Optional[str] = typer.Option(
        None, "--date", "-d", help="Day key (YYYYMMDD). Defaults to the latest day."
    ),
    compact: bool = typer.Option(
        False, "--compact", help="Use the small-viewport node cap."
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Optional path to write the render payload as JSON.",
    ),
):
    """
    Build the co-occurrence graph for one day.
    """
    workspace = _load_workspace(path, date, compact=compact)
    day = workspace.day_graph()
    payload = day.graph.to_render()
    rprint(
        f"[green]{format_date_key(workspace.current_date)}: "
        f"{len(payload['nodes'])} node(s), {len(payload['edges'])} edge(s)[/green]"
    )
    if out:
        _write_output(out, payload)
        rprint(f"[cyan]Wrote output to {out}[/cyan]")
        return
    for node in day.graph.nodes.values():
        subject = node.dominant_subject or "-"
        rprint(f"  {node.id}  x{node.occurrence_count}  [dim]{subject}[/dim]")
    for edge in day.graph.edges.values():
        rprint(f"  {edge.source} -- {edge.target}  ({edge.weight})")


@app.command("quiz")
def quiz_command(
    path: Path = typer.Argument(..., help="Path to a JSONL article file."),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Day key (YYYYMMDD)."),
):
    """Draw one random question for the day."""
    workspace = _load_workspace(path, date)
    try:
        picked = workspace.random_question()
    except NewsGraphError as exc:
        _fail(exc)
    rprint(f"[cyan]{picked.entity_id}[/cyan] - {picked.article.display_title()}")
    rprint(f"[bold]{picked.question.prompt}[/bold]")
    for choice in picked.question.choices:
        rprint(f"  - {choice.text}")


@app.command("cbt")
def cbt_command(
    path: Path = typer.Argument(..., help="Path to a JSONL article file."),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Day key (YYYYMMDD)."),
    out: Optional[Path] = typer.Option(
        None, "--out", "-o", help="Optional path to write the exam questions as JSON."
    ),
):
    """Prepare a CBT exam batch for the day."""
    workspace = _load_workspace(path, date)
    try:
        exam = workspace.start_cbt()
    except NewsGraphError as exc:
        _fail(exc)
    if out:
        _write_output(out, to_plain(exam.questions))
        rprint(f"[cyan]Wrote {len(exam.questions)} question(s) to {out}[/cyan]")
        return
    for number, question in enumerate(exam.questions, start=1):
        rprint(f"[bold]{number}. {question.prompt}[/bold]  [dim]({question.entity_id})[/dim]")
        for choice in question.choices:
            rprint(f"    - {choice.text}")


@app.command("featured")
def featured_command(
    path: Path = typer.Argument(..., help="Path to a JSONL article file."),
    entity: str = typer.Option(..., "--entity", "-e", help="Entity to feature."),
    exclude: Optional[str] = typer.Option(
        None, "--exclude", help="news_item_id to skip (e.g. the article just read)."
    ),
):
    """Pick a featured article for an entity."""
    workspace = _load_workspace(path, None)
    try:
        article = workspace.featured_article(entity, exclude_id=exclude)
    except NewsGraphError as exc:
        _fail(exc)
    rprint(f"[green]{article.display_title()}[/green] [dim]{article.item_id or ''}[/dim]")
    rprint(article.content)


def main():
    app()


if __name__ == "__main__":
    main()
