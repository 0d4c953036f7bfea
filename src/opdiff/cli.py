"""CLI for rendering diffs and inspecting recorded session operations."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

import typer

from .config import EngineSettings
from .diffing.unified import render_unified_diff
from .errors import DiffEngineError, FileSystemError, error_document
from .handlers import (
    DEFAULT_LIST_LIMIT,
    list_bash_history,
    list_file_changes,
    locate_session,
    show_operation_diff,
)
from .models import to_document
from .sessions.cache import SessionCache, SessionInfo
from .sessions.discovery import SessionDiscovery

APP_HELP = "Render unified diffs for recorded tool operations."

app = typer.Typer(help=APP_HELP, no_args_is_help=True)


@dataclass(slots=True)
class CLIState:
    settings: EngineSettings

    def discovery(self) -> SessionDiscovery:
        sessions = self.settings.sessions
        return SessionDiscovery(
            sessions.projects_root,
            SessionCache(ttl_seconds=sessions.cache_ttl_seconds),
            retry_delay=sessions.retry_delay_seconds,
        )


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        state = CLIState(settings=EngineSettings.load())
        ctx.obj = state
    return state


@contextmanager
def _report_errors() -> Iterator[None]:
    try:
        yield
    except DiffEngineError as error:
        typer.echo(f"error: {error.kind}: {error.message}", err=True)
        typer.echo(json.dumps(error_document(error), ensure_ascii=False), err=True)
        raise typer.Exit(code=1) from error


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise FileSystemError(f"Cannot read {path.as_posix()}: {error}", path.as_posix(), "read") from error


def _resolve_session(state: CLIState, session: Optional[Path], tool_use_id: Optional[str]) -> Path:
    if session is not None:
        return session
    if not tool_use_id:
        raise typer.BadParameter("Provide --session or --tool-use-id.")
    return locate_session(state.discovery(), tool_use_id, max_retries=state.settings.sessions.max_retries)


def _session_document(info: SessionInfo) -> dict[str, str]:
    return {"sessionFile": info.session_file, "projectHash": info.project_hash, "sessionId": info.session_id}


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to an opdiff YAML configuration file.",
    ),
) -> None:
    """Render unified diffs for recorded tool operations."""
    _setup_logging(verbose)
    if config is not None and not config.exists():
        raise typer.BadParameter(f"Config file not found: {config}")
    with _report_errors():
        ctx.obj = CLIState(settings=EngineSettings.load(config))


@app.command()
def render(
    old: Path = typer.Argument(..., help="File holding the original text."),
    new: Path = typer.Argument(..., help="File holding the modified text."),
    label: Optional[str] = typer.Option(None, "--label", help="Name shown in both diff headers."),
) -> None:
    """Print the unified diff between two files."""
    with _report_errors():
        text = render_unified_diff(
            _read_text(old),
            _read_text(new),
            old_label=label or old.as_posix(),
            new_label=label or new.as_posix(),
        )
    if text:
        typer.echo(text, nl=False)


@app.command()
def show(
    ctx: typer.Context,
    operation_id: str = typer.Argument(..., help="Tool-use id of the operation."),
    session: Optional[Path] = typer.Option(None, "--session", "-s", help="Session log to read."),
    tool_use_id: Optional[str] = typer.Option(
        None,
        "--tool-use-id",
        help="Locate the session through this tool-use id (defaults to the operation id).",
    ),
) -> None:
    """Rebuild and print the diff of one logged operation."""
    state = _state(ctx)
    with _report_errors():
        session_file = _resolve_session(state, session, tool_use_id or operation_id)
        result = show_operation_diff(session_file, operation_id, limits=state.settings.limits)
    _echo_json(to_document(result))


@app.command()
def changes(
    ctx: typer.Context,
    session: Optional[Path] = typer.Option(None, "--session", "-s", help="Session log to read."),
    tool_use_id: Optional[str] = typer.Option(None, "--tool-use-id", help="Locate the session through this id."),
    file: Optional[str] = typer.Option(None, "--file", help="Exact path, substring or glob to match."),
    since: Optional[str] = typer.Option(None, "--since", help="Inclusive ISO-8601 lower bound."),
    until: Optional[str] = typer.Option(None, "--until", help="Inclusive ISO-8601 upper bound."),
    limit: int = typer.Option(DEFAULT_LIST_LIMIT, "--limit", help="Maximum number of operations (1-1000)."),
) -> None:
    """List the file-modifying operations of a session."""
    state = _state(ctx)
    with _report_errors():
        session_file = _resolve_session(state, session, tool_use_id)
        records = list_file_changes(session_file, file_path=file, since=since, until=until, limit=limit)
    _echo_json([to_document(record) for record in records])


@app.command("bash-history")
def bash_history(
    ctx: typer.Context,
    session: Optional[Path] = typer.Option(None, "--session", "-s", help="Session log to read."),
    tool_use_id: Optional[str] = typer.Option(None, "--tool-use-id", help="Locate the session through this id."),
    limit: int = typer.Option(DEFAULT_LIST_LIMIT, "--limit", help="Maximum number of commands (1-1000)."),
) -> None:
    """List the shell commands of a session, newest first."""
    state = _state(ctx)
    with _report_errors():
        session_file = _resolve_session(state, session, tool_use_id)
        history = list_bash_history(session_file, limit=limit)
    _echo_json(to_document(history))


@app.command()
def locate(
    ctx: typer.Context,
    uid: Optional[str] = typer.Option(None, "--uid", help="Find the session mentioning this uid."),
    tool_use_id: Optional[str] = typer.Option(None, "--tool-use-id", help="Find the session recording this id."),
) -> None:
    """Print where a session log lives."""
    state = _state(ctx)
    if not uid and not tool_use_id:
        raise typer.BadParameter("Provide --uid or --tool-use-id.")
    discovery = state.discovery()
    with _report_errors():
        if uid:
            info = discovery.find_session_by_uid(uid)
        else:
            info = discovery.find_session_by_tool_use_id(
                tool_use_id, max_retries=state.settings.sessions.max_retries
            )
        if info is None:
            raise FileSystemError(f"Session not found for {uid or tool_use_id}", None, "locate")
    _echo_json(_session_document(info))


if __name__ == "__main__":
    app()
