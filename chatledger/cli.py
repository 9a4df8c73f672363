"""
ChatLedger CLI: inspect, window and convert saved chat ledgers.

Registered as `chatledger` console script via pyproject.toml.
"""

import json
import logging
import subprocess
from datetime import datetime
from pathlib import Path

import click

from .config import load_config
from .exceptions import ChatLedgerError
from .history import build_context, to_api_messages
from .transcript import default_export_filename, export_as, load_jsonl

DEMO_PROJECT = Path("examples", "toga_chat_demo")

logger = logging.getLogger("chatledger.cli")


def _find_demo_project(*starts: Path) -> Path | None:
    """First ancestor of any start directory that holds the Briefcase demo project.

    Searches from the working directory, then from the installed package.
    """
    for start in starts or (Path.cwd(), Path(__file__).parent):
        start = start.resolve()
        for directory in (start, *start.parents):
            project = directory / DEMO_PROJECT
            if (project / "pyproject.toml").is_file():
                return project
    return None


def _launch_demo(command: list[str], project: Path) -> int:
    """Run a demo launcher from the checkout that owns ``project``."""
    logger.debug("[ChatLedger] Launching demo: %s", " ".join(command))
    try:
        return subprocess.run(command, cwd=project.parents[1]).returncode
    except FileNotFoundError:
        click.secho(
            f"Error: {command[0]} is not installed; the demo runs through uv.",
            fg="red",
            err=True,
        )
        return 127


# ── Main group ────────────────────────────────────────────────────────────────


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="chatledger")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """ChatLedger: chat history and context window tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── Inspecting ledgers ────────────────────────────────────────────────────────


@cli.command()
@click.argument("ledger", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def show(ledger: Path) -> None:
    """Print every message of a saved JSONL ledger."""
    messages = load_jsonl(ledger)
    click.secho(f"=== Chat History ({len(messages)} messages) ===", fg="cyan", bold=True)
    for message in messages:
        click.echo(f"[{message.timestamp}] {message.sender} ({message.role}): {message.text}")


@cli.command()
@click.argument("ledger", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-n",
    "--limit",
    type=int,
    default=5,
    show_default=True,
    help="Most recent user/assistant messages to keep (0 or less: no limit).",
)
@click.option("--json", "as_json", is_flag=True, help="Print API-shaped role/content JSON.")
def context(ledger: Path, limit: int, as_json: bool) -> None:
    """Print the context window a model would receive.

    \b
    Examples:
        chatledger context chat.jsonl
        chatledger context chat.jsonl -n 10 --json
    """
    window = build_context(load_jsonl(ledger), limit)
    if as_json:
        click.echo(json.dumps(to_api_messages(window), ensure_ascii=False, indent=2))
        return

    scope = f"last {limit}" if limit > 0 else "all"
    click.secho(f"=== Context Messages ({scope} user/assistant) ===", fg="cyan", bold=True)
    for message in window:
        click.echo(f"[{message.role}] {message.sender}: {message.text}")


# ── Conversion ────────────────────────────────────────────────────────────────


@cli.command(name="export")
@click.argument("ledger", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(["txt", "md", "jsonl"]),
    default="txt",
    show_default=True,
    help="Output format.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Destination file (default: chat_export_<timestamp> in the export directory).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="TOML file with a [chatledger] table.",
)
def export_cmd(ledger: Path, fmt: str, output: Path | None, config_path: Path | None) -> None:
    """Convert a saved JSONL ledger to text, Markdown or JSONL."""
    messages = load_jsonl(ledger)
    if not messages:
        click.secho("No chat history to export.", fg="yellow", err=True)
        raise SystemExit(1)

    if output is None:
        config = load_config(config_path)
        output = Path(config.export_directory).expanduser() / default_export_filename(
            datetime.now(), fmt
        )

    path = export_as(messages, output, fmt)
    click.secho(f"Chat history exported successfully to: {path}", fg="green")


# ── Demo app ──────────────────────────────────────────────────────────────────


@cli.command(name="demo")
@click.option(
    "--python",
    "run_python",
    is_flag=True,
    help="Run the demo as a Python module instead of Briefcase.",
)
@click.argument("app_args", nargs=-1, type=click.UNPROCESSED)
def demo(run_python: bool, app_args: tuple[str, ...]) -> None:
    """Run the Toga chat widget demo from the repository root.

    \b
    Examples:
        chatledger demo
        chatledger demo --python
    """
    project = _find_demo_project()
    if project is None:
        click.secho(
            f"Error: demo project {DEMO_PROJECT.as_posix()} not found; "
            "run from a chatledger checkout.",
            fg="red",
            err=True,
        )
        raise SystemExit(1)

    command = ["uv", "run", "--project", str(project), "--directory", str(project)]
    if run_python:
        command += ["python", "-m", "chatledger_demo", *app_args]
    else:
        command += ["briefcase", "dev"]
        if app_args:
            command += ["--", *app_args]

    raise SystemExit(_launch_demo(command, project))


# ── Entry point ───────────────────────────────────────────────────────────────


def cli_entry() -> None:
    """Console script entry point: ledger and config errors exit with status 2."""
    try:
        cli()
    except ChatLedgerError as exc:
        logger.debug("[ChatLedger] %s: %s", type(exc).__name__, exc)
        click.secho(f"chatledger: {exc}", fg="red", err=True)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    cli_entry()
