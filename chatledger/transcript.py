"""
Export and import of chat ledgers.

Three formats:

- plain text: the human-readable "Chat History Export" transcript
- Markdown: the same content as sections, for sharing
- JSONL: one metadata line plus one record per message; the only format that
  can be loaded back, with roles trusted as stored
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from .exceptions import MalformedRecord
from .history import ChatMessage, format_timestamp

logger = logging.getLogger("chatledger.transcript")

RULE = "=" * 40
JSONL_FORMAT_VERSION = 1
METADATA_TYPE = "chat_metadata"
MESSAGE_TYPE = "message"
EXPORT_SUFFIXES = {"txt": ".txt", "md": ".md", "jsonl": ".jsonl"}


def _stamp(exported_at: datetime | None) -> str:
    return format_timestamp(exported_at or datetime.now())


def default_export_filename(now: datetime | None = None, fmt: str = "txt") -> str:
    """Suggested export file name, e.g. ``chat_export_20251113_142501.txt``."""
    moment = now or datetime.now()
    return f"chat_export_{moment.strftime('%Y%m%d_%H%M%S')}{EXPORT_SUFFIXES[fmt]}"


def render_text(messages: Iterable[ChatMessage], exported_at: datetime | None = None) -> str:
    """Render the plain-text transcript: header block, then one entry per message."""
    ledger = list(messages)
    parts = [
        f"{RULE}\n",
        "Chat History Export\n",
        f"Exported: {_stamp(exported_at)}\n",
        f"Total Messages: {len(ledger)}\n",
        f"{RULE}\n\n",
    ]
    for message in ledger:
        parts.append(f"[{message.timestamp}] {message.sender}:\n")
        parts.append(f"{message.text}\n\n")
    return "".join(parts)


def render_markdown(
    messages: Iterable[ChatMessage],
    exported_at: datetime | None = None,
    title: str = "Chat History",
) -> str:
    """Render a Markdown transcript."""
    ledger = list(messages)
    lines = [f"# {title}", "", f"Exported: {_stamp(exported_at)}", ""]
    for message in ledger:
        lines.append(f"## {message.sender} ({message.timestamp})")
        lines.append("")
        lines.append(message.text)
        lines.append("")
    return "\n".join(lines)


def dumps_records(messages: Iterable[ChatMessage], exported_at: datetime | None = None) -> str:
    """Serialize a ledger to JSONL text."""
    ledger = list(messages)
    lines = [
        json.dumps(
            {
                "type": METADATA_TYPE,
                "format_version": JSONL_FORMAT_VERSION,
                "exported_at": _stamp(exported_at),
                "total_messages": len(ledger),
            },
            ensure_ascii=False,
        )
    ]
    for message in ledger:
        lines.append(json.dumps({"type": MESSAGE_TYPE, **message.to_dict()}, ensure_ascii=False))
    return "\n".join(lines) + "\n"


def loads_records(text: str) -> list[ChatMessage]:
    """Parse JSONL text back into messages.

    Records are separated by ``\n`` only. Other Unicode line breaks such as
    U+2028 are left unescaped by the writer and belong to the message text.
    Metadata and blank lines are skipped. Records without a ``type`` key are
    read as messages.

    Raises:
        MalformedRecord: on the first line that is not a valid record.
    """
    messages: list[ChatMessage] = []
    for line_number, raw in enumerate(text.split("\n"), start=1):
        if not raw.strip():
            continue
        try:
            record = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedRecord(f"invalid JSON ({exc.msg})", line=line_number) from exc
        if not isinstance(record, dict):
            raise MalformedRecord(
                f"expected an object, got {type(record).__name__}", line=line_number
            )

        kind = record.get("type", MESSAGE_TYPE)
        if kind == METADATA_TYPE:
            continue
        if kind != MESSAGE_TYPE:
            raise MalformedRecord(f"unknown record type '{kind}'", line=line_number)
        messages.append(ChatMessage.from_dict(record, line=line_number))
    return messages


def _write(target: Path, content: str) -> Path:
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return target


def export_text(
    messages: Iterable[ChatMessage], target: Path | str, *, exported_at: datetime | None = None
) -> Path:
    """Write the plain-text transcript to ``target``."""
    ledger = list(messages)
    path = _write(Path(target), render_text(ledger, exported_at))
    logger.info("Exported %d messages to %s", len(ledger), path)
    return path


def export_markdown(
    messages: Iterable[ChatMessage],
    target: Path | str,
    *,
    exported_at: datetime | None = None,
    title: str = "Chat History",
) -> Path:
    """Write a Markdown transcript to ``target``."""
    ledger = list(messages)
    path = _write(Path(target), render_markdown(ledger, exported_at, title=title))
    logger.info("Exported %d messages to %s", len(ledger), path)
    return path


def export_jsonl(
    messages: Iterable[ChatMessage], target: Path | str, *, exported_at: datetime | None = None
) -> Path:
    """Write a reloadable JSONL ledger to ``target``."""
    ledger = list(messages)
    path = _write(Path(target), dumps_records(ledger, exported_at))
    logger.info("Saved %d messages to %s", len(ledger), path)
    return path


def load_jsonl(source: Path | str) -> list[ChatMessage]:
    """Read a JSONL ledger written by ``export_jsonl``."""
    path = Path(source)
    messages = loads_records(path.read_text(encoding="utf-8"))
    logger.info("Loaded %d messages from %s", len(messages), path)
    return messages


def export_as(
    messages: Iterable[ChatMessage],
    target: Path | str,
    fmt: str,
    *,
    exported_at: datetime | None = None,
) -> Path:
    """Dispatch to the exporter for ``fmt`` (``txt``, ``md`` or ``jsonl``)."""
    if fmt == "md":
        return export_markdown(messages, target, exported_at=exported_at)
    if fmt == "jsonl":
        return export_jsonl(messages, target, exported_at=exported_at)
    if fmt == "txt":
        return export_text(messages, target, exported_at=exported_at)
    raise ValueError(f"Unsupported export format: {fmt}")
