"""Activity logging for MCP tool calls.

Every MCP tool invocation is appended to a JSONL file so users can see what
their AI agent did through gh-vault. Each line is a JSON object with
timestamp, tool name, arguments, result preview, error and duration.

The log lives in the gh-vault config directory unless GH_VAULT_LOG_PATH is
set. Tokens never appear in tool arguments, so entries are safe to keep.
"""

from __future__ import annotations

import json
import logging
import os
from collections import deque
from datetime import datetime
from pathlib import Path

from ghvault.config import Config

logger = logging.getLogger(__name__)

RESULT_PREVIEW_LIMIT = 500
LOG_FILENAME = "activity.jsonl"


def _resolve_log_path() -> Path:
    env_path = os.getenv("GH_VAULT_LOG_PATH", "").strip()
    if env_path:
        return Path(env_path)
    return Config.load().config_dir / LOG_FILENAME


def log_tool_call(
    tool_name: str,
    arguments: dict,
    result_text: str,
    error: str | None,
    duration_ms: int,
) -> None:
    """Append a tool call entry to the activity log. Never raises."""
    entry = {
        "timestamp": datetime.now().isoformat(),
        "tool_name": tool_name,
        "arguments": arguments,
        "result_preview": result_text[:RESULT_PREVIEW_LIMIT] if result_text else "",
        "error": error,
        "duration_ms": duration_ms,
    }
    try:
        log_path = _resolve_log_path()
        log_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")
    except OSError as e:
        # never fail a tool call over the activity log
        logger.debug("Could not write activity log: %s", e)


def read_activity_log(
    limit: int = 20,
    tool_name: str | None = None,
    log_path: Path | None = None,
) -> list[dict]:
    """Return up to ``limit`` entries, newest first.

    Lines that are not JSON objects (a torn write, manual edits) are skipped
    with a debug message. OSError from reading the file propagates.
    """
    path = log_path or _resolve_log_path()
    if limit <= 0 or not path.exists():
        return []

    recent: deque[dict] = deque(maxlen=limit)
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed activity entry at %s:%d", path, lineno)
                continue
            if not isinstance(entry, dict):
                logger.debug("Skipping non-object activity entry at %s:%d", path, lineno)
                continue
            if tool_name is None or entry.get("tool_name") == tool_name:
                recent.append(entry)

    return list(reversed(recent))
