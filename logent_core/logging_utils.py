"""
Logging Utilities for Logent

- mask_secrets: scrub credentials before anything reaches a log
- format_prompts: printable dump of a transcript (debug_prompts setting)
- EventLogger: structured JSONL trail of commands and exchanges

Author: Logent contributors | 2026-10-16
"""

import json
import logging
import re
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Optional


class LogLevel(str, Enum):
    """Log levels for Logent event logs."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# Credential shapes: masked everywhere, including prompt dumps
CREDENTIAL_PATTERNS = [
    (re.compile(r"\b(Bearer)\s+([a-zA-Z0-9_\-\.]+)"), r"\1 ***"),
    (re.compile(r"\bsk-[A-Za-z0-9_\-]{8,}"), "sk-***"),
]

# Patterns for secret masking (environment variables, tokens, keys)
SECRET_PATTERNS = [
    (re.compile(r"(API_KEY|TOKEN|SECRET|PASSWORD|PASS|AUTH)[=:]\s*['\"]?([^'\"\ \n]+)", re.I), r"\1=***"),
    (re.compile(r"(Bearer|token)\s+([a-zA-Z0-9_\-\.]+)", re.I), r"\1 ***"),
] + CREDENTIAL_PATTERNS


def mask_secrets(text: str) -> str:
    """
    Mask secrets in text before logging.

    Args:
        text: Raw text that may contain secrets

    Returns:
        Text with secrets replaced by ***
    """
    masked = text
    for pattern, replacement in SECRET_PATTERNS:
        masked = pattern.sub(replacement, masked)
    return masked


def mask_credentials(text: str) -> str:
    """Mask only credential-shaped strings (bearer tokens, sk- keys); prose is kept."""
    masked = text
    for pattern, replacement in CREDENTIAL_PATTERNS:
        masked = pattern.sub(replacement, masked)
    return masked


def format_prompts(messages: Iterable[Any]) -> str:
    """Render a transcript as role/content blocks framed by '---' lines."""
    blocks = []
    for msg in messages:
        if isinstance(msg, dict):
            role, content = msg["role"], msg["content"]
        else:
            role = getattr(msg.role, "value", msg.role)
            content = msg.content
        blocks.append(f"{role}:\n{content}")
    return "---\n" + mask_credentials("\n\n".join(blocks)) + "\n---"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class EventLogger:
    """
    File-based structured event log.

    Events are appended to {log_dir}/{events_log} as one JSON object per
    line: timestamp, level, type, data.
    """

    def __init__(
        self,
        log_dir: Path,
        events_log: str = "events.jsonl",
        min_level: LogLevel = LogLevel.INFO,
        mask_secrets_enabled: bool = True,
    ):
        """
        Initialize event logger.

        Args:
            log_dir: Directory for log files
            events_log: File name of the JSONL log
            min_level: Minimum level to write
            mask_secrets_enabled: Whether to mask secrets in events
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.min_level = min_level
        self.mask_secrets_enabled = mask_secrets_enabled
        self.json_log = self.log_dir / events_log

    def _should_log(self, level: LogLevel) -> bool:
        levels = [LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARNING, LogLevel.ERROR]
        return levels.index(level) >= levels.index(self.min_level)

    def log_event(self, event_type: str, data: Dict[str, Any], level: LogLevel = LogLevel.INFO):
        """
        Append a structured event.

        Args:
            event_type: Type of event (e.g., "command", "completion", "link")
            data: Event data dictionary
            level: Log level
        """
        if not self._should_log(level):
            return

        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "type": event_type,
            "data": data,
        }

        event_str = json.dumps(event, ensure_ascii=False)
        if self.mask_secrets_enabled:
            event_str = mask_secrets(event_str)

        with self.json_log.open("a", encoding="utf-8") as f:
            f.write(event_str + "\n")

    def read_events(self, event_type: Optional[str] = None) -> list:
        """Read back logged events, optionally filtered by type."""
        if not self.json_log.exists():
            return []
        events = []
        with self.json_log.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                event = json.loads(line)
                if event_type is None or event["type"] == event_type:
                    events.append(event)
        return events
