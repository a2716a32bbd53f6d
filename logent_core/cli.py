#!/usr/bin/env python3
"""
Logent Command Line Interface
=============================

Runs Logent commands against a JSON outline file.

Usage:
    logent ask     -f notes.json [--note ID] [--editing TEXT]
    logent chat    -f notes.json [--note ID] [--editing TEXT]
    logent link    -f notes.json [--note ID]
    logent links   -f notes.json [--note ID]
    logent inspect -f notes.json [--note ID]
    logent config                 Show current configuration
    logent version                Show version

Author: Logent contributors | 2026-10-16
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .commands import (
    CommandContext,
    NoticeLevel,
    Notifier,
    annotate_link,
    annotate_links,
    ask,
    chat,
    greeting,
    inspect,
)
from .config import LogentConfig, find_config_file, load_config
from .exceptions import ConfigurationError, LogentError
from .logging_utils import EventLogger, setup_logging
from .notes import OutlineFileStore
from .version import get_short_banner, get_version_info

logger = logging.getLogger(__name__)


# =============================================================================
# ANSI Colors
# =============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    BLUE = '\033[0;34m'
    CYAN = '\033[0;36m'
    BOLD = '\033[1m'
    NC = '\033[0m'

    @classmethod
    def disable(cls):
        """Disable colors (for non-TTY output)."""
        cls.RED = cls.GREEN = cls.YELLOW = cls.BLUE = ''
        cls.CYAN = cls.BOLD = cls.NC = ''


def print_ok(msg: str) -> None:
    print(f"{Colors.GREEN}✓{Colors.NC} {msg}")


def print_warn(msg: str) -> None:
    print(f"{Colors.YELLOW}⚠{Colors.NC} {msg}")


def print_error(msg: str) -> None:
    print(f"{Colors.RED}✗{Colors.NC} {msg}")


def print_info(msg: str) -> None:
    print(f"{Colors.BLUE}ℹ{Colors.NC} {msg}")


def print_header(msg: str) -> None:
    print(f"\n{Colors.BOLD}{Colors.CYAN}{msg}{Colors.NC}")
    print("=" * len(msg))


class ConsoleNotifier(Notifier):
    """Prints notices to the terminal."""

    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        if level == NoticeLevel.ERROR:
            print_error(message)
        elif level == NoticeLevel.WARNING:
            print_warn(message)
        elif level == NoticeLevel.SUCCESS:
            print_ok(message)
        else:
            print_info(message)


# =============================================================================
# Helpers
# =============================================================================

def _load_config(args: argparse.Namespace) -> LogentConfig:
    config_path = Path(args.config_file) if getattr(args, "config_file", None) else None
    return load_config(config_path)


def _open_store(args: argparse.Namespace) -> Optional[OutlineFileStore]:
    path = Path(args.file)
    if not path.exists():
        print_error(f"Outline file not found: {path}")
        return None

    store = OutlineFileStore(path)
    if args.note:
        try:
            store.focus(args.note, getattr(args, "editing", None))
        except KeyError:
            print_error(f"Unknown note: {args.note}")
            return None
    elif store.current_id is None:
        print_error("No focused note: pass --note or set 'current' in the outline")
        return None
    elif getattr(args, "editing", None) is not None:
        store.editing = args.editing
    return store


def _context(args: argparse.Namespace, store: OutlineFileStore) -> CommandContext:
    config = getattr(args, "loaded_config", None) or _load_config(args)
    events = None
    if not args.no_events:
        events = EventLogger(Path(config.logging.log_dir), config.logging.events_log)
    return CommandContext(store=store, config=config, notifier=ConsoleNotifier(), events=events)


def _run(args: argparse.Namespace, command) -> int:
    store = _open_store(args)
    if store is None:
        return 1
    ctx = _context(args, store)
    print_info(greeting(ctx.config))
    try:
        return asyncio.run(command(ctx))
    except ConfigurationError as e:
        print_error(str(e))
        return 2
    except LogentError as e:
        print_error(str(e))
        return 1


# =============================================================================
# Commands
# =============================================================================

async def _ask(ctx: CommandContext) -> int:
    outcome = await ask(ctx)
    if outcome is None:
        return 1
    if outcome.success:
        print_ok(f"Reply written ({outcome.writes} write(s), {outcome.elapsed:.1f}s)")
    return 0 if outcome.success else 1


async def _chat(ctx: CommandContext) -> int:
    outcome = await chat(ctx)
    if outcome is None:
        return 1
    if outcome.success:
        print_ok(f"Reply written ({outcome.writes} write(s), {outcome.elapsed:.1f}s)")
    return 0 if outcome.success else 1


async def _link(ctx: CommandContext) -> int:
    if await annotate_link(ctx):
        print_ok("Link annotated")
        return 0
    print_warn("Nothing to annotate")
    return 1


async def _links(ctx: CommandContext) -> int:
    count = await annotate_links(ctx)
    print_ok(f"Annotated {count} link(s)")
    return 0


async def _inspect(ctx: CommandContext) -> int:
    info = await inspect(ctx)
    if not info:
        return 1
    print(json.dumps(info, indent=2, ensure_ascii=False))
    return 0


def cmd_ask(args: argparse.Namespace) -> int:
    """Answer the focused note."""
    return _run(args, _ask)


def cmd_chat(args: argparse.Namespace) -> int:
    """Continue the focused note's thread."""
    return _run(args, _chat)


def cmd_link(args: argparse.Namespace) -> int:
    return _run(args, _link)


def cmd_links(args: argparse.Namespace) -> int:
    return _run(args, _links)


def cmd_inspect(args: argparse.Namespace) -> int:
    return _run(args, _inspect)


def cmd_config(args: argparse.Namespace) -> int:
    """Show current configuration."""
    print_header("Logent Configuration")

    path = Path(args.config_file) if args.config_file else find_config_file()
    if path:
        print_ok(f"Config file: {path}")
    else:
        print_warn("No configuration file found, using defaults")
    print()

    try:
        config = load_config(path)
    except LogentError as e:
        print_error(f"Failed to load config: {e}")
        return 1

    sections = {
        "LLM": {
            "Base URL": config.llm.base_url,
            "API key": "set" if config.llm.api_key else "missing",
            "Model": config.llm.model,
            "Custom model": config.llm.custom_model,
            "Timeout": config.llm.timeout,
        },
        "Chat": {
            "Stream": config.chat.stream,
            "Max stream elapsed": config.chat.max_stream_elapsed,
            "Auto new block": config.chat.auto_new_block,
            "Debug prompts": config.chat.debug_prompts,
        },
        "Logging": {
            "Level": config.logging.level,
            "Log dir": config.logging.log_dir,
        },
    }

    for section, items in sections.items():
        print(f"{Colors.BOLD}{section}:{Colors.NC}")
        for key, value in items.items():
            print(f"  {key}: {value}")
        print()

    if not config.llm.api_key:
        print_info("Set LOGENT_API_KEY (or OPENAI_API_KEY) to enable ask and chat")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    if args.verbose:
        print(json.dumps(get_version_info(), indent=2))
    else:
        print(get_short_banner())
    return 0


# =============================================================================
# Entry point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logent",
        description="Logent - LLM conversations and paper links in your notes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  logent ask -f notes.json --note q1        Answer note q1
  logent chat -f notes.json                 Continue the focused note's thread
  logent links -f notes.json --note papers  Annotate every paper link under 'papers'
  logent config                             Show current configuration
        """
    )
    parser.add_argument("-c", "--config-file", help="Path to logent.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def note_command(name: str, help_text: str, func, editing: bool = True):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-f", "--file", required=True, help="Outline JSON file")
        sub.add_argument("-n", "--note", help="Id of the note to focus")
        if editing:
            sub.add_argument("-e", "--editing", help="Live text of the focused note")
        sub.add_argument("--no-events", action="store_true", help="Do not write the event log")
        sub.set_defaults(func=func)
        return sub

    note_command("ask", "Ask about the focused note", cmd_ask)
    note_command("chat", "Continue the focused note's conversation", cmd_chat)
    note_command("link", "Turn the focused note's paper URL into a citation", cmd_link)
    note_command("links", "Turn every child paper URL into a citation", cmd_links, editing=False)
    note_command("inspect", "Show the focused note's properties", cmd_inspect, editing=False)

    sub = subparsers.add_parser("config", help="Show current configuration")
    sub.set_defaults(func=cmd_config)

    sub = subparsers.add_parser("version", help="Show version")
    sub.set_defaults(func=cmd_version)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    if not sys.stdout.isatty():
        Colors.disable()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.verbose:
        setup_logging("DEBUG")

    # Outline commands share one loaded configuration
    if hasattr(args, "file"):
        args.loaded_config = _load_config(args)
        if not args.verbose:
            setup_logging(args.loaded_config.logging.level)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
