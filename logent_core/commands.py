"""
Logent Commands - User-facing entry points

Each command reads the focused note (and its neighborhood) from the note
store, does its work, and reports problems through a Notifier instead of
raising, except for missing configuration which stops a command before
anything is written.

Commands:
    annotate_link   - replace a paper URL under the cursor by a citation
    annotate_links  - same for every child of the focused note
    ask             - one-off question about the focused note
    chat            - continue the conversation the focused note belongs to
    inspect         - show the focused note's stored properties

Author: Logent contributors | 2026-10-16
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .config import CUSTOM_MODEL, DEFAULT_MODEL, LogentConfig
from .dialect import MODEL_PROPERTY, Dialect, embed_metadata, model_of
from .exceptions import TransportError
from .llm_backends import CompletionBackend, create_completion_backend
from .logging_utils import EventLogger, LogLevel
from .notes import Note, NoteStore
from .paper_links import (
    PaperInfo,
    canonicalize_url,
    fetch_paper_info,
    format_citation,
    host_of,
    is_known_host,
)
from .reconciler import CompletionOutcome, ExchangeState, run_completion
from .threads import Message, build_single_messages, build_thread_messages

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Time out when reading response stream!"


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notifier:
    """Shows short messages to the user. The default only logs them."""

    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        if level == NoticeLevel.ERROR:
            logger.error(message)
        elif level == NoticeLevel.WARNING:
            logger.warning(message)
        else:
            logger.info(message)


def _default_fetcher(config: LogentConfig) -> Callable[[str], PaperInfo]:
    def fetch(url: str) -> PaperInfo:
        return fetch_paper_info(url, timeout=config.links.timeout, user_agent=config.links.user_agent)
    return fetch


@dataclass
class CommandContext:
    """Everything a command needs from its surroundings."""
    store: NoteStore
    config: LogentConfig
    notifier: Notifier = field(default_factory=Notifier)
    backend_factory: Callable[[LogentConfig], CompletionBackend] = create_completion_backend
    paper_fetcher: Optional[Callable[[str], PaperInfo]] = None
    events: Optional[EventLogger] = None
    clock: Callable[[], float] = time.monotonic

    def fetch_paper(self, url: str) -> PaperInfo:
        fetcher = self.paper_fetcher or _default_fetcher(self.config)
        return fetcher(url)

    def log_event(self, event_type: str, data: Dict[str, Any], level: LogLevel = LogLevel.INFO):
        if self.events is not None:
            self.events.log_event(event_type, data, level)


# =============================================================================
# Helpers
# =============================================================================

def resolve_model(config: LogentConfig) -> str:
    """Configured model, or the custom model name when 'custom-model' is selected."""
    if config.llm.model == CUSTOM_MODEL:
        return config.llm.custom_model or DEFAULT_MODEL
    return config.llm.model


async def resolve_dialect(store: NoteStore) -> Dialect:
    """Current document's format, else the user's preferred format."""
    current = await store.get_current_format()
    if current:
        return Dialect.parse(current)
    return Dialect.parse(await store.get_user_format())


async def ensure_trailing_note(store: NoteStore, anchor_id: str) -> Optional[Note]:
    """Insert an empty sibling after anchor_id unless one already follows it."""
    if await store.get_next_sibling(anchor_id) is not None:
        return None
    return await store.insert_note(anchor_id, "", sibling=True)


def greeting(config: LogentConfig) -> str:
    if config.user_name:
        return f"Hello {config.user_name}---Greeting from Logent!"
    return "Hello from Logent!"


def report_outcome(ctx: CommandContext, outcome: CompletionOutcome) -> None:
    """Tell the user how an exchange ended."""
    if outcome.state == ExchangeState.TIMED_OUT:
        ctx.notifier.notify(TIMEOUT_MESSAGE, NoticeLevel.WARNING)
    elif outcome.state == ExchangeState.FAILED:
        ctx.notifier.notify(f"Error in chat completion: {outcome.error}", NoticeLevel.ERROR)

    ctx.log_event(
        "completion",
        {
            "state": outcome.state.value,
            "writes": outcome.writes,
            "chunks": outcome.chunks,
            "skipped_chunks": outcome.skipped_chunks,
            "elapsed": round(outcome.elapsed, 3),
            "error": outcome.error,
        },
        LogLevel.ERROR if outcome.state == ExchangeState.FAILED else LogLevel.INFO,
    )


async def _reply(
    ctx: CommandContext,
    backend: CompletionBackend,
    messages: List[Message],
    dialect: Dialect,
    anchor_id: str,
    trailing_anchor_id: Optional[str] = None,
) -> CompletionOutcome:
    """
    Create the reply note under anchor_id and fill it.

    With auto_new_block, an empty note is kept after trailing_anchor_id
    (the reply itself when not given).
    """
    model = resolve_model(ctx.config)
    initial_body = embed_metadata(dialect, model, "")

    reply = await ctx.store.insert_note(anchor_id, initial_body, focus=False)
    await ctx.store.upsert_property(reply.id, MODEL_PROPERTY, model)

    outcome = await run_completion(
        backend,
        messages,
        model,
        stream=ctx.config.chat.stream,
        store=ctx.store,
        target_id=reply.id,
        initial_body=initial_body,
        budget_seconds=ctx.config.chat.max_stream_elapsed,
        debug=ctx.config.chat.debug_prompts,
        clock=ctx.clock,
    )
    report_outcome(ctx, outcome)

    if ctx.config.chat.auto_new_block:
        await ensure_trailing_note(ctx.store, trailing_anchor_id or reply.id)
    return outcome


# =============================================================================
# Paper links
# =============================================================================

async def link_paper(ctx: CommandContext, note_id: str, content: str) -> bool:
    """
    Replace a paper URL by its citation and add the abstract below it.

    Returns:
        True if the note was rewritten
    """
    raw_url = content.strip()
    host = host_of(raw_url)

    if not is_known_host(host):
        logger.debug(f"Unknown host {host!r} for note {note_id}")
        return False

    url = canonicalize_url(raw_url)
    try:
        info = await asyncio.to_thread(ctx.fetch_paper, url)
    except TransportError as e:
        logger.error(f"Paper lookup failed: {e}")
        ctx.notifier.notify(f"Could not fetch {url}", NoticeLevel.ERROR)
        ctx.log_event("link", {"url": url, "error": str(e)}, LogLevel.ERROR)
        return False

    dialect = await resolve_dialect(ctx.store)
    citation = format_citation(info.title, url, dialect)

    await ctx.store.update_note(note_id, citation)
    await ctx.store.insert_note(note_id, info.abstract, focus=False)
    await ctx.store.set_collapsed(note_id, True)

    ctx.log_event("link", {"url": url, "title": info.title})
    return True


async def annotate_link(ctx: CommandContext) -> bool:
    current = await ctx.store.get_current_note()
    if current is None:
        ctx.notifier.notify("No note is focused", NoticeLevel.WARNING)
        return False
    content = await ctx.store.get_editing_content()
    return await link_paper(ctx, current.id, content)


async def annotate_links(ctx: CommandContext) -> int:
    """Link every child of the focused note; returns how many were rewritten."""
    current = await ctx.store.get_current_note(include_children=True)
    if current is None:
        ctx.notifier.notify("No note is focused", NoticeLevel.WARNING)
        return 0

    linked = 0
    for child in current.children:
        if await link_paper(ctx, child.id, child.content):
            linked += 1
    return linked


# =============================================================================
# Conversations
# =============================================================================

async def ask(ctx: CommandContext) -> Optional[CompletionOutcome]:
    """Answer the focused note on its own; the reply becomes its child."""
    backend = ctx.backend_factory(ctx.config)

    current = await ctx.store.get_current_note()
    if current is None:
        ctx.notifier.notify("No note is focused", NoticeLevel.WARNING)
        return None

    dialect = await resolve_dialect(ctx.store)
    content = await ctx.store.get_editing_content()
    messages = build_single_messages(ctx.config.chat.system_message, dialect, content)

    ctx.log_event("command", {"name": "ask", "note": current.id})
    return await _reply(ctx, backend, messages, dialect, current.id, trailing_anchor_id=current.id)


async def chat(ctx: CommandContext) -> Optional[CompletionOutcome]:
    """
    Continue the thread the focused note belongs to.

    The thread is the focused note's parent and all of its children; the
    reply is appended as the parent's last child.
    """
    backend = ctx.backend_factory(ctx.config)

    current = await ctx.store.get_current_note()
    if current is None:
        ctx.notifier.notify("No note is focused", NoticeLevel.WARNING)
        return None
    if current.parent_id is None:
        logger.error("No parent note found")
        ctx.notifier.notify("Chat needs the note to sit under a parent note", NoticeLevel.WARNING)
        return None

    dialect = await resolve_dialect(ctx.store)
    content = await ctx.store.get_editing_content()
    parent = await ctx.store.get_note(current.parent_id, include_children=True)

    messages = build_thread_messages(
        ctx.config.chat.system_message,
        dialect,
        parent.content,
        parent.children,
        current.id,
        content,
    )

    ctx.log_event("command", {"name": "chat", "note": current.id, "turns": len(messages) - 1})
    return await _reply(ctx, backend, messages, dialect, parent.id)


async def inspect(ctx: CommandContext) -> Dict[str, Any]:
    """Return (and log) the focused note's properties and recorded model."""
    current = await ctx.store.get_current_note()
    if current is None:
        ctx.notifier.notify("No note is focused", NoticeLevel.WARNING)
        return {}

    properties = await ctx.store.get_properties(current.id)
    model = model_of(properties)
    logger.info(f"Note {current.id} properties: {properties}")
    logger.info(f"Note {current.id} model: {model}")
    return {"id": current.id, "properties": properties, "model": model}
