"""
Logent Core - LLM conversations and paper links inside an outliner

Author: Logent contributors | 2026-10-16
"""

from .version import __version__

from .exceptions import (
    LogentError,
    ConfigurationError,
    TransportError,
    UnsupportedDialectError,
)
from .dialect import (
    MODEL_PROPERTY,
    Dialect,
    augment_system_message,
    embed_metadata,
    metadata_prefix,
    model_of,
    strip_metadata,
    system_suffix,
)
from .notes import Note, NoteStore, InMemoryNoteStore, OutlineFileStore
from .threads import Role, Message, build_single_messages, build_thread_messages
from .llm_backends import (
    CompletionBackend,
    OpenAICompletionBackend,
    StreamChunk,
    create_completion_backend,
)
from .reconciler import (
    CompletionOutcome,
    ExchangeState,
    StreamReconciler,
    run_completion,
)
from .paper_links import (
    KnownHost,
    PaperInfo,
    canonicalize_url,
    fetch_paper_info,
    format_citation,
    parse_paper_info,
)
from .config import LogentConfig, get_config, load_config, reload_config, save_config
from .logging_utils import EventLogger, LogLevel, mask_secrets
from .commands import (
    CommandContext,
    Notifier,
    NoticeLevel,
    annotate_link,
    annotate_links,
    ask,
    chat,
    inspect,
)

__all__ = [
    "__version__",
    # Errors
    "LogentError",
    "ConfigurationError",
    "TransportError",
    "UnsupportedDialectError",
    # Dialects
    "MODEL_PROPERTY",
    "Dialect",
    "augment_system_message",
    "embed_metadata",
    "metadata_prefix",
    "model_of",
    "strip_metadata",
    "system_suffix",
    # Notes
    "Note",
    "NoteStore",
    "InMemoryNoteStore",
    "OutlineFileStore",
    # Transcripts
    "Role",
    "Message",
    "build_single_messages",
    "build_thread_messages",
    # Backends
    "CompletionBackend",
    "OpenAICompletionBackend",
    "StreamChunk",
    "create_completion_backend",
    # Reconciler
    "CompletionOutcome",
    "ExchangeState",
    "StreamReconciler",
    "run_completion",
    # Paper links
    "KnownHost",
    "PaperInfo",
    "canonicalize_url",
    "fetch_paper_info",
    "format_citation",
    "parse_paper_info",
    # Config and logging
    "LogentConfig",
    "get_config",
    "load_config",
    "reload_config",
    "save_config",
    "EventLogger",
    "LogLevel",
    "mask_secrets",
    # Commands
    "CommandContext",
    "Notifier",
    "NoticeLevel",
    "annotate_link",
    "annotate_links",
    "ask",
    "chat",
    "inspect",
]
