"""
Completion Reconciler - Writing a model reply into a note

Drives one exchange with the completion service and keeps the target note in
step with what has been received.

Single-shot exchanges write the note once. Incremental exchanges run a small
state machine:

    RUNNING --chunk, within budget------------> RUNNING
    RUNNING --chunk with finish reason--------> DONE
    RUNNING --stream exhausted----------------> DONE
    RUNNING --chunk arrives, budget exhausted-> TIMED_OUT
    RUNNING --transport error-----------------> FAILED

The budget is checked when a chunk arrives, before it is applied. Each write
overwrites the whole note with the accumulated text and is awaited before
the next chunk is read, so the note always equals the initial body followed
by the fragments applied so far.

Author: Logent contributors | 2026-10-16
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .exceptions import TransportError
from .llm_backends import CompletionBackend, StreamChunk
from .logging_utils import format_prompts
from .notes import NoteStore
from .threads import Message

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class ExchangeState(str, Enum):
    """State of a completion exchange."""
    RUNNING = "running"
    DONE = "done"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass
class StreamAccumulator:
    """Transient state of one incremental exchange."""
    content: str
    started_at: float
    budget_seconds: float
    writes: int = 0
    chunks: int = 0
    skipped_chunks: int = 0

    def elapsed(self, now: float) -> float:
        return now - self.started_at

    def exhausted(self, now: float) -> bool:
        return self.elapsed(now) >= self.budget_seconds


@dataclass
class CompletionOutcome:
    """Terminal result of an exchange."""
    state: ExchangeState
    content: str
    writes: int = 0
    chunks: int = 0
    skipped_chunks: int = 0
    elapsed: float = 0.0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state == ExchangeState.DONE

    @property
    def timed_out(self) -> bool:
        return self.state == ExchangeState.TIMED_OUT


class StreamReconciler:
    """
    Incremental exchange as an explicit polling state machine.

    Example:
        reconciler = StreamReconciler(store, note.id, note.content, budget_seconds=60)
        outcome = await reconciler.run(backend.stream(messages, model))
    """

    def __init__(
        self,
        store: NoteStore,
        target_id: str,
        initial_body: str,
        budget_seconds: float,
        clock: Clock = time.monotonic,
    ):
        self.store = store
        self.target_id = target_id
        self.clock = clock
        self.state = ExchangeState.RUNNING
        self.error: Optional[str] = None
        self.acc = StreamAccumulator(
            content=initial_body,
            started_at=clock(),
            budget_seconds=budget_seconds,
        )

    async def on_chunk(self, chunk: StreamChunk) -> ExchangeState:
        """Apply one received chunk and return the next state."""
        if self.state != ExchangeState.RUNNING:
            raise RuntimeError(f"Exchange already finished ({self.state.value})")

        now = self.clock()
        if self.acc.exhausted(now):
            logger.warning(
                f"Stream budget of {self.acc.budget_seconds}s exhausted after "
                f"{self.acc.chunks} chunks ({self.acc.elapsed(now):.1f}s)"
            )
            self.state = ExchangeState.TIMED_OUT
            return self.state

        self.acc.chunks += 1
        if chunk.malformed:
            self.acc.skipped_chunks += 1
            logger.debug(f"Skipping malformed chunk #{self.acc.chunks}")
        elif chunk.text:
            self.acc.content += chunk.text
            await self.store.update_note(self.target_id, self.acc.content, focus=False)
            self.acc.writes += 1

        if chunk.finish_reason:
            logger.debug(f"Stream finished: {chunk.finish_reason}")
            self.state = ExchangeState.DONE
        return self.state

    def on_error(self, error: Exception) -> ExchangeState:
        self.error = str(error)
        self.state = ExchangeState.FAILED
        return self.state

    def on_exhausted(self) -> ExchangeState:
        """Stream ended without a finish marker."""
        if self.state == ExchangeState.RUNNING:
            self.state = ExchangeState.DONE
        return self.state

    async def run(self, chunks) -> CompletionOutcome:
        """Consume an async iterator of StreamChunk until a terminal state."""
        iterator = chunks.__aiter__()
        try:
            while self.state == ExchangeState.RUNNING:
                try:
                    chunk = await iterator.__anext__()
                except StopAsyncIteration:
                    self.on_exhausted()
                    break
                await self.on_chunk(chunk)
        except TransportError as e:
            logger.error(f"Stream error: {e}")
            self.on_error(e)
        finally:
            await _aclose(iterator)
        return self.outcome()

    def outcome(self) -> CompletionOutcome:
        return CompletionOutcome(
            state=self.state,
            content=self.acc.content,
            writes=self.acc.writes,
            chunks=self.acc.chunks,
            skipped_chunks=self.acc.skipped_chunks,
            elapsed=self.acc.elapsed(self.clock()),
            error=self.error,
        )


async def _aclose(iterator) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except TransportError as e:
        logger.debug(f"Error while closing abandoned stream: {e}")


async def run_single_shot(
    backend: CompletionBackend,
    messages: List[Message],
    model: str,
    store: NoteStore,
    target_id: str,
    initial_body: str,
    clock: Clock = time.monotonic,
) -> CompletionOutcome:
    """One request; the note is written once, and only on success."""
    started_at = clock()
    try:
        reply = await backend.create(messages, model)
    except TransportError as e:
        logger.error(f"Chat completion error: {e}")
        return CompletionOutcome(
            state=ExchangeState.FAILED,
            content=initial_body,
            elapsed=clock() - started_at,
            error=str(e),
        )

    content = initial_body + reply
    await store.update_note(target_id, content, focus=False)
    return CompletionOutcome(
        state=ExchangeState.DONE,
        content=content,
        writes=1,
        elapsed=clock() - started_at,
    )


async def run_completion(
    backend: CompletionBackend,
    messages: List[Message],
    model: str,
    stream: bool,
    store: NoteStore,
    target_id: str,
    initial_body: str,
    budget_seconds: float,
    debug: bool = False,
    clock: Clock = time.monotonic,
) -> CompletionOutcome:
    """
    Send messages and reconcile the reply into the target note.

    Args:
        backend: Completion service
        messages: Transcript to send
        model: Model identifier
        stream: Incremental exchange if True, single-shot otherwise
        store: Note store holding the target note
        target_id: Note receiving the reply
        initial_body: Current text of the target note (usually its
            provenance prefix)
        budget_seconds: Wall-clock budget of an incremental exchange
        debug: Dump the transcript to the log before sending
        clock: Monotonic time source

    Returns:
        CompletionOutcome; transport failures and timeouts are reported
        here rather than raised.
    """
    if debug:
        logger.info("Prompt transcript:\n%s", format_prompts(messages))

    logger.info(
        f"Requesting {'streamed' if stream else 'single-shot'} completion "
        f"from {model} ({len(messages)} messages)"
    )

    if not stream:
        return await run_single_shot(
            backend, messages, model, store, target_id, initial_body, clock=clock
        )

    reconciler = StreamReconciler(store, target_id, initial_body, budget_seconds, clock=clock)
    return await reconciler.run(backend.stream(messages, model))
