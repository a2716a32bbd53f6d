"""
Logent Threads - Turning a note neighborhood into a chat transcript

A conversation lives in the note tree: a parent note opens the thread and its
children are the turns. Children carrying a model property are earlier
replies (assistant turns); everything else is the user speaking.

Every transcript starts with exactly one system message.

Author: Logent contributors | 2026-10-16
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Union

from .dialect import Dialect, augment_system_message, model_of, strip_metadata
from .notes import Note

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Speaker of a message."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A single message in a transcript."""
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


def messages_to_dicts(messages: Iterable[Message]) -> List[Dict[str, str]]:
    """Get messages in the wire format expected by chat completion APIs."""
    return [m.to_dict() for m in messages]


def system_message_for(system_message: str, dialect: Union[Dialect, str, None]) -> Message:
    return Message(Role.SYSTEM, augment_system_message(system_message, dialect))


def child_to_message(
    child: Note,
    dialect: Union[Dialect, str, None],
    focal_id: str,
    focal_live_body: str,
) -> Message:
    """
    Classify one child note.

    The focused note is read from the live editing buffer rather than the
    store, whose copy may lag behind unsaved edits.
    """
    if model_of(child.properties):
        return Message(Role.ASSISTANT, strip_metadata(dialect, child.content))
    if child.id == focal_id:
        return Message(Role.USER, focal_live_body)
    return Message(Role.USER, child.content)


def build_thread_messages(
    system_message: str,
    dialect: Union[Dialect, str, None],
    parent_body: str,
    children: List[Note],
    focal_id: str,
    focal_live_body: str,
) -> List[Message]:
    """
    Build the transcript of a threaded conversation.

    Args:
        system_message: Base system message from settings
        dialect: Document dialect
        parent_body: Text of the note opening the thread
        children: Children of that note, in document order
        focal_id: Id of the note the user is editing
        focal_live_body: Live text of that note

    Returns:
        2 + len(children) messages: system, parent as user, one per child
    """
    messages = [
        system_message_for(system_message, dialect),
        Message(Role.USER, parent_body),
    ]
    messages.extend(
        child_to_message(child, dialect, focal_id, focal_live_body)
        for child in children
    )
    logger.debug(f"Built thread transcript with {len(messages)} messages")
    return messages


def build_single_messages(
    system_message: str,
    dialect: Union[Dialect, str, None],
    live_body: str,
) -> List[Message]:
    """Build the transcript of a one-off question."""
    return [
        system_message_for(system_message, dialect),
        Message(Role.USER, live_body),
    ]
