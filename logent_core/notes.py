"""
Logent Note Store - Access to the host document tree

The note tree belongs to the host editor. Logent only reads notes by id,
rewrites note text and properties, and inserts new notes; it never reshapes
the tree otherwise. NoteStore is that narrow interface.

Two implementations ship with Logent:
    InMemoryNoteStore  - dictionary-backed tree, used by tests and tools
    OutlineFileStore   - the same tree persisted to a JSON outline file

Outline file format:
    {
      "format": "markdown",            # current document format (optional)
      "preferred_format": "markdown",  # user-level fallback
      "current": "<note id>",          # focused note (optional)
      "editing": "<live buffer>",      # unsaved text of the focused note (optional)
      "notes": [
        {"id": "...", "content": "...", "properties": {}, "collapsed": false,
         "children": [ ... ]}
      ]
    }

Author: Logent contributors | 2026-10-16
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Note:
    """A snapshot of one note. children is only filled when asked for."""
    id: str
    content: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)
    parent_id: Optional[str] = None
    children: List["Note"] = field(default_factory=list)


class NoteStore(ABC):
    """Document-store surface consumed by Logent commands."""

    @abstractmethod
    async def get_current_note(self, include_children: bool = False) -> Optional[Note]:
        """Return the focused note."""
        ...

    @abstractmethod
    async def get_editing_content(self) -> str:
        """Return the live (possibly unsaved) text of the focused note."""
        ...

    @abstractmethod
    async def get_note(self, note_id: str, include_children: bool = False) -> Optional[Note]:
        ...

    @abstractmethod
    async def get_next_sibling(self, note_id: str) -> Optional[Note]:
        ...

    @abstractmethod
    async def insert_note(
        self,
        anchor_id: str,
        content: str,
        sibling: bool = False,
        focus: bool = True,
    ) -> Note:
        """
        Insert a note next to anchor_id.

        Args:
            anchor_id: Existing note
            content: Text of the new note
            sibling: Insert right after the anchor instead of as its last child
            focus: Move the focus to the new note

        Returns:
            The created note
        """
        ...

    @abstractmethod
    async def update_note(self, note_id: str, content: str, focus: bool = False) -> None:
        """Overwrite a note's text."""
        ...

    @abstractmethod
    async def get_properties(self, note_id: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def get_property(self, note_id: str, key: str) -> Any:
        ...

    @abstractmethod
    async def upsert_property(self, note_id: str, key: str, value: Any) -> None:
        ...

    @abstractmethod
    async def set_collapsed(self, note_id: str, flag: bool) -> None:
        ...

    @abstractmethod
    async def get_current_format(self) -> Optional[str]:
        """Format of the current document, None when unknown."""
        ...

    @abstractmethod
    async def get_user_format(self) -> str:
        """User's preferred format."""
        ...


@dataclass
class _Record:
    id: str
    content: str
    properties: Dict[str, Any] = field(default_factory=dict)
    parent_id: Optional[str] = None
    children: List[str] = field(default_factory=list)
    collapsed: bool = False


class InMemoryNoteStore(NoteStore):
    """
    Dictionary-backed note tree.

    Example:
        store = InMemoryNoteStore(preferred_format="org")
        root = store.add_note("Topic")
        q = store.add_note("Question?", parent_id=root.id)
        store.focus(q.id, editing="Question, edited?")
    """

    def __init__(
        self,
        current_format: Optional[str] = None,
        preferred_format: str = "markdown",
    ):
        self.current_format = current_format
        self.preferred_format = preferred_format
        self.current_id: Optional[str] = None
        self.editing: Optional[str] = None
        self._records: Dict[str, _Record] = {}
        self._roots: List[str] = []

    # -------------------------------------------------------------------------
    # Tree construction (synchronous, for loaders and tests)
    # -------------------------------------------------------------------------

    def add_note(
        self,
        content: str,
        parent_id: Optional[str] = None,
        note_id: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
        collapsed: bool = False,
    ) -> Note:
        """Append a note as the last child of parent_id (or as a root)."""
        note_id = note_id or str(uuid.uuid4())
        if note_id in self._records:
            raise ValueError(f"Duplicate note id: {note_id}")
        if parent_id is not None and parent_id not in self._records:
            raise KeyError(f"Unknown parent note: {parent_id}")

        record = _Record(
            id=note_id,
            content=content,
            properties=dict(properties or {}),
            parent_id=parent_id,
            collapsed=collapsed,
        )
        self._records[note_id] = record
        self._siblings_of(parent_id).append(note_id)
        return self._snapshot(record, include_children=False)

    def focus(self, note_id: str, editing: Optional[str] = None) -> None:
        """Set the focused note and its live editing buffer."""
        self._require(note_id)
        self.current_id = note_id
        self.editing = editing

    def is_collapsed(self, note_id: str) -> bool:
        return self._require(note_id).collapsed

    def roots(self) -> List[Note]:
        return [self._snapshot(self._records[i], include_children=True) for i in self._roots]

    # -------------------------------------------------------------------------
    # NoteStore interface
    # -------------------------------------------------------------------------

    async def get_current_note(self, include_children: bool = False) -> Optional[Note]:
        if self.current_id is None:
            return None
        return self._snapshot(self._records[self.current_id], include_children)

    async def get_editing_content(self) -> str:
        if self.editing is not None:
            return self.editing
        if self.current_id is None:
            return ""
        return self._records[self.current_id].content

    async def get_note(self, note_id: str, include_children: bool = False) -> Optional[Note]:
        record = self._records.get(note_id)
        if record is None:
            return None
        return self._snapshot(record, include_children)

    async def get_next_sibling(self, note_id: str) -> Optional[Note]:
        record = self._require(note_id)
        siblings = self._siblings_of(record.parent_id)
        index = siblings.index(note_id)
        if index + 1 < len(siblings):
            return self._snapshot(self._records[siblings[index + 1]], include_children=False)
        return None

    async def insert_note(
        self,
        anchor_id: str,
        content: str,
        sibling: bool = False,
        focus: bool = True,
    ) -> Note:
        anchor = self._require(anchor_id)
        note_id = str(uuid.uuid4())

        if sibling:
            record = _Record(id=note_id, content=content, parent_id=anchor.parent_id)
            siblings = self._siblings_of(anchor.parent_id)
            siblings.insert(siblings.index(anchor_id) + 1, note_id)
        else:
            record = _Record(id=note_id, content=content, parent_id=anchor_id)
            anchor.children.append(note_id)

        self._records[note_id] = record
        if focus:
            self.current_id = note_id
            self.editing = None
        self._changed()
        return self._snapshot(record, include_children=False)

    async def update_note(self, note_id: str, content: str, focus: bool = False) -> None:
        self._require(note_id).content = content
        if focus:
            self.current_id = note_id
            self.editing = None
        elif note_id == self.current_id:
            self.editing = None
        self._changed()

    async def get_properties(self, note_id: str) -> Dict[str, Any]:
        return dict(self._require(note_id).properties)

    async def get_property(self, note_id: str, key: str) -> Any:
        return self._require(note_id).properties.get(key)

    async def upsert_property(self, note_id: str, key: str, value: Any) -> None:
        self._require(note_id).properties[key] = value
        self._changed()

    async def set_collapsed(self, note_id: str, flag: bool) -> None:
        self._require(note_id).collapsed = flag
        self._changed()

    async def get_current_format(self) -> Optional[str]:
        return self.current_format

    async def get_user_format(self) -> str:
        return self.preferred_format

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require(self, note_id: str) -> _Record:
        record = self._records.get(note_id)
        if record is None:
            raise KeyError(f"Unknown note: {note_id}")
        return record

    def _siblings_of(self, parent_id: Optional[str]) -> List[str]:
        if parent_id is None:
            return self._roots
        return self._records[parent_id].children

    def _snapshot(self, record: _Record, include_children: bool) -> Note:
        children = []
        if include_children:
            children = [self._snapshot(self._records[c], True) for c in record.children]
        return Note(
            id=record.id,
            content=record.content,
            properties=dict(record.properties),
            parent_id=record.parent_id,
            children=children,
        )

    def _changed(self) -> None:
        """Hook called after every mutation."""
        pass

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _record_to_dict(self, record: _Record) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": record.id, "content": record.content}
        if record.properties:
            data["properties"] = record.properties
        if record.collapsed:
            data["collapsed"] = True
        if record.children:
            data["children"] = [self._record_to_dict(self._records[c]) for c in record.children]
        return data

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the tree to the outline format."""
        data: Dict[str, Any] = {
            "format": self.current_format,
            "preferred_format": self.preferred_format,
            "notes": [self._record_to_dict(self._records[i]) for i in self._roots],
        }
        if self.current_id is not None:
            data["current"] = self.current_id
        if self.editing is not None:
            data["editing"] = self.editing
        return data

    def load_dict(self, data: Dict[str, Any]) -> None:
        """Replace the tree with one read from the outline format."""
        self._records.clear()
        self._roots.clear()
        self.current_format = data.get("format")
        self.preferred_format = data.get("preferred_format", "markdown")

        def _load(items: List[Dict[str, Any]], parent_id: Optional[str]) -> None:
            for item in items:
                note = self.add_note(
                    item.get("content", ""),
                    parent_id=parent_id,
                    note_id=item.get("id"),
                    properties=item.get("properties"),
                    collapsed=item.get("collapsed", False),
                )
                _load(item.get("children", []), note.id)

        _load(data.get("notes", []), None)

        self.current_id = None
        self.editing = None
        if data.get("current"):
            self.focus(data["current"], data.get("editing"))


class OutlineFileStore(InMemoryNoteStore):
    """
    Note tree persisted to a JSON outline file.

    Every mutation rewrites the file, so an interrupted command leaves the
    file as of the last completed write.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self._loading = False
        if self.path.exists():
            self.load()

    def load(self) -> None:
        logger.debug(f"Loading outline from {self.path}")
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        self._loading = True
        try:
            self.load_dict(data)
        finally:
            self._loading = False

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        tmp.replace(self.path)

    def _changed(self) -> None:
        if not self._loading:
            self.save()
