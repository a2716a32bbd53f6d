"""
Format Dialects for Logent
==========================

A document is written either in Markdown or in Org mode. The dialect decides
three things:

1. The formatting instructions appended to the system message
2. How the provenance marker (which model wrote a reply) is embedded
3. How that marker is stripped back out when rebuilding a transcript

Any other format string maps to Dialect.UNRECOGNIZED, for which every
transform is a pass-through.

Example:
    body = embed_metadata(Dialect.ORG, "gpt-4", "Hello")
    # ':PROPERTIES:\\n:chatseq-model: gpt-4\\n:END:\\nHello'
    assert strip_metadata(Dialect.ORG, body) == "Hello"

Author: Logent contributors | 2026-10-16
"""

import re
from enum import Enum
from typing import Optional, Union

# Property key recording the model on a reply note
MODEL_PROPERTY = "chatseq-model"

# Hosts may report property keys camelCased
MODEL_PROPERTY_ALIASES = (MODEL_PROPERTY, "chatseqModel")


class Dialect(str, Enum):
    """Markup convention of a document."""
    MARKDOWN = "markdown"
    ORG = "org"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, value: Union["Dialect", str, None]) -> "Dialect":
        """Map a host format string to a Dialect, never failing."""
        if isinstance(value, Dialect):
            return value
        if value == "markdown":
            return cls.MARKDOWN
        if value == "org":
            return cls.ORG
        return cls.UNRECOGNIZED


FORMAT_INSTRUCTION_MARKDOWN = """Please assist by reading and responding in Markdown syntax used by Logseq's blocks, with the following additional notes:
* Use `*` for lists instead of `-`.
* Avoid using headings like `#`, `##`, etc.
* Avoid nesting lists.
* Avoid using sub-items."""

FORMAT_INSTRUCTION_ORG = """Please assist by reading and responding in Org mode syntax used by Logseq's blocks, with the following additional notes:
- Markup examples:
  #+BEGIN_SRC org
  *bold*, =verbatim=, /italic/, +strikethrough+, _underline_, ~code~, [[protocal://some.domain][some label]]
  #+END_SRC
- Note that bold uses single ~*~ to quote, i.e. ~*bold*~ instead of ~**bold**~.
- Avoid using headings.
- Avoid nesting lists.
- Avoid using sub-items.
- Avoid quoting the entire response in a greater block."""

_MARKDOWN_METADATA = re.compile(rf"^{re.escape(MODEL_PROPERTY)}:: [^\n]*\n")
_ORG_METADATA = re.compile(rf"^:PROPERTIES:\n:{re.escape(MODEL_PROPERTY)}: [^\n]*\n:END:\n")


def _unhandled(dialect: Dialect) -> AssertionError:
    return AssertionError(f"Unhandled dialect: {dialect!r}")


def system_suffix(dialect: Union[Dialect, str, None]) -> Optional[str]:
    """Return the formatting instructions for a dialect, or None."""
    dialect = Dialect.parse(dialect)
    if dialect is Dialect.MARKDOWN:
        return FORMAT_INSTRUCTION_MARKDOWN
    if dialect is Dialect.ORG:
        return FORMAT_INSTRUCTION_ORG
    if dialect is Dialect.UNRECOGNIZED:
        return None
    raise _unhandled(dialect)


def augment_system_message(system_message: str, dialect: Union[Dialect, str, None]) -> str:
    """Append the dialect's formatting instructions to a base system message."""
    suffix = system_suffix(dialect)
    return f"{system_message} {suffix}" if suffix else system_message


def metadata_prefix(dialect: Union[Dialect, str, None], model: str) -> str:
    """Return the provenance fragment for a model, including its trailing newline."""
    dialect = Dialect.parse(dialect)
    if dialect is Dialect.MARKDOWN:
        return f"{MODEL_PROPERTY}:: {model}\n"
    if dialect is Dialect.ORG:
        return f":PROPERTIES:\n:{MODEL_PROPERTY}: {model}\n:END:\n"
    if dialect is Dialect.UNRECOGNIZED:
        return ""
    raise _unhandled(dialect)


def embed_metadata(dialect: Union[Dialect, str, None], model: str, body: str) -> str:
    """
    Prefix body with the provenance fragment for model.

    Model names must not contain newlines.
    """
    if "\n" in model:
        raise ValueError(f"Model name must be a single line: {model!r}")
    return metadata_prefix(dialect, model) + body


def metadata_pattern(dialect: Union[Dialect, str, None]) -> Optional["re.Pattern[str]"]:
    """Return the anchored pattern matching any provenance fragment, or None."""
    dialect = Dialect.parse(dialect)
    if dialect is Dialect.MARKDOWN:
        return _MARKDOWN_METADATA
    if dialect is Dialect.ORG:
        return _ORG_METADATA
    if dialect is Dialect.UNRECOGNIZED:
        return None
    raise _unhandled(dialect)


def strip_metadata(dialect: Union[Dialect, str, None], body: str) -> str:
    """Remove a leading provenance fragment; text without one is returned as-is."""
    pattern = metadata_pattern(dialect)
    if pattern is None:
        return body
    return pattern.sub("", body, count=1)


def model_of(properties: Optional[dict]) -> Optional[str]:
    """Return the model recorded in a note's property bag, if any."""
    if not properties:
        return None
    for key in MODEL_PROPERTY_ALIASES:
        value = properties.get(key)
        if value:
            return str(value)
    return None
