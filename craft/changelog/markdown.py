"""Changelog text transforms.

A changelog is a markdown document whose releases are level-2 sections, in
ATX form (`## 1.2.3`) or setext form (`1.2.3` underlined with dashes). A
section runs from its heading to the next level-2 heading. All transforms
here are pure and only ever touch the section they target; everything else
is copied byte for byte.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = [
    "Changeset",
    "DEFAULT_CHANGESET_BODY",
    "UNRELEASED_TITLE",
    "find_changeset",
    "list_changesets",
    "prepend_changeset",
    "remove_changeset",
]

UNRELEASED_TITLE = "Unreleased"
DEFAULT_CHANGESET_BODY = "- No documented changes."

_HEADER_RE = re.compile(
    r"^(?P<indent>[ ]{0,3})"
    r"(?:"
    r"##[ \t]+(?P<atx>[^\n]*?)[ \t]*(?:\#+[ \t]*)?"
    r"|"
    r"(?P<setext>[^\n]*[^\s#-][^\n]*)\n[ ]{0,3}(?P<underline>-{2,})[ \t]*"
    r")$",
    re.MULTILINE,
)
_TRAILING_PARENS_RE = re.compile(r"\s*\([^()]*\)\s*$")


@dataclass(frozen=True, slots=True)
class Changeset:
    """One changelog section: a version (or Unreleased) and its body."""

    name: str
    body: str

    @property
    def is_unreleased(self) -> bool:
        return _normalize(self.name).lower() == UNRELEASED_TITLE.lower()


@dataclass(frozen=True, slots=True)
class _Header:
    start: int
    end: int  # end of the heading line(s), before the newline
    title: str
    indent: str
    underline: str | None

    @property
    def is_setext(self) -> bool:
        return self.underline is not None


def _headers(text: str) -> list[_Header]:
    out: list[_Header] = []
    for m in _HEADER_RE.finditer(text):
        title = m.group("atx") if m.group("atx") is not None else m.group("setext")
        if not title or not title.strip():
            continue
        out.append(
            _Header(
                start=m.start(),
                end=m.end(),
                title=title.strip(),
                indent=m.group("indent"),
                underline=m.group("underline"),
            )
        )
    return out


def _normalize(name: str) -> str:
    """Comparable form of a section name: "v1.2.3 (2024-01-01)" -> "1.2.3"."""
    s = _TRAILING_PARENS_RE.sub("", name.strip())
    if s[:1] == "v" and s[1:2].isdigit():
        s = s[1:]
    return s


def _names_match(title: str, name: str) -> bool:
    a, b = _normalize(title), _normalize(name)
    if b.lower() == UNRELEASED_TITLE.lower():
        return a.lower() == b.lower()
    return a == b


def _body(text: str, headers: list[_Header], i: int) -> str:
    stop = headers[i + 1].start if i + 1 < len(headers) else len(text)
    return text[headers[i].end : stop].strip("\n").rstrip()


def list_changesets(text: str) -> list[Changeset]:
    """All sections in document order."""
    headers = _headers(text)
    return [Changeset(name=h.title, body=_body(text, headers, i)) for i, h in enumerate(headers)]


def find_changeset(text: str, name: str, fuzzy: bool = False) -> Changeset | None:
    """Locate a section by name.

    With `fuzzy`, a missing section falls back to the Unreleased one.
    """
    headers = _headers(text)
    for i, h in enumerate(headers):
        if _names_match(h.title, name):
            return Changeset(name=h.title, body=_body(text, headers, i))

    if fuzzy:
        for i, h in enumerate(headers):
            if _names_match(h.title, UNRELEASED_TITLE):
                return Changeset(name=h.title, body=_body(text, headers, i))
    return None


def remove_changeset(text: str, name: str) -> str:
    """Cut the named section (heading through the next heading) out of text."""
    headers = _headers(text)
    for i, h in enumerate(headers):
        if _names_match(h.title, name):
            stop = headers[i + 1].start if i + 1 < len(headers) else len(text)
            return text[: h.start] + text[stop:]
    return text


def prepend_changeset(text: str, changeset: Changeset) -> str:
    """Insert a section before the first existing one.

    The new heading copies the style (ATX or setext) and blank-line padding
    of the heading it is inserted above. Without any section, it is
    appended at the end of the document.
    """
    body = changeset.body.strip() or DEFAULT_CHANGESET_BODY
    headers = _headers(text)

    if not headers:
        if not text.strip():
            return f"## {changeset.name}\n\n{body}\n"
        return f"{text.rstrip()}\n\n## {changeset.name}\n\n{body}\n"

    first = headers[0]
    padding = _padding_after(text, first.end)
    if first.is_setext:
        underline = "-" * max(len(first.underline or ""), len(changeset.name))
        heading = f"{first.indent}{changeset.name}\n{first.indent}{underline}"
    else:
        heading = f"{first.indent}## {changeset.name}"

    section = f"{heading}{padding}{body}\n\n"
    return text[: first.start] + section + text[first.start :]


def _padding_after(text: str, pos: int) -> str:
    count = 0
    while pos + count < len(text) and text[pos + count] == "\n":
        count += 1
    return "\n" * max(count, 2)
