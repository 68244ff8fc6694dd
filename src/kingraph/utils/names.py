"""Personal-name parsing.

Splits a display name into given names, surname, maiden name and aliases:

- ``Jane Smith (née Doe)`` / ``Mary Carter nee Johnson``: maiden name
- ``Elizabeth "Liz" Carter``: quoted nickname becomes an alias
- ``Giovanni (John) Rossi``: parenthetical alternate becomes an alias
- ``Mary Smith [Johnson]``: bracketed editorial guess, kept verbatim as
  the maiden name so it can be told apart from an explicit marker
- ``John Carter Jr.`` / ``John Carter III``: generational suffix dropped
- ``Carter, John William``: register-style surname-first form
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field

from .normalize import collapse_whitespace

_QUOTED = re.compile(r"[\"“”„]([^\"“”„\n]+)[\"“”„]")
_PARENTHETICAL = re.compile(r"\(([^()]*)\)")
_BRACKETED = re.compile(r"\[([^\[\]]*)\]")
_MAIDEN_MARKER = re.compile(r"^n[ée]e\b\.?\s*", re.IGNORECASE)
_MAIDEN_INLINE = re.compile(
    r"\bn[ée]e\b\.?\s+([^\W\d_][\w'’\-]*(?:\s+[^\W\d_][\w'’\-]*)*)",
    re.IGNORECASE,
)
_SUFFIX = re.compile(r"(?:,\s*|\s+)(?:jr|sr|ii|iii|iv|\d+(?:st|nd|rd|th)?)\.?$", re.IGNORECASE)
_HAS_LETTER = re.compile(r"[^\W\d_]")


class NameParts(BaseModel):
    """Parsed parts of a personal name."""

    given_names: list[str] = Field(default_factory=list)
    surname: str | None = None
    maiden_name: str | None = None
    aliases: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.given_names and not self.surname


def _push_unique(target: list[str], value: str) -> None:
    value = collapse_whitespace(value)
    if value and value not in target:
        target.append(value)


def _tokens(text: str) -> list[str]:
    return [token.strip(",;") for token in text.split() if _HAS_LETTER.search(token)]


def parse_name(text: str | None) -> NameParts:
    """Parse a full-name string.

    Args:
        text: Name as written in the source

    Returns:
        NameParts; ``given_names`` is empty when nothing usable remains.
    """
    if not text or not text.strip():
        return NameParts()

    aliases: list[str] = []
    maiden_name: str | None = None
    working = collapse_whitespace(text)

    def _quoted(match: re.Match[str]) -> str:
        _push_unique(aliases, match.group(1))
        return " "

    working = _QUOTED.sub(_quoted, working)

    def _parenthetical(match: re.Match[str]) -> str:
        nonlocal maiden_name
        content = collapse_whitespace(match.group(1))
        if not content or not _HAS_LETTER.search(content):
            # Empty or lifespan-only parentheses such as "(1901-1975)"
            return " "
        if _MAIDEN_MARKER.match(content):
            extracted = _MAIDEN_MARKER.sub("", content).strip()
            if extracted:
                maiden_name = extracted
        else:
            _push_unique(aliases, content)
        return " "

    working = _PARENTHETICAL.sub(_parenthetical, working)

    def _bracketed(match: re.Match[str]) -> str:
        nonlocal maiden_name
        content = collapse_whitespace(match.group(1))
        if content and _HAS_LETTER.search(content):
            if maiden_name is None:
                maiden_name = f"[{content}]"
            else:
                _push_unique(aliases, content)
        return " "

    working = _BRACKETED.sub(_bracketed, working)

    inline = _MAIDEN_INLINE.search(working)
    if inline:
        maiden_name = collapse_whitespace(inline.group(1))
        working = working[: inline.start()] + " " + working[inline.end() :]

    working = collapse_whitespace(working)
    while _SUFFIX.search(working):
        working = _SUFFIX.sub("", working).strip()

    if working.count(",") == 1:
        surname_part, given_part = (part.strip() for part in working.split(","))
        surname_tokens = _tokens(surname_part)
        given_tokens = _tokens(given_part)
        if len(surname_tokens) == 1 and given_tokens:
            return NameParts(
                given_names=given_tokens,
                surname=surname_tokens[0],
                maiden_name=maiden_name,
                aliases=aliases,
            )

    parts = _tokens(working)
    surname: str | None = None
    given_names: list[str] = []
    if len(parts) > 1:
        surname = parts[-1]
        given_names = parts[:-1]
    elif len(parts) == 1:
        given_names = parts

    return NameParts(
        given_names=given_names,
        surname=surname,
        maiden_name=maiden_name,
        aliases=aliases,
    )
