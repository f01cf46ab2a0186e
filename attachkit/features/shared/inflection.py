from __future__ import annotations

import re

_CAMEL_BOUNDARY_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_LOWER_UPPER_RE = re.compile(r"([a-z\d])([A-Z])")
_SIBILANT_SUFFIXES = ("s", "x", "z", "ch", "sh")
_VOWELS = set("aeiou")


def underscore(value: str) -> str:
    """Convert ``BlogPost`` / ``HTTPRequest`` style names to snake case."""
    word = value.replace("::", "/").replace("-", "_")
    word = _CAMEL_BOUNDARY_RE.sub(r"\1_\2", word)
    word = _LOWER_UPPER_RE.sub(r"\1_\2", word)
    return word.lower()


def pluralize(word: str) -> str:
    if not word:
        return word
    lowered = word.lower()
    if lowered.endswith(_SIBILANT_SUFFIXES):
        return f"{word}es"
    if lowered.endswith("y") and len(word) > 1 and lowered[-2] not in _VOWELS:
        return f"{word[:-1]}ies"
    return f"{word}s"


__all__ = ["pluralize", "underscore"]
