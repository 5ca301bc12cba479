"""Helpers that turn question markup into text a speech engine reads well.

Architecture note:
    Questions may be authored with light markdown (emphasis, inline code,
    lists). Speech clients should never hear the markup characters, so the
    text is run through a commonmark parser and only the literal text
    content of the token stream is kept. The remaining rewrites expand
    abbreviations and symbols that screen readers tend to mispronounce.
"""

from __future__ import annotations

import re

from markdown_it import MarkdownIt
from markdown_it.token import Token

_markdown = MarkdownIt("commonmark", {"html": False}).enable("table").enable("strikethrough")

_ABBREVIATIONS = (
    ("e.g.", "for example"),
    ("i.e.", "that is"),
    ("etc.", "etcetera"),
    ("vs.", "versus"),
    ("fig.", "figure"),
    ("eq.", "equation"),
)
_SYMBOLS = (
    (">=", " greater than or equal to "),
    ("<=", " less than or equal to "),
    ("+", " plus "),
    ("*", " times "),
    ("/", " divided by "),
    ("=", " equals "),
    (">", " greater than "),
    ("<", " less than "),
    ("{", " open curly brace "),
    ("}", " close curly brace "),
    ("[", " open bracket "),
    ("]", " close bracket "),
    ("(", " open parenthesis "),
    (")", " close parenthesis "),
    (";", " semicolon "),
)
_PHONE_NUMBER = re.compile(r"(\d{3})[- ]?(\d{3})[- ]?(\d{4})")
_DECIMAL = re.compile(r"(\d+)\.(\d+)")
_MINUS = re.compile(r"(?<=[\d\s])-(?=[\s\d])")
_MISSING_SPACE = re.compile(r"\.([A-Z])")
_WHITESPACE = re.compile(r"\s+")


def markdown_to_plain_text(markdown_text: str) -> str:
    """Drop markdown markup and keep only the readable text."""
    parts: list[str] = []
    for token in _markdown.parse(markdown_text):
        if token.type == "inline":
            parts.append(_inline_text(token.children or []))
        elif token.type in ("code_block", "fence"):
            parts.append(token.content.strip())
    return _WHITESPACE.sub(" ", " ".join(part for part in parts if part)).strip()


def _inline_text(children: list[Token]) -> str:
    pieces: list[str] = []
    for child in children:
        if child.type in ("text", "code_inline", "image"):
            pieces.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            pieces.append(" ")
    return "".join(pieces)


def format_numbers_for_speech(text: str) -> str:
    result = _PHONE_NUMBER.sub(r"\1, \2, \3", text)
    return _DECIMAL.sub(r"\1 point \2", result)


def prepare_for_speech(text: str) -> str:
    """Full pipeline applied to every announcement when speech preparation is on."""
    processed = format_numbers_for_speech(markdown_to_plain_text(text))
    for abbreviation, expansion in _ABBREVIATIONS:
        processed = processed.replace(abbreviation, expansion)
    processed = _MISSING_SPACE.sub(r". \1", processed)
    processed = _MINUS.sub(" minus ", processed)
    for symbol, spoken in _SYMBOLS:
        processed = processed.replace(symbol, spoken)
    return _WHITESPACE.sub(" ", processed).strip()
