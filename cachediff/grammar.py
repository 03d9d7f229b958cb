"""
Attribute grammar and lexer for cachediff annotation blocks.

A block is a flat, comma separated list of entries:

    block := [entry ("," entry)* [","]]
    entry := NAME ["=" value]
    value := STRING | NAME ("." NAME)*

Strings are single or double quoted Python string literals. Names joined by
dots are function references; they are recorded, never evaluated.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .models import (
    Annotation,
    AttributeKey,
    FunctionRef,
    Location,
    Scope,
    SCOPE_KEYS,
)
from .exceptions import AttributeSyntaxError, UnknownAttributeKey


NAME = "NAME"
STRING = "STRING"
EQUALS = "EQUALS"
COMMA = "COMMA"
DOT = "DOT"

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<SPACE>\s+)
    | (?P<STRING>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
    | (?P<NAME>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<EQUALS>=)
    | (?P<COMMA>,)
    | (?P<DOT>\.)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    column: int


def tokenize(block: str, owner: str, block_index: int = 0) -> list[Token]:
    """
    Split an annotation block into tokens.

    Args:
        block: Raw annotation text, e.g. 'rename = "Ruby version", ignore'
        owner: Type or field the block is attached to (for locations)
        block_index: Position of the block among the owner's blocks

    Returns:
        List of tokens, whitespace removed
    """
    tokens = []
    pos = 0
    while pos < len(block):
        match = _TOKEN_PATTERN.match(block, pos)
        if not match:
            location = Location(owner, block_index, pos)
            if block[pos] in "\"'":
                raise AttributeSyntaxError("unterminated string literal", location)
            raise AttributeSyntaxError(f"unexpected character '{block[pos]}'", location)

        kind = match.lastgroup
        if kind != "SPACE":
            tokens.append(Token(kind, match.group(), pos))
        pos = match.end()

    return tokens


class AttributeParser:
    """Parses annotation blocks for one scope into typed annotations."""

    def __init__(self, scope: Scope, owner: str, namespace: str = "cache_diff"):
        self.scope = scope
        self.owner = owner
        self.namespace = namespace
        self._tokens: list[Token] = []
        self._pos = 0
        self._block_index = 0
        self._block_length = 0

    def parse(self, block: str, block_index: int = 0) -> list[Annotation]:
        """
        Parse a single block.

        Raises:
            UnknownAttributeKey: a key is not valid in this scope
            AttributeSyntaxError: the block does not follow the grammar
        """
        self._tokens = tokenize(block, self.owner, block_index)
        self._pos = 0
        self._block_index = block_index
        self._block_length = len(block)

        annotations = []
        while not self._at_end():
            annotations.append(self._parse_entry())
            if self._at_end():
                break
            token = self._next()
            if token.kind != COMMA:
                raise AttributeSyntaxError(
                    f"expected ',' between attributes, found '{token.text}'",
                    self._location(token)
                )

        return annotations

    def parse_all(self, blocks: Iterable[str]) -> list[Annotation]:
        """Parse every block in order, concatenating their annotations."""
        annotations = []
        for index, block in enumerate(blocks):
            annotations.extend(self.parse(block, index))
        return annotations

    def _parse_entry(self) -> Annotation:
        token = self._next()
        if token.kind != NAME:
            raise AttributeSyntaxError(
                f"expected attribute name, found '{token.text}'",
                self._location(token)
            )

        key = self._known_key(token)
        location = self._location(token)

        if key == AttributeKey.RENAME:
            self._expect_equals(key, token)
            return Annotation(key, self._parse_string(key), location)

        if key in (AttributeKey.DISPLAY, AttributeKey.CUSTOM):
            self._expect_equals(key, token)
            return Annotation(key, self._parse_reference(key), location)

        # ignore, optionally with a reason
        if self._peek_kind() == EQUALS:
            self._next()
            return Annotation(key, self._parse_string(key), location)
        return Annotation(key, None, location)

    def _known_key(self, token: Token) -> AttributeKey:
        valid = SCOPE_KEYS[self.scope]
        for key in valid:
            if key.value == token.text:
                return key

        hint = None
        if self.scope == Scope.FIELD and token.text in _type_only_keys():
            hint = (
                f"The {self.namespace} attribute '{token.text}' is available on the "
                "class, not the field"
            )
        raise UnknownAttributeKey(
            self.namespace,
            token.text,
            [k.value for k in valid],
            self._location(token),
            hint
        )

    def _expect_equals(self, key: AttributeKey, after: Token):
        if self._peek_kind() != EQUALS:
            raise AttributeSyntaxError(
                f"expected '=' after '{key.value}'",
                self._location(self._peek() or after)
            )
        self._next()

    def _parse_string(self, key: AttributeKey) -> str:
        token = self._peek()
        if token is None or token.kind != STRING:
            raise AttributeSyntaxError(
                f"expected string literal for '{key.value}'",
                self._location(token)
            )
        self._next()
        try:
            return ast.literal_eval(token.text)
        except (SyntaxError, ValueError):
            # Bad escapes such as "\x" or "\N{bogus}" pass the lexer
            raise AttributeSyntaxError(
                f"invalid string literal for '{key.value}'",
                self._location(token)
            ) from None

    def _parse_reference(self, key: AttributeKey) -> FunctionRef:
        token = self._peek()
        if token is None or token.kind != NAME:
            raise AttributeSyntaxError(
                f"expected function reference for '{key.value}'",
                self._location(token)
            )
        self._next()
        location = self._location(token)
        parts = [token.text]
        while self._peek_kind() == DOT:
            dot = self._next()
            name = self._peek()
            if name is None or name.kind != NAME:
                raise AttributeSyntaxError(
                    f"expected name after '.' in reference for '{key.value}'",
                    self._location(name or dot)
                )
            self._next()
            parts.append(name.text)
        return FunctionRef(".".join(parts), location)

    def _location(self, token: Optional[Token]) -> Location:
        column = token.column if token is not None else self._block_length
        return Location(self.owner, self._block_index, column)

    def _at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def _peek(self) -> Optional[Token]:
        if self._at_end():
            return None
        return self._tokens[self._pos]

    def _peek_kind(self) -> Optional[str]:
        token = self._peek()
        return token.kind if token else None

    def _next(self) -> Token:
        token = self._tokens[self._pos]
        self._pos += 1
        return token


def _type_only_keys() -> set[str]:
    field_keys = {k.value for k in SCOPE_KEYS[Scope.FIELD]}
    return {k.value for k in SCOPE_KEYS[Scope.TYPE]} - field_keys


def parse_block(
    block: str,
    scope: Scope,
    owner: str,
    namespace: str = "cache_diff",
    block_index: int = 0
) -> list[Annotation]:
    """Convenience function to parse one annotation block."""
    return AttributeParser(scope, owner, namespace).parse(block, block_index)
