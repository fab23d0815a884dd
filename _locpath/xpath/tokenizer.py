# Copyright (C) 2018-'25  Frank Sachsenheim
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Lexical analysis of XPath 1.0 expressions, https://www.w3.org/TR/xpath-10/#exprlex

Names are XML names without colons, qualified names and axis specifiers are
composed from several tokens by the parser. Whether an asterisk or one of the names
``and``, ``div``, ``mod`` and ``or`` is an operator depends on the preceding token
and is therefore also decided by the parser.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, NamedTuple

from _locpath.exceptions import XPathParsingError


if TYPE_CHECKING:
    from typing import Final


# https://www.w3.org/TR/REC-xml/#NT-NameStartChar, without the colon
name_start_characters: Final = (
    r"A-Z_a-z\u00c0-\u00d6\u00d8-\u00f6\u00f8-\u02ff\u0370-\u037d\u037f-\u1fff"
    r"\u200c-\u200d\u2070-\u218f\u2c00-\u2fef\u3001-\ud7ff\uf900-\ufdcf"
    r"\ufdf0-\ufffd\U00010000-\U000effff"
)
# https://www.w3.org/TR/REC-xml/#NT-NameChar
name_characters: Final = (
    rf"{name_start_characters}\-\.0-9\u00b7\u0300-\u036f\u203f-\u2040"
)
name_pattern: Final = f"[{name_start_characters}][{name_characters}]*"


# earlier lexemes take precedence over later ones that match at the same position
LEXEMES: Final = (
    # string literals can't contain their delimiter, there are no escape sequences
    ("STRING", "\"[^\"]*\"|'[^']*'"),
    ("NUMBER", r"\d+(?:\.\d*)?|\.\d+"),
    ("NAME", name_pattern),
    ("SLASH_SLASH", "//"),
    ("SLASH", "/"),
    ("ASTERISK", r"\*"),
    ("AXIS_SEPARATOR", "::"),
    ("COLON", ":"),
    ("DOT_DOT", r"\.\."),
    ("DOT", r"\."),
    ("OPEN_BRACKET", r"\["),
    ("CLOSE_BRACKET", r"\]"),
    ("STRUDEL", "@"),
    ("OPEN_PARENS", r"\("),
    ("CLOSE_PARENS", r"\)"),
    ("COMMA", ","),
    ("PASEQ", r"\|"),
    ("OTHER_OPS", r"!=|<=|>=|[-+<>=]"),
)

TokenType: Final = Enum("TokenType", [name for name, _ in LEXEMES])

COMPLEMENTING_TOKEN_TYPES: Final = {
    TokenType.OPEN_BRACKET: TokenType.CLOSE_BRACKET,
    TokenType.OPEN_PARENS: TokenType.CLOSE_PARENS,
}


class Token(NamedTuple):
    position: int
    string: str
    type: TokenType


_scanner: Final = re.compile(
    "|".join(
        f"(?P<{name}>{pattern})"
        for name, pattern in (
            *LEXEMES,
            # https://www.w3.org/TR/REC-xml/#NT-S
            ("WHITESPACE", "[ \n\r\t]+"),
            ("ERROR", "."),
        )
    ),
    re.DOTALL,
)


def _scan(expression: str) -> Iterator[Token]:
    for match in _scanner.finditer(expression):
        lexeme = match.lastgroup
        if lexeme == "WHITESPACE":
            continue
        if lexeme == "ERROR":
            raise XPathParsingError(
                position=match.start(), message="Unrecognized token."
            )
        assert lexeme is not None
        yield Token(match.start(), match.group(), TokenType[lexeme])


@lru_cache(64)
def tokenize(expression: str) -> tuple[Token, ...]:
    """
    Splits an expression into tokens, whitespace between them is dropped.

    :raises XPathParsingError: At the position of the first character that doesn't
                               start a token.
    """
    return tuple(_scan(expression))


__all__ = (tokenize.__name__,)  # type: ignore
