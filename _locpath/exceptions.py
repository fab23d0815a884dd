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

"""These are the specific locpath exceptions."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """The kinds of defects that are detected when path values are constructed."""

    AXIS_TEST_MISMATCH = "An axis was combined with a node test of the wrong kind."
    EMPTY_RELATIVE_PATH = "A relative location path must contain at least one step."
    FUNCTION_SIGNATURE_MISMATCH = "Function arguments don't match its signature."
    INVALID_AXIS = "Invalid axis specifier."
    SYNTAX = "Invalid expression syntax."
    UNKNOWN_FUNCTION = "Unknown function."
    UNKNOWN_PREFIX = "Unknown namespace prefix."


class LocpathBaseException(Exception):
    pass


class InvalidCodePath(LocpathBaseException, RuntimeError):
    """Raised when a code path that is not expected to be executed is reached."""

    def __init__(self):  # pragma: no cover
        super().__init__(
            "An unintended path was taken through the code. Please report this bug."
        )


class PathConstructionError(LocpathBaseException, ValueError):
    """
    Raised when a location step, a location path or a predicate expression is built
    from parts that contradict each other. The ``kind`` attribute holds an
    :class:`ErrorKind` member, ``construct`` the offending object or name if
    available and ``position`` the character position in an expression text if the
    value was derived from one.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: Optional[str] = None,
        construct: Any = None,
        position: Optional[int] = None,
    ):
        self.kind = kind
        self.message = message or kind.value
        self.construct = construct
        self.position = position
        super().__init__(self.message)

    def __str__(self):
        return self.message


class XPathEvaluationError(LocpathBaseException):
    """
    Raised when a predicate function is applied to an argument of a type it can't
    process. Empty results are never signaled with an exception.
    """

    def __init__(self, message: str):
        super().__init__(message)


class XPathParsingError(PathConstructionError):
    """Raised when an XPath expression can't be parsed."""

    def __init__(
        self,
        expression: Optional[str] = None,
        position: Optional[int] = None,
        message: Optional[str] = None,
        kind: ErrorKind = ErrorKind.SYNTAX,
    ):
        super().__init__(kind=kind, message=message, position=position)
        self.expression = expression

    @classmethod
    def from_construction_error(
        cls, error: PathConstructionError, position: Optional[int]
    ) -> XPathParsingError:
        result = cls(
            position=error.position if error.position is not None else position,
            message=error.message,
            kind=error.kind,
        )
        result.construct = error.construct
        return result

    def __str__(self):
        expression = self.expression
        position = self.position
        if expression is None or position is None:
            return f"XPath parsing error: {self.message}"

        expression_length = len(expression)
        snippet_end = min(position + 16, expression_length)

        if expression_length > snippet_end:
            snippet = f"`{expression[position:snippet_end]}…`"
        else:
            snippet = f"`{expression[position:snippet_end]}`"

        if len(snippet) > 2:
            return (
                f"XPath parsing error at character {position} ({snippet}): "
                f"{self.message}"
            )
        else:
            return f"XPath parsing error at character {position}: {self.message}"


__all__ = (
    ErrorKind.__name__,
    InvalidCodePath.__name__,
    LocpathBaseException.__name__,
    PathConstructionError.__name__,
    XPathEvaluationError.__name__,
    XPathParsingError.__name__,
)
