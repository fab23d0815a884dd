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

from __future__ import annotations

from collections.abc import Iterator, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING, Optional, Union, cast  # noqa: UNT001

from _locpath.exceptions import (
    ErrorKind,
    PathConstructionError,
    XPathParsingError,
)
from _locpath.names import Namespaces
from _locpath.xpath.ast import (
    ARITHMETIC_OPERATORS,
    BOOLEAN_OPERATORS,
    COMPARISON_OPERATORS,
    AnyAttributeTest,
    AnyElementTest,
    AnyNodeTest,
    AnyValue,
    ArithmeticOperator,
    Axis,
    BooleanOperator,
    CommentTest,
    ComparisonOperator,
    EvaluationNode,
    Function,
    LocationPath,
    LocationStep,
    NamedAttributeTest,
    NamedElementTest,
    Negation,
    NodeTestNode,
    PathValue,
    ProcessingInstructionTest,
    TextTest,
    XPathExpression,
)
from _locpath.xpath.tokenizer import (
    COMPLEMENTING_TOKEN_TYPES,
    Token,
    TokenType,
    tokenize,
)


if TYPE_CHECKING:
    from typing import Final

    from _locpath.typing import NamespaceDeclarations, TypeAlias


TokenPattern: TypeAlias = Sequence[Union[TokenType, None]]  # noqa: SIM907
TokenTree: TypeAlias = Sequence[Union[Token, "TokenTree"]]  # noqa: TC008


NODE_TYPE_TESTS: Final = {
    "comment": CommentTest,
    "node": AnyNodeTest,
    "processing-instruction": ProcessingInstructionTest,
    "text": TextTest,
}
OPERATOR_NAMES: Final = frozenset(("and", "div", "mod", "or"))
# from the lowest to the highest precedence,
# https://www.w3.org/TR/xpath-10/#section-Expressions
PRECEDENCE_LEVELS: Final = (
    ("or",),
    ("and",),
    ("=", "!="),
    ("<", "<=", ">", ">="),
    ("+", "-"),
    ("*", "div", "mod"),
)
OPERAND_TERMINATING_TOKEN_TYPES: Final = frozenset(
    (
        TokenType.ASTERISK,
        TokenType.CLOSE_BRACKET,
        TokenType.CLOSE_PARENS,
        TokenType.DOT,
        TokenType.DOT_DOT,
        TokenType.NAME,
        TokenType.NUMBER,
        TokenType.STRING,
    )
)


# token tree helpers


def all_tokens_match(tokens: TokenTree, pattern: TokenPattern) -> bool:
    if len(tokens) != len(pattern):
        return False
    return compare_tokens_with_pattern(tokens=tokens, pattern=pattern)


def compare_tokens_with_pattern(tokens: TokenTree, pattern: TokenPattern) -> bool:
    # a None value in the `pattern` sequence matches for enclosed expressions

    for token, _type in zip(tokens, pattern):
        if isinstance(token, Token):
            if token.type is not _type:
                return False
        elif _type is not None:
            return False
    return True


def initial_tokens_match(tokens: TokenTree, pattern: TokenPattern) -> bool:
    if len(tokens) < len(pattern):
        return False
    return compare_tokens_with_pattern(tokens, pattern)


def _synthesize(position: int, *tokens: tuple[str, TokenType]) -> tuple[Token, ...]:
    return tuple(Token(position, string, _type) for string, _type in tokens)


def _node_step(position: int, axis: str) -> tuple[Token, ...]:
    return _synthesize(
        position,
        (axis, TokenType.NAME),
        ("::", TokenType.AXIS_SEPARATOR),
        ("node", TokenType.NAME),
        ("(", TokenType.OPEN_PARENS),
        (")", TokenType.CLOSE_PARENS),
    )


def expand_abbreviations(tokens: TokenTree) -> TokenTree:
    """
    Replaces the abbreviated syntax ``//``, ``.``, ``..`` and ``@`` with the explicit
    location steps or axis specifiers they stand for.
    """
    result: list[Token | TokenTree] = []

    for token in tokens:
        if isinstance(token, Token):
            match token.type:
                case TokenType.SLASH_SLASH:
                    result.append(Token(token.position, "/", TokenType.SLASH))
                    result.extend(_node_step(token.position, "descendant-or-self"))
                    result.append(Token(token.position, "/", TokenType.SLASH))
                    continue
                case TokenType.DOT:
                    result.extend(_node_step(token.position, "self"))
                    continue
                case TokenType.DOT_DOT:
                    result.extend(_node_step(token.position, "parent"))
                    continue
                case TokenType.STRUDEL:
                    result.extend(
                        _synthesize(
                            token.position,
                            ("attribute", TokenType.NAME),
                            ("::", TokenType.AXIS_SEPARATOR),
                        )
                    )
                    continue
        result.append(token)

    return result


def group_enclosed_expressions(tokens: Sequence[Token]) -> TokenTree:
    # this function serves two purposes:
    # - validating enclosed expressions
    # - generating a nested sequence of the enclosed tokens to simplify the pattern
    #   matching in ast generation

    result: list[Token | TokenTree] = []
    openers: list[tuple[int, Token]] = []

    for i, token in enumerate(tokens):
        if token.type in COMPLEMENTING_TOKEN_TYPES:
            openers.append((i, token))

        elif token.type in (TokenType.CLOSE_BRACKET, TokenType.CLOSE_PARENS):
            if not openers:
                raise XPathParsingError(
                    position=token.position,
                    message=f"`{token.string}` is never opened.",
                )
            start_pos, start_token = openers.pop()

            if token.type is not COMPLEMENTING_TOKEN_TYPES[start_token.type]:
                raise XPathParsingError(
                    position=token.position,
                    message=f"Closing `{token.string}` doesn't match opening "
                    f"`{start_token.string}` at position {start_token.position}.",
                )

            if not openers:
                contents = group_enclosed_expressions(tokens[start_pos + 1 : i])
                if contents:
                    result.extend((start_token, contents, token))
                else:
                    result.extend((start_token, token))

        elif not openers:
            result.append(token)

    if openers:
        token = openers[-1][1]
        raise XPathParsingError(
            position=token.position, message=f"`{token.string}` is never closed."
        )

    return result


def mark_operators(tokens: TokenTree) -> list[bool]:
    """
    Determines which of the tokens are binary operators. An asterisk, a ``-`` or one
    of the names ``and``, ``div``, ``mod`` and ``or`` is one if it follows a token
    that ends an operand, https://www.w3.org/TR/xpath-10/#exprlex
    """
    result = []
    follows_operand = False

    for token in tokens:
        if not isinstance(token, Token):
            result.append(False)
            follows_operand = False
            continue

        if token.type is TokenType.OTHER_OPS:
            is_operator = token.string != "-" or follows_operand
        elif token.type is TokenType.ASTERISK or (
            token.type is TokenType.NAME and token.string in OPERATOR_NAMES
        ):
            is_operator = follows_operand
        else:
            is_operator = token.type is TokenType.PASEQ

        result.append(is_operator)
        follows_operand = (
            not is_operator and token.type in OPERAND_TERMINATING_TOKEN_TYPES
        )

    return result


def partition_tokens(
    separator: TokenType,
    tokens: TokenTree,
) -> Iterator[TokenTree]:
    # empty partitions are considered as syntax errors
    current_partition: list[Token | TokenTree] = []

    for token in tokens:
        if isinstance(token, Token) and token.type is separator:
            if not current_partition:
                raise XPathParsingError(
                    position=token.position,
                    message=f"Missing expression before `{token.string}`.",
                )
            yield current_partition
            current_partition = []
        else:
            current_partition.append(token)

    if not current_partition:
        last_token = tokens[-1] if tokens else None
        assert last_token is None or isinstance(last_token, Token)
        raise XPathParsingError(
            position=None if last_token is None else last_token.position,
            message="Missing expression"
            + ("." if last_token is None else f" after `{last_token.string}`."),
        )

    yield current_partition


def _first_position(tokens: TokenTree) -> Optional[int]:
    for token in tokens:
        if isinstance(token, Token):
            return token.position
        if (position := _first_position(token)) is not None:
            return position
    return None


# ast generation


class _Parser:
    """
    Translates a token tree into :mod:`_locpath.xpath.ast` objects. Namespace prefixes
    are resolved with the given declarations while doing so.
    """

    __slots__ = ("namespaces",)

    def __init__(self, namespaces: Namespaces):
        self.namespaces: Final = namespaces

    def resolve_prefix(self, prefix: Token) -> str:
        namespace = self.namespaces.get(prefix.string)
        if namespace is None:
            raise XPathParsingError(
                position=prefix.position,
                message=f"Unknown namespace prefix `{prefix.string}`.",
                kind=ErrorKind.UNKNOWN_PREFIX,
            )
        return namespace

    def parse_union(self, tokens: TokenTree) -> XPathExpression:
        return XPathExpression(
            self.parse_location_path(x)
            for x in partition_tokens(TokenType.PASEQ, tokens)
        )

    def parse_location_path(self, tokens: TokenTree) -> LocationPath:
        if not tokens:
            raise XPathParsingError(message="Missing location path.")

        tokens = expand_abbreviations(tokens)
        first_token = tokens[0]
        assert isinstance(first_token, Token)
        absolute = first_token.type is TokenType.SLASH
        if absolute:
            tokens = tokens[1:]

        if tokens:
            location_steps = [
                self.parse_location_step(x)
                for x in partition_tokens(TokenType.SLASH, tokens)
            ]
        else:
            location_steps = []

        return LocationPath(location_steps, absolute=absolute)

    def parse_location_step(self, tokens: TokenTree) -> LocationStep:  # noqa: C901
        node_test: NodeTestNode
        all_tokens = tuple(tokens)
        step_position = _first_position(tokens)

        # axis

        if initial_tokens_match(tokens, (TokenType.NAME, TokenType.AXIS_SEPARATOR)):
            axis_token = tokens[0]
            assert isinstance(axis_token, Token)
            try:
                axis = Axis(axis_token.string)
            except PathConstructionError as e:
                raise XPathParsingError.from_construction_error(
                    e, axis_token.position
                ) from e
            tokens = tokens[2:]
        else:
            axis = Axis("child")

        if not tokens:
            last_token = all_tokens[-1]
            assert isinstance(last_token, Token)
            raise XPathParsingError(
                message="Missing node test.",
                position=last_token.position + len(last_token.string),
            )

        # node test

        test_for_attributes = axis.is_attribute_axis
        first_token = tokens[0]
        assert isinstance(first_token, Token)

        if all_tokens_match(
            tokens[:4],
            (TokenType.NAME, TokenType.OPEN_PARENS, None, TokenType.CLOSE_PARENS),
        ):
            argument = tokens[2]
            if first_token.string != "processing-instruction" or not all_tokens_match(
                argument, (TokenType.STRING,)
            ):
                raise XPathParsingError(
                    message="Unrecognized node test.", position=first_token.position
                )
            target = argument[0]
            assert isinstance(target, Token)
            node_test = ProcessingInstructionTest(target.string[1:-1])
            tokens = tokens[4:]

        elif initial_tokens_match(
            tokens, (TokenType.NAME, TokenType.OPEN_PARENS, TokenType.CLOSE_PARENS)
        ):
            node_test_type = NODE_TYPE_TESTS.get(first_token.string)
            if node_test_type is None:
                raise XPathParsingError(
                    message="Unrecognized node test.", position=first_token.position
                )
            node_test = node_test_type()
            tokens = tokens[3:]

        elif initial_tokens_match(
            tokens, (TokenType.NAME, TokenType.COLON, TokenType.ASTERISK)
        ):
            namespace = self.resolve_prefix(first_token)
            node_test = (
                AnyAttributeTest(namespace)
                if test_for_attributes
                else AnyElementTest(namespace)
            )
            tokens = tokens[3:]

        elif initial_tokens_match(
            tokens, (TokenType.NAME, TokenType.COLON, TokenType.NAME)
        ):
            namespace = self.resolve_prefix(first_token)
            local_name = tokens[2]
            assert isinstance(local_name, Token)
            node_test = (
                NamedAttributeTest(namespace, local_name.string)
                if test_for_attributes
                else NamedElementTest(namespace, local_name.string)
            )
            tokens = tokens[3:]

        elif first_token.type is TokenType.ASTERISK:
            node_test = AnyAttributeTest() if test_for_attributes else AnyElementTest()
            tokens = tokens[1:]

        elif first_token.type is TokenType.NAME:
            if test_for_attributes:
                node_test = NamedAttributeTest("", first_token.string)
            else:
                node_test = NamedElementTest(
                    self.namespaces.default_namespace or "", first_token.string
                )
            tokens = tokens[1:]

        else:
            raise XPathParsingError(
                message="Unrecognized node test.", position=first_token.position
            )

        # predicates

        predicates = []
        while tokens:
            if initial_tokens_match(
                tokens, (TokenType.OPEN_BRACKET, None, TokenType.CLOSE_BRACKET)
            ):
                predicates.append(
                    self.parse_expression(cast("TokenTree", tokens[1]))
                )
                tokens = tokens[3:]
            else:
                token = tokens[0]
                assert isinstance(token, Token)
                if token.type is TokenType.OPEN_BRACKET:
                    message = "Empty predicate."
                else:
                    message = "Unrecognized expression."
                raise XPathParsingError(position=token.position, message=message)

        try:
            return LocationStep(axis=axis, node_test=node_test, predicates=predicates)
        except PathConstructionError as e:
            raise XPathParsingError.from_construction_error(e, step_position) from e

    def parse_expression(self, tokens: TokenTree) -> EvaluationNode:
        operators = mark_operators(tokens)

        for level in PRECEDENCE_LEVELS:
            # the rightmost operator of the lowest precedence is the root of the
            # expression's tree, so operators of equal precedence are left-associative
            for i in range(len(tokens) - 1, 0, -1):
                token = tokens[i]
                if not (
                    operators[i] and isinstance(token, Token) and token.string in level
                ):
                    continue
                if i == len(tokens) - 1:
                    raise XPathParsingError(
                        position=token.position,
                        message=f"Missing operand after `{token.string}`.",
                    )
                return self.parse_binary_operation(
                    token, self.parse_expression(tokens[:i]), tokens[i + 1 :]
                )

        return self.parse_unary_expression(tokens)

    def parse_binary_operation(
        self, token: Token, left: EvaluationNode, right_tokens: TokenTree
    ) -> EvaluationNode:
        right = self.parse_expression(right_tokens)
        symbol = token.string

        if symbol in BOOLEAN_OPERATORS:
            return BooleanOperator(BOOLEAN_OPERATORS[symbol], left, right)
        if symbol in COMPARISON_OPERATORS:
            return ComparisonOperator(COMPARISON_OPERATORS[symbol], left, right)
        return ArithmeticOperator(ARITHMETIC_OPERATORS[symbol], left, right)

    def parse_unary_expression(self, tokens: TokenTree) -> EvaluationNode:
        first_token = tokens[0]
        if (
            isinstance(first_token, Token)
            and first_token.type is TokenType.OTHER_OPS
            and first_token.string == "-"
        ):
            if len(tokens) == 1:
                raise XPathParsingError(
                    position=first_token.position, message="Missing operand after `-`."
                )
            return Negation(self.parse_expression(tokens[1:]))

        if any(
            isinstance(x, Token) and x.type is TokenType.PASEQ for x in tokens
        ):
            return PathValue(
                self.parse_location_path(x)
                for x in partition_tokens(TokenType.PASEQ, tokens)
            )

        return self.parse_primary_expression(tokens)

    def parse_primary_expression(self, tokens: TokenTree) -> EvaluationNode:
        if all_tokens_match(tokens, (TokenType.NUMBER,)):
            assert isinstance(tokens[0], Token)
            number = tokens[0].string
            return AnyValue(float(number) if "." in number else int(number))

        if all_tokens_match(tokens, (TokenType.STRING,)):
            assert isinstance(tokens[0], Token)
            return AnyValue(tokens[0].string[1:-1])

        if (
            initial_tokens_match(tokens, (TokenType.NAME, TokenType.OPEN_PARENS))
            and isinstance(tokens[0], Token)
            and tokens[0].string not in NODE_TYPE_TESTS
        ):
            if all_tokens_match(
                tokens, (TokenType.NAME, TokenType.OPEN_PARENS, TokenType.CLOSE_PARENS)
            ):
                return self.parse_function_call(tokens[0], ())
            if all_tokens_match(
                tokens,
                (TokenType.NAME, TokenType.OPEN_PARENS, None, TokenType.CLOSE_PARENS),
            ):
                return self.parse_function_call(
                    tokens[0], cast("TokenTree", tokens[2])
                )

        if all_tokens_match(
            tokens, (TokenType.OPEN_PARENS, None, TokenType.CLOSE_PARENS)
        ):
            return self.parse_expression(cast("TokenTree", tokens[1]))

        if isinstance(tokens[0], Token) and tokens[0].type in (
            TokenType.NUMBER,
            TokenType.STRING,
            TokenType.OPEN_PARENS,
        ):
            raise XPathParsingError(
                position=tokens[0].position,
                message="Unrecognized predicate expression.",
            )

        return PathValue((self.parse_location_path(tokens),))

    def parse_function_call(self, name: Token, tokens: TokenTree) -> Function:
        arguments = (
            [
                self.parse_expression(x)
                for x in partition_tokens(TokenType.COMMA, tokens)
            ]
            if tokens
            else []
        )
        try:
            return Function(name.string, arguments)
        except PathConstructionError as e:
            raise XPathParsingError.from_construction_error(e, name.position) from e


# interface


@lru_cache(64)
def _parse(expression: str, namespaces: Namespaces) -> XPathExpression:
    try:
        return _Parser(namespaces).parse_union(
            group_enclosed_expressions(tokenize(expression))
        )
    except XPathParsingError as e:
        e.expression = expression
        if e.position is None:
            e.position = 0
        raise e


def parse(
    expression: str, namespaces: Optional[NamespaceDeclarations] = None
) -> XPathExpression:
    """
    Parses an XPath 1.0 expression that consists of one or more location paths.

    :param expression: The expression's text, possibly using the abbreviated syntax.
    :param namespaces: A mapping of prefixes to namespaces that are used in the
                       expression. A default namespace is declared with the key
                       ``""`` or :obj:`None`, it then applies to unprefixed element
                       names.
    :return: The parsed expression, to be evaluated with
             :func:`_locpath.xpath.evaluate`.
    """
    return _parse(expression, Namespaces(namespaces or {}))


__all__ = (parse.__name__,)
