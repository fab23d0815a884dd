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

import inspect
import operator
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Sequence
from decimal import Decimal
from functools import cache
from itertools import chain
from math import copysign, fmod, inf, isinf, isnan, nan
from textwrap import indent
from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from _locpath.exceptions import ErrorKind, InvalidCodePath, PathConstructionError
from _locpath.plugins import plugin_manager as _plugin_manager
from _locpath.typing import NodeKind
from _locpath.utils import (
    _deduplicated,
    _is_child_node,
    _iterate_descendants,
    _iterate_following_siblings,
    _iterate_preceding_siblings,
    _iterate_reversed_descendants,
    _sort_nodes_in_document_order,
)


if TYPE_CHECKING:
    from typing import Final

    from _locpath.typing import NodeSet, NodeView, PredicateValue


xpath_functions: Final = _plugin_manager.xpath_functions

AXIS_NAMES: Final = (
    "ancestor",
    "ancestor-or-self",
    "attribute",
    "child",
    "descendant",
    "descendant-or-self",
    "following",
    "following-sibling",
    "namespace",
    "parent",
    "preceding",
    "preceding-sibling",
    "self",
)
ATTRIBUTE_AXES: Final = frozenset(("attribute", "namespace"))
REVERSE_AXES: Final = frozenset(
    ("ancestor", "ancestor-or-self", "preceding", "preceding-sibling")
)

_is_number_literal: Final = re.compile(r"\s*-?(\d+(\.\d*)?|\.\d+)\s*").fullmatch


# helper


def nested_repr(obj: Any) -> str:  # pragma: no cover
    result = f"{obj.__class__.__name__}(\n"
    for name, value in ((x, getattr(obj, x)) for x in obj.__slots__):
        result += f"  {name}="
        if isinstance(value, (list, tuple)):
            result += (
                "[\n" + "\n".join(indent(repr(x), "    ") for x in value) + "\n]\n"
            )
        else:
            result += f"{value!r}\n"
    result += ")"
    return result


# value conversions as defined in the sections 3.4 and 4 of the XPath 1.0 specs


def to_boolean(value: PredicateValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (float, int)):
        return not (value == 0 or isnan(value))
    return len(value) > 0


def to_number(value: PredicateValue) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (float, int)):
        return float(value)
    if isinstance(value, tuple):
        value = to_string(value)
    if _is_number_literal(value):
        return float(value)
    return nan


def to_string(value: PredicateValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (float, int)):
        return _number_to_string(value)
    if isinstance(value, tuple):
        return value[0].string_value if value else ""
    return value


def _number_to_string(value: float | int) -> str:
    if isnan(value):
        return "NaN"
    if isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == int(value):
        # this also turns a negative zero into "0"
        return str(int(value))
    return format(Decimal(repr(float(value))), "f")


def _divide(dividend: float, divisor: float) -> float:
    if divisor == 0:
        if dividend == 0 or isnan(dividend):
            return nan
        return copysign(inf, dividend) * copysign(1.0, divisor)
    return dividend / divisor


def _modulo(dividend: float, divisor: float) -> float:
    if divisor == 0:
        return nan
    return fmod(dividend, divisor)


ARITHMETIC_OPERATORS: Final = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "div": _divide,
    "mod": _modulo,
}
BOOLEAN_OPERATORS: Final = {"and": operator.and_, "or": operator.or_}
COMPARISON_OPERATORS: Final = {
    "<=": operator.le,
    "<": operator.lt,
    ">=": operator.ge,
    ">": operator.gt,
    "=": operator.eq,
    "!=": operator.ne,
}


def compare(
    _operator: Callable[[Any, Any], bool], left: PredicateValue, right: PredicateValue
) -> bool:
    """
    Compares two values with the semantics of XPath 1.0's equality and relational
    expressions. Node-sets are compared existentially.
    """
    equality = _operator is operator.eq or _operator is operator.ne
    left_is_node_set = isinstance(left, tuple)
    right_is_node_set = isinstance(right, tuple)

    if left_is_node_set and right_is_node_set:
        assert isinstance(left, tuple) and isinstance(right, tuple)
        if _operator is operator.eq:
            right_strings = {n.string_value for n in right}
            return any(n.string_value in right_strings for n in left)
        if equality:
            right_strings_ = [n.string_value for n in right]
            return any(
                _operator(n.string_value, s) for n in left for s in right_strings_
            )
        right_numbers = [to_number(n.string_value) for n in right]
        return any(
            _operator(to_number(n.string_value), x)
            for n in left
            for x in right_numbers
        )

    if left_is_node_set or right_is_node_set:
        if left_is_node_set:
            nodes, other = left, right

            def apply(a, b):
                return _operator(a, b)

        else:
            nodes, other = right, left

            def apply(a, b):
                return _operator(b, a)

        assert isinstance(nodes, tuple)
        if isinstance(other, bool):
            return apply(to_boolean(nodes), other)
        if isinstance(other, (float, int)):
            return any(apply(to_number(n.string_value), other) for n in nodes)
        assert isinstance(other, str)
        if equality:
            return any(apply(n.string_value, other) for n in nodes)
        number = to_number(other)
        return any(apply(to_number(n.string_value), number) for n in nodes)

    if equality:
        if isinstance(left, bool) or isinstance(right, bool):
            return _operator(to_boolean(left), to_boolean(right))
        if isinstance(left, (float, int)) or isinstance(right, (float, int)):
            return _operator(to_number(left), to_number(right))
        return _operator(to_string(left), to_string(right))

    return _operator(to_number(left), to_number(right))


def predicate_matches(value: PredicateValue, position: int) -> bool:
    """
    Applies a predicate's result to a node at a proximity position. A number is
    interpreted as a position that the node must be at, all other types are coerced
    to a boolean.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (float, int)):
        return value == position
    return to_boolean(value)


# structs


class EvaluationContext(NamedTuple):
    """
    Instances of this class are passed to XPath functions in order to pass contextual
    information.
    """

    node: NodeView
    """ The node that is evaluated. """
    position: int
    """
    The node's position within all nodes that matched a location step's node test and
    previous predicates in order of the step's axis' direction. The first position is
    1.
    """
    size: int
    """ The number of nodes that the position refers to. """


# base classes for nodes


@cache
def _slot_names(cls: type) -> tuple[str, ...]:
    return tuple(
        dict.fromkeys(
            name for c in reversed(cls.__mro__) for name in getattr(c, "__slots__", ())
        )
    )


class Node(ABC):
    __slots__: tuple[str, ...] = ()

    def __eq__(self, other):
        return type(self) is type(other) and all(
            getattr(self, x) == getattr(other, x) for x in _slot_names(type(self))
        )

    def __hash__(self):
        return hash((type(self), *(getattr(self, x) for x in _slot_names(type(self)))))

    def __repr__(self):
        attributes = ", ".join(
            f"{x}={getattr(self, x)!r}" for x in _slot_names(type(self))
        )
        return f"{self.__class__.__qualname__}({attributes})"


class EvaluationNode(Node):
    @abstractmethod
    def evaluate(self, context: EvaluationContext) -> PredicateValue:
        pass


class NodeTestNode(Node):
    principal_kind: Optional[NodeKind] = None
    """
    The kind of nodes the test matches. Only tests of attributes and those with
    :obj:`None`, that match any kind, are applicable on the attribute and namespace
    axes.
    """

    @abstractmethod
    def matches(self, node: NodeView) -> bool:
        pass


# aggregators


class Axis(Node):
    __slots__ = ("generator", "name")

    def __init__(self, name: str):
        if name not in AXIS_NAMES:
            raise PathConstructionError(ErrorKind.INVALID_AXIS, construct=name)
        self.name: Final = name
        self.generator: Final[Callable[[NodeView], Iterator[NodeView]]] = getattr(
            self, name.replace("-", "_")
        )

    def __eq__(self, other):
        return isinstance(other, Axis) and self.name == other.name

    def __hash__(self):
        return hash((Axis, self.name))

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name!r})"

    @property
    def is_attribute_axis(self) -> bool:
        return self.name in ATTRIBUTE_AXES

    @property
    def is_reverse(self) -> bool:
        """
        Whether the axis' nodes are yielded in reverse document order.
        """
        return self.name in REVERSE_AXES

    def evaluate(self, node: NodeView) -> Iterator[NodeView]:
        yield from self.generator(node)

    def ancestor(self, node: NodeView) -> Iterator[NodeView]:
        ancestor = node.parent
        while ancestor is not None:
            yield ancestor
            ancestor = ancestor.parent

    def ancestor_or_self(self, node: NodeView) -> Iterator[NodeView]:
        yield node
        yield from self.ancestor(node)

    def attribute(self, node: NodeView) -> Iterator[NodeView]:
        if node.kind is NodeKind.ELEMENT:
            yield from node.attribute_nodes

    def child(self, node: NodeView) -> Iterator[NodeView]:
        yield from node.child_nodes

    def descendant(self, node: NodeView) -> Iterator[NodeView]:
        yield from _iterate_descendants(node)

    def descendant_or_self(self, node: NodeView) -> Iterator[NodeView]:
        yield node
        yield from _iterate_descendants(node)

    def following(self, node: NodeView) -> Iterator[NodeView]:
        if not _is_child_node(node) and (parent := node.parent) is not None:
            # an attribute precedes the contents of the element it belongs to
            yield from _iterate_descendants(parent)
            node = parent

        cursor: Optional[NodeView] = node
        while cursor is not None:
            for sibling in _iterate_following_siblings(cursor):
                yield sibling
                yield from _iterate_descendants(sibling)
            cursor = cursor.parent

    def following_sibling(self, node: NodeView) -> Iterator[NodeView]:
        yield from _iterate_following_siblings(node)

    def namespace(self, node: NodeView) -> Iterator[NodeView]:
        if node.kind is NodeKind.ELEMENT:
            yield from node.namespace_nodes

    def parent(self, node: NodeView) -> Iterator[NodeView]:
        if (parent := node.parent) is not None:
            yield parent

    def preceding(self, node: NodeView) -> Iterator[NodeView]:
        if not _is_child_node(node) and (parent := node.parent) is not None:
            # the element is an ancestor of its attributes
            node = parent

        cursor: Optional[NodeView] = node
        while cursor is not None:
            for sibling in _iterate_preceding_siblings(cursor):
                yield from _iterate_reversed_descendants(sibling)
                yield sibling
            cursor = cursor.parent

    def preceding_sibling(self, node: NodeView) -> Iterator[NodeView]:
        yield from _iterate_preceding_siblings(node)

    def self(self, node: NodeView) -> Iterator[NodeView]:
        yield node


class LocationPath(Node):
    """
    A sequence of location steps. An absolute path is evaluated from the root of the
    context node's tree, a relative one from the context node.
    """

    __slots__ = ("absolute", "location_steps")

    def __init__(self, location_steps: Iterable[LocationStep], absolute: bool = False):
        location_steps = tuple(location_steps)
        if not (location_steps or absolute):
            raise PathConstructionError(
                ErrorKind.EMPTY_RELATIVE_PATH, construct=location_steps
            )
        self.location_steps: Final = location_steps
        self.absolute: Final = absolute

    def __repr__(self):
        return nested_repr(self)

    def evaluate(self, node: NodeView) -> Iterator[NodeView]:
        """
        Yields the nodes that the path locates from the given context node. They're
        free of duplicates, but not in any particular order.
        """
        node_set: Sequence[NodeView] = (node.root,) if self.absolute else (node,)
        for step in self.location_steps:
            node_set = tuple(step.evaluate(node_set))
            if not node_set:
                break
        yield from node_set


class LocationStep(Node):
    __slots__ = ("axis", "node_test", "predicates")

    def __init__(
        self,
        axis: Axis,
        node_test: NodeTestNode,
        predicates: Sequence[EvaluationNode] = (),
    ):
        principal_kind = node_test.principal_kind
        if (
            axis.is_attribute_axis and principal_kind not in (None, NodeKind.ATTRIBUTE)
        ) or (not axis.is_attribute_axis and principal_kind is NodeKind.ATTRIBUTE):
            raise PathConstructionError(
                ErrorKind.AXIS_TEST_MISMATCH,
                message=f"The node test {node_test!r} can't be used on the "
                f"{axis.name} axis.",
                construct=node_test,
            )

        self.axis: Final = axis
        self.node_test: Final = node_test
        self.predicates: Final = tuple(predicates)

    def evaluate(self, node_set: Iterable[NodeView]) -> Iterator[NodeView]:
        """
        Yields the union of the step's results for all nodes in the given node-set.
        """
        if not self.predicates and self.axis.name in (
            "descendant",
            "descendant-or-self",
        ):
            yield from self._evaluate_descendants(node_set)
            return

        yield from _deduplicated(
            chain.from_iterable(self._evaluate(node) for node in node_set)
        )

    def _evaluate(self, node: NodeView) -> Sequence[NodeView]:
        matches = self.node_test.matches
        candidates = [n for n in self.axis.evaluate(node) if matches(n)]

        for predicate in self.predicates:
            size = len(candidates)
            candidates = [
                candidate
                for position, candidate in enumerate(candidates, start=1)
                if predicate_matches(
                    evaluate_predicate(predicate, candidate, position, size), position
                )
            ]
            if not candidates:
                break

        return candidates

    def _evaluate_descendants(self, node_set: Iterable[NodeView]) -> Iterator[NodeView]:
        # without predicates a context node's results don't depend on the context
        # node, hence subtrees that have been traversed already can be skipped
        matches = self.node_test.matches
        visited: set[int] = set()
        for node in _sort_nodes_in_document_order(node_set):
            if id(node) in visited:
                continue
            for candidate in self.axis.evaluate(node):
                visited.add(id(candidate))
                if matches(candidate):
                    yield candidate


class XPathExpression(Node):
    """The union of one or more location paths."""

    __slots__ = ("location_paths",)

    def __init__(self, location_paths: Iterable[LocationPath]):
        self.location_paths: Final = tuple(location_paths)

    def __repr__(self):
        return nested_repr(self)

    def evaluate(self, node: NodeView) -> Iterator[NodeView]:
        yield from _deduplicated(
            chain.from_iterable(p.evaluate(node) for p in self.location_paths)
        )


# node tests


class AnyNodeTest(NodeTestNode):
    """``node()``"""

    __slots__ = ()

    def matches(self, node: NodeView) -> bool:
        return True


class _NamespacedTest(NodeTestNode):
    # a namespace of None is a wildcard, no namespace is represented as ""

    __slots__ = ("namespace",)

    def __init__(self, namespace: Optional[str] = None):
        self.namespace: Final = namespace

    def matches(self, node: NodeView) -> bool:
        return node.kind is self.principal_kind and (
            self.namespace is None or node.namespace == self.namespace
        )


class AnyAttributeTest(_NamespacedTest):
    """``attribute::*`` or ``attribute::prefix:*``"""

    __slots__ = ()
    principal_kind = NodeKind.ATTRIBUTE


class AnyElementTest(_NamespacedTest):
    """``*`` or ``prefix:*``"""

    __slots__ = ()
    principal_kind = NodeKind.ELEMENT


class _NameMatchTest(NodeTestNode):
    __slots__ = ("local_name", "namespace")

    def __init__(self, namespace: Optional[str], local_name: str):
        self.namespace: Final = namespace
        self.local_name: Final = local_name

    def matches(self, node: NodeView) -> bool:
        if node.kind is not self.principal_kind:
            return False
        name = node.name
        assert name is not None
        return name.local_name == self.local_name and (
            self.namespace is None or name.namespace == self.namespace
        )


class NamedAttributeTest(_NameMatchTest):
    __slots__ = ()
    principal_kind = NodeKind.ATTRIBUTE


class NamedElementTest(_NameMatchTest):
    __slots__ = ()
    principal_kind = NodeKind.ELEMENT


class CommentTest(NodeTestNode):
    """``comment()``"""

    __slots__ = ()
    principal_kind = NodeKind.COMMENT

    def matches(self, node: NodeView) -> bool:
        return node.kind is NodeKind.COMMENT


class ProcessingInstructionTest(NodeTestNode):
    """``processing-instruction()`` or ``processing-instruction('target')``"""

    __slots__ = ("target",)
    principal_kind = NodeKind.PROCESSING_INSTRUCTION

    def __init__(self, target: Optional[str] = None):
        self.target: Final = target

    def matches(self, node: NodeView) -> bool:
        if node.kind is not self.principal_kind:
            return False
        return self.target is None or node.local_name == self.target


class TextTest(NodeTestNode):
    """``text()``"""

    __slots__ = ()
    principal_kind = NodeKind.TEXT

    def matches(self, node: NodeView) -> bool:
        return node.kind is NodeKind.TEXT


# predicate evaluation


def evaluate_predicate(
    predicate: EvaluationNode, node: NodeView, position: int, size: int
) -> PredicateValue:
    return predicate.evaluate(EvaluationContext(node, position, size))


class AnyValue(EvaluationNode):
    __slots__ = ("value",)

    def __init__(self, value: float | int | str):
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> PredicateValue:
        return self.value


class ArithmeticOperator(EvaluationNode):
    __slots__ = ("left", "operator", "right")

    def __init__(
        self,
        operator: Callable[[float, float], float],
        left: EvaluationNode,
        right: EvaluationNode,
    ):
        self.operator: Final = operator
        self.left: Final = left
        self.right: Final = right

    def evaluate(self, context: EvaluationContext) -> PredicateValue:
        return self.operator(
            to_number(self.left.evaluate(context)),
            to_number(self.right.evaluate(context)),
        )


class BooleanOperator(EvaluationNode):
    __slots__ = ("left", "operator", "right")

    def __init__(
        self,
        operator: Callable,
        left: EvaluationNode,
        right: EvaluationNode,
    ):
        if operator not in BOOLEAN_OPERATORS.values():
            raise InvalidCodePath
        self.operator: Final = operator
        self.left: Final = left
        self.right: Final = right

    def evaluate(self, context: EvaluationContext) -> PredicateValue:
        left = to_boolean(self.left.evaluate(context))
        if self.operator is operator.and_:
            return left and to_boolean(self.right.evaluate(context))
        else:
            return left or to_boolean(self.right.evaluate(context))


class ComparisonOperator(EvaluationNode):
    __slots__ = ("left", "operator", "right")

    def __init__(
        self,
        operator: Callable[[Any, Any], bool],
        left: EvaluationNode,
        right: EvaluationNode,
    ):
        self.operator: Final = operator
        self.left: Final = left
        self.right: Final = right

    def evaluate(self, context: EvaluationContext) -> PredicateValue:
        return compare(
            self.operator, self.left.evaluate(context), self.right.evaluate(context)
        )


class Function(EvaluationNode):
    __slots__ = ("arguments", "function", "name")

    def __init__(self, name: str, arguments: Sequence[EvaluationNode]):
        function = xpath_functions.get(name)
        if function is None:
            raise PathConstructionError(
                ErrorKind.UNKNOWN_FUNCTION,
                message=f"Unknown function: `{name}`",
                construct=name,
            )

        parameters = tuple(inspect.signature(function).parameters.values())[1:]
        if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in parameters):
            maximum = inf
            parameters = tuple(
                p for p in parameters if p.kind is not inspect.Parameter.VAR_POSITIONAL
            )
        else:
            maximum = len(parameters)
        minimum = sum(p.default is inspect.Parameter.empty for p in parameters)
        if not minimum <= len(arguments) <= maximum:
            raise PathConstructionError(
                ErrorKind.FUNCTION_SIGNATURE_MISMATCH,
                message=f"Arguments to function `{name}` don't match its signature.",
                construct=name,
            )

        self.name: Final = name
        self.function: Final = function
        self.arguments: Final = tuple(arguments)

    def __eq__(self, other):
        return (
            isinstance(other, Function)
            and self.function is other.function
            and self.arguments == other.arguments
        )

    def __hash__(self):
        return hash((Function, self.function, self.arguments))

    def evaluate(self, context: EvaluationContext) -> PredicateValue:
        return self.function(context, *(x.evaluate(context) for x in self.arguments))


class Negation(EvaluationNode):
    __slots__ = ("operand",)

    def __init__(self, operand: EvaluationNode):
        self.operand: Final = operand

    def evaluate(self, context: EvaluationContext) -> PredicateValue:
        return -to_number(self.operand.evaluate(context))


class PathValue(EvaluationNode):
    """
    A location path or a union of such within a predicate. It evaluates to a node-set
    in document order with the evaluated node as context node.
    """

    __slots__ = ("location_paths",)

    def __init__(self, location_paths: Iterable[LocationPath]):
        self.location_paths: Final = tuple(location_paths)

    def evaluate(self, context: EvaluationContext) -> NodeSet:
        node = context.node
        return tuple(
            _sort_nodes_in_document_order(
                chain.from_iterable(p.evaluate(node) for p in self.location_paths)
            )
        )


__all__ = (
    AnyAttributeTest.__name__,
    AnyElementTest.__name__,
    AnyNodeTest.__name__,
    AnyValue.__name__,
    ArithmeticOperator.__name__,
    Axis.__name__,
    BooleanOperator.__name__,
    CommentTest.__name__,
    ComparisonOperator.__name__,
    EvaluationContext.__name__,
    Function.__name__,
    LocationPath.__name__,
    LocationStep.__name__,
    NamedAttributeTest.__name__,
    NamedElementTest.__name__,
    Negation.__name__,
    PathValue.__name__,
    ProcessingInstructionTest.__name__,
    TextTest.__name__,
    XPathExpression.__name__,
    compare.__name__,
    evaluate_predicate.__name__,
    predicate_matches.__name__,
    to_boolean.__name__,
    to_number.__name__,
    to_string.__name__,
)
