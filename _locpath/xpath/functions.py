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
The core function library of XPath 1.0 as far as it's needed to evaluate
predicates, https://www.w3.org/TR/xpath-10/#corelib
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional

from _locpath.exceptions import XPathEvaluationError
from _locpath.plugins import plugin_manager
from _locpath.xpath.ast import to_boolean, to_number, to_string

if TYPE_CHECKING:
    from typing import Final

    from _locpath.typing import NodeSet, NodeView, PredicateValue
    from _locpath.xpath.ast import EvaluationContext


_collapse_whitespace: Final = re.compile("[ \t\r\n]+").sub


def _first_node(
    function_name: str, context: EvaluationContext, value: Optional[PredicateValue]
) -> Optional[NodeView]:
    if value is None:
        return context.node
    if not isinstance(value, tuple):
        raise XPathEvaluationError(
            f"The function `{function_name}` expects a node-set as argument."
        )
    return value[0] if value else None


# node set functions


@plugin_manager.register_xpath_function
def count(_: EvaluationContext, nodes: NodeSet) -> int:
    if not isinstance(nodes, tuple):
        raise XPathEvaluationError(
            "The function `count` expects a node-set as argument."
        )
    return len(nodes)


@plugin_manager.register_xpath_function
def last(context: EvaluationContext) -> int:
    return context.size


@plugin_manager.register_xpath_function("local-name")
def local_name(context: EvaluationContext, nodes: Optional[NodeSet] = None) -> str:
    node = _first_node("local-name", context, nodes)
    if node is None or node.name is None:
        return ""
    return node.local_name


@plugin_manager.register_xpath_function
def name(context: EvaluationContext, nodes: Optional[NodeSet] = None) -> str:
    node = _first_node("name", context, nodes)
    if node is None or node.name is None:
        return ""
    if node.prefix:
        return f"{node.prefix}:{node.local_name}"
    return node.local_name


@plugin_manager.register_xpath_function("namespace-uri")
def namespace_uri(context: EvaluationContext, nodes: Optional[NodeSet] = None) -> str:
    node = _first_node("namespace-uri", context, nodes)
    if node is None or node.name is None:
        return ""
    return node.namespace


@plugin_manager.register_xpath_function
def position(context: EvaluationContext) -> int:
    return context.position


# string functions


@plugin_manager.register_xpath_function
def concat(
    _: EvaluationContext,
    value: PredicateValue,
    other_value: PredicateValue,
    *values: PredicateValue,
) -> str:
    return "".join(to_string(x) for x in (value, other_value, *values))


@plugin_manager.register_xpath_function
def contains(
    _: EvaluationContext, string: PredicateValue, substring: PredicateValue
) -> bool:
    return to_string(substring) in to_string(string)


@plugin_manager.register_xpath_function("normalize-space")
def normalize_space(
    context: EvaluationContext, value: Optional[PredicateValue] = None
) -> str:
    string = context.node.string_value if value is None else to_string(value)
    return _collapse_whitespace(" ", string).strip(" ")


@plugin_manager.register_xpath_function("starts-with")
def starts_with(
    _: EvaluationContext, string: PredicateValue, prefix: PredicateValue
) -> bool:
    return to_string(string).startswith(to_string(prefix))


@plugin_manager.register_xpath_function
def string(context: EvaluationContext, value: Optional[PredicateValue] = None) -> str:
    return context.node.string_value if value is None else to_string(value)


@plugin_manager.register_xpath_function("string-length")
def string_length(
    context: EvaluationContext, value: Optional[PredicateValue] = None
) -> int:
    return len(context.node.string_value if value is None else to_string(value))


# boolean functions


@plugin_manager.register_xpath_function
def boolean(_: EvaluationContext, value: PredicateValue) -> bool:
    return to_boolean(value)


@plugin_manager.register_xpath_function("false")
def _false(_: EvaluationContext) -> bool:
    return False


@plugin_manager.register_xpath_function("not")
def _not(_: EvaluationContext, value: PredicateValue) -> bool:
    return not to_boolean(value)


@plugin_manager.register_xpath_function("true")
def _true(_: EvaluationContext) -> bool:
    return True


# number functions


@plugin_manager.register_xpath_function
def number(
    context: EvaluationContext, value: Optional[PredicateValue] = None
) -> float:
    return to_number(context.node.string_value if value is None else value)
