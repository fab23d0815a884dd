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
The path engine evaluates location paths over any tree whose nodes implement
:class:`_locpath.typing.NodeView`. Paths are either built from the classes in
:mod:`_locpath.xpath.ast` or parsed from XPath 1.0 expressions. CSS selectors are
converted to XPath expressions with a third-party library before evaluation and they
are only supported as far as their computed XPath equivalents are supported by this
implementation.

The implementation covers the location paths of the `XPath 1.0 specs`_ with all
thirteen axes, but it isn't a complete XPath processor. These are the deviations from
that standard:

- An expression's top level consists of location paths and unions of them. Other
  expression types can only be used in predicates.
- Filter expressions (``(//a)[1]``) and variable references aren't supported.
- An unprefixed element name refers to the declared default namespace if there is
  one.
- The namespace axis yields what a tree implementation provides as
  :attr:`_locpath.typing.NodeView.namespace_nodes`, the reference tree doesn't model
  any.
- Only these predicate functions are provided:
    - ``boolean``
    - ``concat``
    - ``contains``
    - ``count``
    - ``false``
    - ``last``
    - ``local-name``
    - ``name``
    - ``namespace-uri``
    - ``normalize-space``
    - ``not``
    - ``number``
    - ``position``
    - ``starts-with``
    - ``string``
    - ``string-length``
    - ``true``

See :meth:`_locpath.plugins.PluginManager.register_xpath_function` regarding the use
of custom functions.

.. _XPath 1.0 specs: https://www.w3.org/TR/1999/REC-xpath-19991116/
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING, Optional

from cssselect import GenericTranslator

from _locpath.utils import _sort_nodes_in_document_order
from _locpath.xpath import functions  # noqa: F401
from _locpath.xpath.ast import (
    EvaluationContext,
    LocationPath,
    NodeTestNode,
    XPathExpression,
    to_boolean,
    to_number,
    to_string,
)
from _locpath.xpath.parser import parse


if TYPE_CHECKING:
    from _locpath.typing import Filter, NamespaceDeclarations, NodeView

_css_translator = GenericTranslator()


class QueryResults(Sequence["NodeView"]):
    """
    A container with the results of a path evaluation with some helpers for better
    readable Python expressions. Unless constructed otherwise, the nodes are in
    document order.
    """

    __slots__ = ("__items",)

    def __init__(self, results: Iterable[NodeView]):
        self.__items = tuple(results)

    def __eq__(self, other):
        if not isinstance(other, Collection):
            raise TypeError

        return len(self.__items) == len(other) and all(x in other for x in self.__items)

    def __getitem__(self, item):
        return self.__items[item]

    def __len__(self) -> int:
        return len(self.__items)

    def __repr__(self):
        return str([repr(x) for x in self.__items])

    def as_list(self) -> list[NodeView]:
        """The contained nodes as a new :class:`list`."""
        return list(self.__items)

    @property
    def as_tuple(self) -> tuple[NodeView, ...]:
        """The contained nodes in a :class:`tuple`."""
        return self.__items

    def filtered_by(self, *filters: Filter) -> QueryResults:
        """
        Returns another :class:`QueryResults` instance that contains all nodes filtered
        by the provided :term:`filter` s.
        """
        items: Sequence[NodeView] = self.__items
        for _filter in filters:
            items = [x for x in items if _filter(x)]
        return self.__class__(items)

    @property
    def first(self) -> Optional[NodeView]:
        """The first node from the results or :obj:`None` if there are none."""
        return self.__items[0] if self.__items else None

    def in_document_order(self) -> QueryResults:
        """
        Returns another :class:`QueryResults` instance where the contained nodes are
        sorted in document order.
        """
        return QueryResults(_sort_nodes_in_document_order(self.__items))

    @property
    def last(self) -> Optional[NodeView]:
        """The last node from the results or :obj:`None` if there are none."""
        return self.__items[-1] if self.__items else None

    @property
    def size(self) -> int:
        """The amount of contained nodes."""
        return len(self.__items)


@lru_cache(maxsize=64)
def _css_to_xpath(expression: str) -> str:
    return _css_translator.css_to_xpath(expression, prefix="descendant::")


def evaluate(path: LocationPath | XPathExpression, context: NodeView) -> QueryResults:
    """
    Evaluates a location path or a union of such against a context node.

    :param path: The path to evaluate. An absolute path is evaluated from the root of
                 the context node's tree.
    :param context: The node that a relative path is evaluated from.
    :return: The located nodes in document order and without duplicates.
    """
    return QueryResults(_sort_nodes_in_document_order(path.evaluate(context)))


def matches(test: NodeTestNode, node: NodeView) -> bool:
    """Tells whether a node qualifies for a node test."""
    return test.matches(node)


def select(
    node: NodeView,
    expression: str,
    namespaces: Optional[NamespaceDeclarations] = None,
) -> QueryResults:
    """
    Evaluates an XPath expression against a context node.

    :param node: The context node.
    :param expression: One or more location paths, separated by ``|``.
    :param namespaces: A mapping of prefixes to namespaces that are used in the
                       expression.
    """
    return evaluate(parse(expression, namespaces), node)


def fetch(
    node: NodeView,
    expression: str,
    namespaces: Optional[NamespaceDeclarations] = None,
) -> Optional[NodeView]:
    """
    Returns the first node in document order that an XPath expression locates or
    :obj:`None`.
    """
    return select(node, expression, namespaces).first


def css_select(
    node: NodeView,
    expression: str,
    namespaces: Optional[NamespaceDeclarations] = None,
) -> QueryResults:
    """
    Queries the descendants of a node with a CSS selector. Namespace prefixes are
    delimited with a ``|`` as in ``prefix|name``.

    >>> from locpath import parse_tree
    >>> tree = parse_tree('<root><a class="x"/><b><a/></b></root>')
    >>> [n.local_name for n in css_select(tree.root_element, "b > a, .x")]
    ['a', 'a']
    """
    return select(node, _css_to_xpath(expression), namespaces)


__all__ = (
    _css_to_xpath.__name__,  # type:ignore
    css_select.__name__,
    evaluate.__name__,
    fetch.__name__,
    matches.__name__,
    parse.__name__,
    select.__name__,
    to_boolean.__name__,
    to_number.__name__,
    to_string.__name__,
    EvaluationContext.__name__,
    QueryResults.__name__,
)
