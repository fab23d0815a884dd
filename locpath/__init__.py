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
*locpath* evaluates XPath 1.0 location paths over ordered trees. Any tree whose nodes
implement :class:`NodeView` can be queried, :func:`parse_tree` builds a reference tree
from XML documents.

    >>> from locpath import parse_tree, select
    >>> tree = parse_tree("<a><b/><c><d/></c></a>")
    >>> [n.local_name for n in select(tree.document, "/a/*")]
    ['b', 'c']
"""

from __future__ import annotations

from _locpath.builder import ParserOptions, parse_tree, tree_from_lxml
from _locpath.exceptions import (
    ErrorKind,
    InvalidCodePath,
    LocpathBaseException,
    PathConstructionError,
    XPathEvaluationError,
    XPathParsingError,
)
from _locpath.names import Namespaces
from _locpath.plugins import plugin_manager as _plugin_manager
from _locpath.tree import Tree, TreeNode
from _locpath.typing import NodeKind, NodeView, QualifiedName
from _locpath.xpath import (
    EvaluationContext,
    QueryResults,
    css_select,
    evaluate,
    fetch,
    matches,
    parse,
    select,
)
from _locpath.xpath.ast import (
    AnyAttributeTest,
    AnyElementTest,
    AnyNodeTest,
    AnyValue,
    ArithmeticOperator,
    Axis,
    BooleanOperator,
    CommentTest,
    ComparisonOperator,
    Function,
    LocationPath,
    LocationStep,
    NamedAttributeTest,
    NamedElementTest,
    Negation,
    PathValue,
    ProcessingInstructionTest,
    TextTest,
    XPathExpression,
)


# plugin loading


_plugin_manager.load_plugins()


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
    ErrorKind.__name__,
    EvaluationContext.__name__,
    Function.__name__,
    InvalidCodePath.__name__,
    LocationPath.__name__,
    LocationStep.__name__,
    LocpathBaseException.__name__,
    NamedAttributeTest.__name__,
    NamedElementTest.__name__,
    Namespaces.__name__,
    Negation.__name__,
    NodeKind.__name__,
    NodeView.__name__,
    ParserOptions.__name__,
    PathConstructionError.__name__,
    PathValue.__name__,
    ProcessingInstructionTest.__name__,
    QualifiedName.__name__,
    QueryResults.__name__,
    TextTest.__name__,
    Tree.__name__,
    TreeNode.__name__,
    XPathEvaluationError.__name__,
    XPathExpression.__name__,
    XPathParsingError.__name__,
    css_select.__name__,
    evaluate.__name__,
    fetch.__name__,
    matches.__name__,
    parse.__name__,
    parse_tree.__name__,
    select.__name__,
    tree_from_lxml.__name__,
)
