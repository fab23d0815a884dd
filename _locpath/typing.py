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

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import (
    Any,
    NamedTuple,
    Optional,
    TypeAlias,
    TypeVar,
    Union,
)


# node types


class NodeKind(Enum):
    DOCUMENT = "document"
    ELEMENT = "element"
    ATTRIBUTE = "attribute"
    TEXT = "text"
    COMMENT = "comment"
    PROCESSING_INSTRUCTION = "processing-instruction"


class QualifiedName(NamedTuple):
    """
    A resolved name. Nodes that are in no namespace have an empty string as
    ``namespace``.
    """

    namespace: str
    local_name: str


class NodeView(ABC):
    """
    Defines the read-only capabilities that a host tree's nodes must provide in order
    to be queried with location paths. Implementations must not be mutated while an
    evaluation is in progress and must present a consistent tree, i.e. every node is
    contained in its parent's :attr:`child_nodes` (or :attr:`attribute_nodes`) and no
    cycles exist.

    Implementations *should not* override equality, the engine relies on object
    identity.
    """

    __slots__ = ()

    @property
    @abstractmethod
    def attribute_nodes(self) -> Sequence[NodeView]:
        """
        The node's attributes in a stable order. Only element nodes can have
        attributes.
        """

    @property
    @abstractmethod
    def child_nodes(self) -> Sequence[NodeView]:
        """
        The node's children in document order. Attribute nodes are not included. Only
        element and document nodes can have children.
        """

    @property
    @abstractmethod
    def document_order_index(self) -> int:
        """
        An integer that is unique within the node's tree and is strictly increasing in
        a depth-first, pre-order traversal. An element's attributes are ordered after
        the element and before its children.
        """

    @property
    def index(self) -> int:
        """
        The node's position among its parent's child nodes. Implementations are
        encouraged to override this with a constant time lookup.
        """
        parent = self.parent
        if parent is None or self.kind is NodeKind.ATTRIBUTE:
            raise ValueError("The node isn't a child node.")
        for index, node in enumerate(parent.child_nodes):
            if node is self:
                return index
        raise ValueError("The node isn't contained in its parent's child nodes.")

    @property
    @abstractmethod
    def kind(self) -> NodeKind:
        pass

    @property
    def local_name(self) -> Optional[str]:
        """
        The local name of elements and attributes or the target of a processing
        instruction. :obj:`None` for other kinds.
        """
        name = self.name
        return None if name is None else name.local_name

    @property
    @abstractmethod
    def name(self) -> Optional[QualifiedName]:
        """
        The resolved name of elements and attributes. Processing instructions bear
        their target as local name in no namespace. Other kinds have no name.
        """

    @property
    def namespace(self) -> Optional[str]:
        name = self.name
        return None if name is None else name.namespace

    @property
    def namespace_nodes(self) -> Sequence[NodeView]:
        """
        The in-scope namespace nodes of an element. Host trees that don't model them
        as nodes return an empty sequence, which is the default.
        """
        return ()

    @property
    @abstractmethod
    def parent(self) -> Optional[NodeView]:
        """
        The parent node. For attributes this is the element that bears them. The
        document node has none.
        """

    @property
    def prefix(self) -> Optional[str]:
        """
        A lexical prefix that was used for the node's name in its source, if a host
        tree retains it. It is only consulted for the ``name()`` function.
        """
        return None

    @property
    def root(self) -> NodeView:
        """The topmost node of the tree, usually a document node."""
        node = self
        while (parent := node.parent) is not None:
            node = parent
        return node

    @property
    @abstractmethod
    def string_value(self) -> str:
        """
        The concatenated contents of all descendant text nodes for documents and
        elements, the value of attributes and the content of other kinds.
        """


# aliases

NamespaceDeclarations: TypeAlias = Mapping[Optional[str], str]
_NamespaceDeclarations: TypeAlias = dict[str, str]

Filter: TypeAlias = Callable[[NodeView], bool]
NodeSet: TypeAlias = tuple[NodeView, ...]
PredicateValue: TypeAlias = Union[bool, float, int, str, NodeSet]
XPathFunction: TypeAlias = Callable[..., Any]

GenericDecorated = TypeVar("GenericDecorated", bound=Callable[..., Any])
SecondOrderDecorator: TypeAlias = Callable[[GenericDecorated], GenericDecorated]


__all__ = (
    "Filter",
    "NamespaceDeclarations",
    NodeKind.__name__,
    "NodeSet",
    NodeView.__name__,
    "PredicateValue",
    QualifiedName.__name__,
    "XPathFunction",
)
