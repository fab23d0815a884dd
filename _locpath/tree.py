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
A compact, immutable tree implementation that satisfies the
:class:`_locpath.typing.NodeView` interface. All nodes are owned by a single
:class:`Tree` instance that stores them in document order, a node refers to its parent
by the parent's position in that store.

Instances are obtained with the functions from :mod:`_locpath.builder`.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Optional

from _locpath.exceptions import InvalidCodePath
from _locpath.typing import NodeKind, NodeView, QualifiedName

if TYPE_CHECKING:
    from typing import Final


_CONTAINER_KINDS: Final = (NodeKind.DOCUMENT, NodeKind.ELEMENT)


class TreeNode(NodeView):
    __slots__ = (
        "_attribute_nodes",
        "_child_nodes",
        "_content",
        "_index",
        "_kind",
        "_name",
        "_parent_position",
        "_position",
        "_prefix",
        "_string_value",
        "_tree",
    )

    def __init__(
        self,
        tree: Tree,
        position: int,
        kind: NodeKind,
        parent: Optional[TreeNode],
        name: Optional[QualifiedName] = None,
        content: str = "",
        prefix: Optional[str] = None,
    ):
        self._tree: Final = tree
        self._position: Final = position
        self._kind: Final = kind
        self._name: Final = name
        self._prefix: Final = prefix
        self._content = content
        self._parent_position: Final = None if parent is None else parent._position
        self._attribute_nodes: Sequence[TreeNode] = []
        self._child_nodes: Sequence[TreeNode] = []
        self._index = 0
        self._string_value: Optional[str] = None

    def __repr__(self):
        if self._name is None:
            designation = self._kind.value
        else:
            namespace, local_name = self._name
            designation = (
                f"{self._kind.value} {{{namespace}}}{local_name}"
                if namespace
                else f"{self._kind.value} {local_name}"
            )
        return f"<{self.__class__.__name__}({designation}) [{self._position}]>"

    @property
    def attribute_nodes(self) -> Sequence[TreeNode]:
        return self._attribute_nodes

    @property
    def child_nodes(self) -> Sequence[TreeNode]:
        return self._child_nodes

    @property
    def content(self) -> str:
        """The value of attributes and the contents of other leaf nodes."""
        return self._content

    @property
    def document_order_index(self) -> int:
        return self._position

    @property
    def index(self) -> int:
        if self._parent_position is None or self._kind is NodeKind.ATTRIBUTE:
            raise ValueError("The node isn't a child node.")
        return self._index

    @property
    def kind(self) -> NodeKind:
        return self._kind

    @property
    def name(self) -> Optional[QualifiedName]:
        return self._name

    @property
    def parent(self) -> Optional[TreeNode]:
        if self._parent_position is None:
            return None
        return self._tree[self._parent_position]

    @property
    def prefix(self) -> Optional[str]:
        return self._prefix

    @property
    def root(self) -> TreeNode:
        return self._tree.document

    @property
    def string_value(self) -> str:
        if self._kind not in _CONTAINER_KINDS:
            return self._content

        if self._string_value is None:
            tree = self._tree
            self._string_value = "".join(
                tree[i]._content
                for i in range(self._position + 1, self._last_descendant_position + 1)
                if tree[i]._kind is NodeKind.TEXT
            )
        return self._string_value

    @property
    def tree(self) -> Tree:
        """The tree that owns this node."""
        return self._tree

    @property
    def _last_descendant_position(self) -> int:
        node = self
        while node._child_nodes:
            node = node._child_nodes[-1]
        return node._position


class Tree(Sequence[TreeNode]):
    """
    The owner of all nodes of a tree. As sequence it contains all nodes in document
    order, hence a node's :attr:`TreeNode.document_order_index` is its position in
    the tree.
    """

    __slots__ = ("__nodes", "__sealed")

    def __init__(self):
        self.__nodes: Final[list[TreeNode]] = []
        self.__sealed = False

    def __getitem__(self, index):
        return self.__nodes[index]

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self.__nodes)

    def __len__(self) -> int:
        return len(self.__nodes)

    def __repr__(self):
        return f"<{self.__class__.__name__} with {len(self.__nodes)} nodes>"

    @property
    def document(self) -> TreeNode:
        """The document node which is the root of the tree."""
        return self.__nodes[0]

    @property
    def root_element(self) -> Optional[TreeNode]:
        """The document's element child."""
        for node in self.document._child_nodes:
            if node._kind is NodeKind.ELEMENT:
                return node
        return None

    def _add_node(
        self,
        kind: NodeKind,
        parent: Optional[TreeNode],
        name: Optional[QualifiedName] = None,
        content: str = "",
        prefix: Optional[str] = None,
    ) -> TreeNode:
        if self.__sealed:
            raise InvalidCodePath
        if parent is None and self.__nodes:
            raise InvalidCodePath

        node = TreeNode(
            tree=self,
            position=len(self.__nodes),
            kind=kind,
            parent=parent,
            name=name,
            content=content,
            prefix=prefix,
        )
        self.__nodes.append(node)

        if parent is not None:
            if kind is NodeKind.ATTRIBUTE:
                assert isinstance(parent._attribute_nodes, list)
                parent._attribute_nodes.append(node)
            else:
                assert isinstance(parent._child_nodes, list)
                node._index = len(parent._child_nodes)
                parent._child_nodes.append(node)

        return node

    def _seal(self) -> Tree:
        for node in self.__nodes:
            node._attribute_nodes = tuple(node._attribute_nodes)
            node._child_nodes = tuple(node._child_nodes)
        self.__sealed = True
        return self


__all__ = (Tree.__name__, TreeNode.__name__)
