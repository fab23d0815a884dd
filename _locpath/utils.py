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

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from _locpath.typing import NodeKind

if TYPE_CHECKING:
    from _locpath.typing import NodeView


def _deduplicated(nodes: Iterable[NodeView]) -> Iterator[NodeView]:
    # identity based, the first occurrence wins
    yielded_nodes: set[int] = set()
    for node in nodes:
        _id = id(node)
        if _id not in yielded_nodes:
            yielded_nodes.add(_id)
            yield node


def _is_child_node(node: NodeView) -> bool:
    return node.parent is not None and node.kind is not NodeKind.ATTRIBUTE


def _iterate_descendants(node: NodeView) -> Iterator[NodeView]:
    # depth-first, pre-order
    stack = [iter(node.child_nodes)]
    while stack:
        for child in stack[-1]:
            yield child
            if child.child_nodes:
                stack.append(iter(child.child_nodes))
            break
        else:
            stack.pop()


def _iterate_following_siblings(node: NodeView) -> Iterator[NodeView]:
    if not _is_child_node(node):
        return
    assert node.parent is not None
    siblings = node.parent.child_nodes
    for index in range(node.index + 1, len(siblings)):
        yield siblings[index]


def _iterate_preceding_siblings(node: NodeView) -> Iterator[NodeView]:
    # nearest first
    if not _is_child_node(node):
        return
    assert node.parent is not None
    siblings = node.parent.child_nodes
    for index in range(node.index - 1, -1, -1):
        yield siblings[index]


def _iterate_reversed_descendants(node: NodeView) -> Iterator[NodeView]:
    # the exact reverse of _iterate_descendants: the last descendant in document order
    # comes first, a node is yielded after all of its descendants
    stack = [(node, iter(reversed(node.child_nodes)))]
    while stack:
        parent, children = stack[-1]
        for child in children:
            stack.append((child, iter(reversed(child.child_nodes))))
            break
        else:
            stack.pop()
            if stack:
                yield parent


def _sort_nodes_in_document_order(nodes: Iterable[NodeView]) -> list[NodeView]:
    """
    Returns the given nodes without duplicates and sorted by their document order
    index.
    """
    return sorted(_deduplicated(nodes), key=lambda n: n.document_order_index)


__all__ = (
    _sort_nodes_in_document_order.__name__,
)
