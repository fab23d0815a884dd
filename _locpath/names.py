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
Namespace declarations for the resolution of prefixes in path expressions.

The prefixes ``xml`` and ``xmlns`` are bound to their namespaces in any set of
declarations, https://www.w3.org/TR/xml-names/#xmlReserved
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from typing import Final

    from _locpath.typing import NamespaceDeclarations, _NamespaceDeclarations

XML_NAMESPACE: Final = "http://www.w3.org/XML/1998/namespace"
XMLNS_NAMESPACE: Final = "http://www.w3.org/2000/xmlns/"

GLOBAL_NAMESPACES: Final = MappingProxyType(
    {"xml": XML_NAMESPACE, "xmlns": XMLNS_NAMESPACE}
)
GLOBAL_PREFIXES: Final = tuple(GLOBAL_NAMESPACES)


def deconstruct_clark_notation(name: str) -> tuple[str, str]:
    """
    Splits a name in Clark notation into namespace and local name. A name without a
    namespace yields an empty string as namespace.

    >>> deconstruct_clark_notation('{http://www.tei-c.org/ns/1.0}text')
    ('http://www.tei-c.org/ns/1.0', 'text')

    >>> deconstruct_clark_notation('div')
    ('', 'div')
    """
    if not name.startswith("{"):
        return "", name
    namespace, _, local_name = name[1:].partition("}")
    return namespace, local_name


def _validated_declarations(
    declarations: NamespaceDeclarations,
) -> _NamespaceDeclarations:
    if None in declarations and "" in declarations:
        raise ValueError("The default namespace is declared with both `None` and ''.")

    result = dict(GLOBAL_NAMESPACES)
    for prefix, namespace in declarations.items():
        if prefix is None:
            prefix = ""

        reserved_namespace = GLOBAL_NAMESPACES.get(prefix)
        if reserved_namespace is not None:
            if namespace != reserved_namespace:
                raise ValueError(f"The prefix `{prefix}` can't be rebound.")
        elif namespace in GLOBAL_NAMESPACES.values():
            raise ValueError(
                f"The namespace `{namespace}` can't be bound to the prefix `{prefix}`."
            )
        else:
            result[prefix] = namespace

    return result


class Namespaces(Mapping[str, str]):
    """
    An immutable and hashable :term:`mapping` of prefixes to namespaces. The default
    namespace is stored with an empty string as prefix, :obj:`None` is accepted as
    its prefix upon construction.

    :param namespaces: The declarations as mapping, another instance is reused.
    """

    __slots__ = ("_data", "_hash")

    def __init__(self, namespaces: NamespaceDeclarations):
        if isinstance(namespaces, Namespaces):
            data = namespaces._data
        elif isinstance(namespaces, Mapping):
            data = _validated_declarations(namespaces)
        else:
            raise TypeError(
                f"Namespace declarations must be a mapping, got {type(namespaces)}."
            )
        self._data: Final[_NamespaceDeclarations] = data
        self._hash: Final = hash(frozenset(data.items()))

    def __getitem__(self, prefix: str) -> str:
        return self._data[prefix]

    def __hash__(self) -> int:
        return self._hash

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self._data!r})"

    @property
    def default_namespace(self) -> Optional[str]:
        """The namespace of unprefixed element names, if one is declared."""
        return self._data.get("")


__all__ = (
    "GLOBAL_NAMESPACES",
    "GLOBAL_PREFIXES",
    "XML_NAMESPACE",
    "XMLNS_NAMESPACE",
    deconstruct_clark_notation.__name__,
    Namespaces.__name__,
)
