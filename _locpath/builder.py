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

from io import IOBase
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple, Optional

from lxml import etree

from _locpath.names import XML_NAMESPACE, deconstruct_clark_notation
from _locpath.tree import Tree
from _locpath.typing import NodeKind, QualifiedName

if TYPE_CHECKING:
    from typing import IO

    from _locpath.tree import TreeNode


class ParserOptions(NamedTuple):
    """
    The configuration options that define the XML parser's behaviour when a
    :class:`_locpath.tree.Tree` is built from a serialization.

    :param load_referenced_resources: Allows the loading of referenced external DTDs.
    :param remove_blank_text: Discard text nodes that contain only whitespace between
                              elements.
    :param remove_comments: Ignore comments.
    :param remove_processing_instructions: Don't include processing instructions in the
                                           parsed tree.
    :param resolve_entities: Replace entity references with their declared contents.
    :param unplugged: Don't load referenced resources over network.
    """

    load_referenced_resources: bool = False
    remove_blank_text: bool = False
    remove_comments: bool = False
    remove_processing_instructions: bool = False
    resolve_entities: bool = True
    unplugged: bool = True


def _make_parser(options: ParserOptions, encoding: Optional[str]) -> etree.XMLParser:
    return etree.XMLParser(
        dtd_validation=False,
        encoding=encoding,
        load_dtd=options.load_referenced_resources,
        no_network=options.unplugged,
        remove_blank_text=options.remove_blank_text,
        remove_comments=options.remove_comments,
        remove_pis=options.remove_processing_instructions,
        resolve_entities=options.resolve_entities,
        strip_cdata=True,
    )


class _TreeBuilder:
    __slots__ = ("tree",)

    def __init__(self):
        self.tree = Tree()

    def add_character_data(self, parent: TreeNode, data: Optional[str]):
        if not data:
            return
        siblings = parent.child_nodes
        if siblings and siblings[-1].kind is NodeKind.TEXT:
            # a skipped sibling (i.e. an entity reference) separated the two strings
            siblings[-1]._content += data
        else:
            self.tree._add_node(NodeKind.TEXT, parent, content=data)

    def add_element(self, element: etree._Element, parent: TreeNode):
        if isinstance(element, etree._Comment):
            self.tree._add_node(NodeKind.COMMENT, parent, content=element.text or "")
        elif isinstance(element, etree._ProcessingInstruction):
            self.tree._add_node(
                NodeKind.PROCESSING_INSTRUCTION,
                parent,
                name=QualifiedName("", element.target),
                content=element.text or "",
            )
        elif isinstance(element, etree._Entity):
            pass
        else:
            self.add_tag_element(element, parent)

        if parent.kind is not NodeKind.DOCUMENT:
            self.add_character_data(parent, element.tail)

    def add_tag_element(self, element: etree._Element, parent: TreeNode):
        tree = self.tree
        node = tree._add_node(
            NodeKind.ELEMENT,
            parent,
            name=QualifiedName(*deconstruct_clark_notation(element.tag)),
            prefix=element.prefix,
        )

        if element.attrib:
            prefixes = {v: k for k, v in element.nsmap.items() if k is not None}
            prefixes[XML_NAMESPACE] = "xml"
        for name, value in element.attrib.items():
            namespace, local_name = deconstruct_clark_notation(name)
            tree._add_node(
                NodeKind.ATTRIBUTE,
                node,
                name=QualifiedName(namespace, local_name),
                content=value,
                prefix=prefixes.get(namespace) if namespace else None,
            )

        self.add_character_data(node, element.text)
        for child in element:
            self.add_element(child, node)

    def build(self, document: etree._ElementTree) -> Tree:
        document_node = self.tree._add_node(NodeKind.DOCUMENT, None)
        root = document.getroot()
        for element in (
            *reversed(tuple(root.itersiblings(preceding=True))),
            root,
            *root.itersiblings(),
        ):
            self.add_element(element, document_node)
        return self.tree._seal()


def parse_tree(
    source: str | bytes | Path | IO, options: Optional[ParserOptions] = None
) -> Tree:
    """
    Parses an XML document into a :class:`_locpath.tree.Tree`.

    :param source: Either a serialization as :class:`str` or :class:`bytes`, a
                   :class:`pathlib.Path` that points to a file or a readable binary
                   file object.
    :param options: A :class:`ParserOptions` instance to configure the parser.
    """
    if options is None:
        options = ParserOptions()

    if isinstance(source, str):
        # the encoding of an XML declaration would otherwise be in the way
        document = etree.ElementTree(
            etree.fromstring(source.encode("utf-8"), _make_parser(options, "utf-8"))
        )
    elif isinstance(source, bytes):
        document = etree.ElementTree(
            etree.fromstring(source, _make_parser(options, None))
        )
    elif isinstance(source, (Path, IOBase)):
        document = etree.parse(
            str(source) if isinstance(source, Path) else source,
            _make_parser(options, None),
        )
    else:
        raise TypeError(f"Unsupported source type: {type(source)}")

    return tree_from_lxml(document)


def tree_from_lxml(source: etree._Element | etree._ElementTree) -> Tree:
    """
    Builds a :class:`_locpath.tree.Tree` from an :mod:`lxml.etree` document. When an
    element is given, its whole document is mapped. The lxml objects aren't referenced
    afterwards.
    """
    if isinstance(source, etree._Element):
        source = source.getroottree()
    elif not isinstance(source, etree._ElementTree):
        raise TypeError(f"Unsupported source type: {type(source)}")
    return _TreeBuilder().build(source)


__all__ = (
    ParserOptions.__name__,
    parse_tree.__name__,
    tree_from_lxml.__name__,
)
