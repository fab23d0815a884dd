import pytest

from _locpath.exceptions import ErrorKind, PathConstructionError
from locpath import Axis, NodeKind, parse_tree

from tests.utils import element, local_names


@pytest.mark.parametrize(
    ("name", "start_name", "expected_order"),
    (
        ("ancestor", "c", "ba"),
        ("ancestor-or-self", "c", "cba"),
        ("child", "b", "cde"),
        ("descendant", "a", "bcdefghi"),
        ("descendant-or-self", "a", "abcdefghi"),
        ("descendant-or-self", "e", "e"),
        ("following", "b", "fghi"),
        ("following", "c", "defghi"),
        ("following", "i", ""),
        ("following-sibling", "b", "f"),
        ("following-sibling", "c", "de"),
        ("parent", "a", ""),
        ("parent", "d", "b"),
        ("preceding", "i", "hgedcb"),
        ("preceding", "f", "edcb"),
        ("preceding", "c", ""),
        ("preceding-sibling", "f", "b"),
        ("preceding-sibling", "i", "hg"),
        ("self", "a", "a"),
    ),
)
def test_axes_order(axes_tree, name, start_name, expected_order):
    node = element(axes_tree, start_name)
    assert local_names(Axis(name).evaluate(node)) == expected_order


@pytest.mark.parametrize(
    "name",
    (
        "ancestor",
        "ancestor-or-self",
        "preceding",
        "preceding-sibling",
    ),
)
def test_reverse_axes(axes_tree, name):
    axis = Axis(name)
    assert axis.is_reverse
    node = element(axes_tree, "i")
    indexes = [n.document_order_index for n in axis.evaluate(node)]
    assert indexes
    assert indexes == sorted(indexes, reverse=True)
    assert len(set(indexes)) == len(indexes)


@pytest.mark.parametrize(
    "name",
    (
        "attribute",
        "child",
        "descendant",
        "descendant-or-self",
        "following",
        "following-sibling",
        "namespace",
        "parent",
        "self",
    ),
)
def test_forward_axes(axes_tree, name):
    axis = Axis(name)
    assert not axis.is_reverse
    for node in axes_tree:
        indexes = [n.document_order_index for n in axis.evaluate(node)]
        assert indexes == sorted(indexes)


def test_attribute_axis():
    tree = parse_tree('<a x="1" y="2"><b z="3"/>text</a>')
    a = tree.root_element

    attributes = tuple(Axis("attribute").evaluate(a))
    assert [n.local_name for n in attributes] == ["x", "y"]
    assert all(n.kind is NodeKind.ATTRIBUTE for n in attributes)
    assert all(n.parent is a for n in attributes)

    # attributes are no children
    assert local_names(Axis("child").evaluate(a)) == "b"
    assert not tuple(Axis("attribute").evaluate(tree.document))
    assert not tuple(Axis("attribute").evaluate(attributes[0]))


def test_axes_from_attribute():
    tree = parse_tree('<r><p/><a x="1"><b z="3"/>text</a><f/></r>')
    x = element(tree, "a").attribute_nodes[0]

    assert local_names(Axis("parent").evaluate(x)) == "a"
    assert local_names(Axis("ancestor").evaluate(x)) == "ar"
    assert not tuple(Axis("following-sibling").evaluate(x))
    assert not tuple(Axis("preceding-sibling").evaluate(x))

    following = tuple(Axis("following").evaluate(x))
    assert local_names(following) == "bf"
    assert "text" in [n.string_value for n in following if n.kind is NodeKind.TEXT]
    assert all(n.kind is not NodeKind.ATTRIBUTE for n in following)

    assert local_names(Axis("preceding").evaluate(x)) == "p"


def test_axes_from_document(abcd_tree):
    document = abcd_tree.document

    assert not tuple(Axis("parent").evaluate(document))
    assert not tuple(Axis("ancestor").evaluate(document))
    assert not tuple(Axis("following").evaluate(document))
    assert not tuple(Axis("preceding").evaluate(document))
    assert not tuple(Axis("following-sibling").evaluate(document))
    assert local_names(Axis("descendant").evaluate(document)) == "abcd"


def test_following_and_preceding_include_other_kinds():
    tree = parse_tree("<r><a/>one<!--two--><?three?><b/></r>")
    a, b = element(tree, "a"), element(tree, "b")

    assert [n.kind for n in Axis("following").evaluate(a)] == [
        NodeKind.TEXT,
        NodeKind.COMMENT,
        NodeKind.PROCESSING_INSTRUCTION,
        NodeKind.ELEMENT,
    ]
    assert [n.kind for n in Axis("preceding").evaluate(b)] == [
        NodeKind.PROCESSING_INSTRUCTION,
        NodeKind.COMMENT,
        NodeKind.TEXT,
        NodeKind.ELEMENT,
    ]


def test_following_preceding_ancestor_self_partition(axes_tree):
    # these axes partition a tree's nodes, attributes aside
    all_nodes = {id(n) for n in axes_tree if n.kind is not NodeKind.ATTRIBUTE}
    for node in axes_tree:
        partitions = [
            {id(n) for n in Axis(name).evaluate(node)}
            for name in ("ancestor", "descendant", "following", "preceding", "self")
        ]
        assert sum(len(p) for p in partitions) == len(all_nodes)
        assert set().union(*partitions) == all_nodes


def test_invalid_axis():
    with pytest.raises(PathConstructionError) as excinfo:
        Axis("ancestors")
    assert excinfo.value.kind is ErrorKind.INVALID_AXIS
    assert excinfo.value.construct == "ancestors"


def test_namespace_axis_is_empty_on_the_reference_tree():
    tree = parse_tree('<a xmlns="http://a" xmlns:b="http://b"/>')
    assert not tuple(Axis("namespace").evaluate(tree.root_element))
