import pytest

from locpath import (
    AnyAttributeTest,
    AnyElementTest,
    AnyNodeTest,
    AnyValue,
    Axis,
    CommentTest,
    ComparisonOperator,
    ErrorKind,
    Function,
    LocationPath,
    LocationStep,
    NamedAttributeTest,
    NamedElementTest,
    NodeKind,
    PathConstructionError,
    PathValue,
    ProcessingInstructionTest,
    TextTest,
    XPathExpression,
    evaluate,
    parse_tree,
)
from _locpath.xpath.ast import COMPARISON_OPERATORS

from tests.utils import element, local_names


def child(name):
    return LocationStep(Axis("child"), NamedElementTest("", name))


def step(axis, node_test=None, *predicates):
    return LocationStep(Axis(axis), node_test or AnyNodeTest(), predicates)


# construction


@pytest.mark.parametrize(
    ("axis", "node_test"),
    (
        ("attribute", AnyElementTest()),
        ("attribute", NamedElementTest("", "a")),
        ("attribute", TextTest()),
        ("attribute", CommentTest()),
        ("attribute", ProcessingInstructionTest()),
        ("namespace", AnyElementTest()),
        ("namespace", TextTest()),
        ("namespace", CommentTest()),
        ("namespace", ProcessingInstructionTest("xml-stylesheet")),
        ("child", AnyAttributeTest()),
        ("descendant", NamedAttributeTest("", "a")),
        ("self", AnyAttributeTest()),
    ),
)
def test_axis_and_test_mismatch(axis, node_test):
    with pytest.raises(PathConstructionError) as excinfo:
        LocationStep(Axis(axis), node_test)
    assert excinfo.value.kind is ErrorKind.AXIS_TEST_MISMATCH
    assert excinfo.value.construct == node_test


@pytest.mark.parametrize("axis", ("attribute", "child", "namespace", "self"))
def test_any_node_test_on_all_axes(axis):
    LocationStep(Axis(axis), AnyNodeTest())


def test_empty_relative_path():
    with pytest.raises(PathConstructionError) as excinfo:
        LocationPath([])
    assert excinfo.value.kind is ErrorKind.EMPTY_RELATIVE_PATH


def test_function_construction_errors():
    with pytest.raises(PathConstructionError) as excinfo:
        Function("no-such-function", ())
    assert excinfo.value.kind is ErrorKind.UNKNOWN_FUNCTION

    with pytest.raises(PathConstructionError) as excinfo:
        Function("count", ())
    assert excinfo.value.kind is ErrorKind.FUNCTION_SIGNATURE_MISMATCH

    with pytest.raises(PathConstructionError) as excinfo:
        Function("position", (AnyValue(1),))
    assert excinfo.value.kind is ErrorKind.FUNCTION_SIGNATURE_MISMATCH

    Function("concat", (AnyValue("a"), AnyValue("b"), AnyValue("c"), AnyValue("d")))


# evaluation


def test_root_path(abcd_tree):
    for node in abcd_tree:
        result = evaluate(LocationPath([], absolute=True), node)
        assert result.as_tuple == (abcd_tree.document,)


def test_scenario_absolute_child_path(abcd_tree):
    path = LocationPath([child("a"), child("c"), child("d")], absolute=True)
    result = evaluate(path, abcd_tree.document)
    assert local_names(result) == "d"


def test_scenario_any_element_children(abcd_tree):
    path = LocationPath([step("child", AnyElementTest())])
    assert local_names(evaluate(path, element(abcd_tree, "a"))) == "bc"


def test_scenario_position_on_descendants(abcd_tree):
    path = LocationPath(
        [
            step(
                "descendant",
                AnyElementTest(),
                ComparisonOperator(
                    COMPARISON_OPERATORS["="], Function("position", ()), AnyValue(2)
                ),
            )
        ]
    )
    assert local_names(evaluate(path, element(abcd_tree, "a"))) == "c"


def test_scenario_ancestors_are_returned_in_document_order(abcd_tree):
    path = LocationPath([step("ancestor", AnyElementTest())])
    assert local_names(evaluate(path, element(abcd_tree, "d"))) == "ac"


def test_numeric_predicate_is_a_position(abcd_tree):
    d = element(abcd_tree, "d")
    # nearest first on a reverse axis
    path = LocationPath([step("ancestor", AnyElementTest(), AnyValue(1))])
    assert local_names(evaluate(path, d)) == "c"
    path = LocationPath([step("ancestor", AnyElementTest(), AnyValue(2))])
    assert local_names(evaluate(path, d)) == "a"
    path = LocationPath([step("ancestor", AnyElementTest(), AnyValue(3))])
    assert not evaluate(path, d)


def test_predicate_positions_are_per_context_node():
    tree = parse_tree("<r><s><a/><a/></s><s><a/><a/><a/></s></r>")
    path = LocationPath([step("descendant", NamedElementTest("", "a"), AnyValue(1))])
    # positions start anew for each context node
    result = evaluate(
        LocationPath([step("child", NamedElementTest("", "s")), child("a")]),
        tree.root_element,
    )
    assert result.size == 5

    result = evaluate(
        LocationPath(
            [step("child", NamedElementTest("", "s")), step("child", None, AnyValue(1))]
        ),
        tree.root_element,
    )
    assert result.size == 2
    assert result.first is tree.root_element.child_nodes[0].child_nodes[0]

    assert evaluate(path, tree.root_element).size == 1


def test_predicates_are_applied_in_sequence():
    tree = parse_tree("<r><a x=''/><a/><a x=''/><a x=''/></r>")
    has_x = LocationPath([LocationStep(Axis("attribute"), NamedAttributeTest("", "x"))])

    path = LocationPath(
        [step("child", AnyElementTest(), PathValue((has_x,)), AnyValue(2))]
    )
    result = evaluate(path, tree.root_element)
    assert result.size == 1
    assert result.first is tree.root_element.child_nodes[2]

    path = LocationPath(
        [step("child", AnyElementTest(), AnyValue(2), PathValue((has_x,)))]
    )
    assert not evaluate(path, tree.root_element)


def test_empty_intermediate_results(abcd_tree):
    path = LocationPath([child("x"), child("y")])
    assert evaluate(path, element(abcd_tree, "a")).size == 0


# properties


def test_absolute_paths_are_independent_of_context(axes_tree):
    path = LocationPath(
        [step("descendant", AnyElementTest()), step("following-sibling")],
        absolute=True,
    )
    expected = evaluate(path, axes_tree.document)
    assert expected
    for node in axes_tree:
        assert evaluate(path, node) == expected
        assert evaluate(path, node).as_tuple == expected.as_tuple


def test_self_axis(axes_tree):
    path = LocationPath([step("self")])
    for node in axes_tree:
        assert evaluate(path, node).as_tuple == (node,)


def test_parent_of_root_is_empty(axes_tree):
    assert not evaluate(LocationPath([step("parent")]), axes_tree.document)


def test_descendant_or_self_is_self_and_descendants(axes_tree):
    descendant_or_self = LocationPath([step("descendant-or-self")])
    union = XPathExpression(
        (LocationPath([step("self")]), LocationPath([step("descendant")]))
    )
    for node in axes_tree:
        result = evaluate(descendant_or_self, node).as_tuple
        assert result == evaluate(union, node).as_tuple
        assert result[0] is node
        assert len({id(n) for n in result}) == len(result)


@pytest.mark.parametrize(
    "axis",
    (
        "ancestor",
        "ancestor-or-self",
        "child",
        "descendant",
        "following",
        "following-sibling",
        "preceding",
        "preceding-sibling",
    ),
)
def test_results_are_in_ascending_document_order(axes_tree, axis):
    path = LocationPath([step(axis)])
    for node in axes_tree:
        indexes = [n.document_order_index for n in evaluate(path, node)]
        assert indexes == sorted(set(indexes))


def test_idempotence(axes_tree):
    path = LocationPath(
        [step("descendant-or-self"), step("child", AnyElementTest(), AnyValue(1))],
        absolute=True,
    )
    first = evaluate(path, axes_tree.document).as_tuple
    for _ in range(3):
        assert evaluate(path, axes_tree.document).as_tuple == first


def test_nested_descendant_steps_yield_no_duplicates():
    tree = parse_tree("<r><a><a><b/></a><b/></a><a><b/></a></r>")
    path = LocationPath(
        [
            step("descendant-or-self"),
            step("child", NamedElementTest("", "a")),
            step("descendant", NamedElementTest("", "b")),
        ],
        absolute=True,
    )
    result = evaluate(path, tree.document)
    assert result.size == 3
    assert all(n.kind is NodeKind.ELEMENT for n in result)
    assert len({id(n) for n in result}) == 3


def test_union_of_paths(abcd_tree):
    expression = XPathExpression(
        (
            LocationPath([step("descendant", NamedElementTest("", "d"))]),
            LocationPath([child("b")]),
            LocationPath([step("descendant", NamedElementTest("", "b"))]),
        )
    )
    assert local_names(evaluate(expression, element(abcd_tree, "a"))) == "bd"
