import pytest

from _locpath.names import (
    GLOBAL_PREFIXES,
    XML_NAMESPACE,
    Namespaces,
    deconstruct_clark_notation,
)


@pytest.mark.parametrize(
    ("in_", "out"),
    (
        ("a", ("", "a")),
        ("{http://clark}a", ("http://clark", "a")),
    ),
)
def test_deconstruct_clark_notation(in_, out):
    assert deconstruct_clark_notation(in_) == out


@pytest.mark.parametrize(
    "data",
    (
        {"xml": "foo"},
        {"foo": XML_NAMESPACE},
        {"": "http://a.org", None: "http://b.net"},
    ),
)
def test_invalid_namespace_declarations(data):
    with pytest.raises(ValueError):  # noqa: PT011
        Namespaces(data)


def test_invalid_namespace_type():
    with pytest.raises(TypeError):
        Namespaces(("foo", "http://foo"))


@pytest.mark.parametrize("prefix", (None, ""))
def test_default_namespace(prefix):
    namespaces = Namespaces({prefix: "http://default"})
    assert namespaces.default_namespace == "http://default"
    assert namespaces[""] == "http://default"
    assert None not in namespaces

    assert Namespaces({}).default_namespace is None


def test_namespaces():
    namespaces = Namespaces({"a": "http://a.org/", "xml": XML_NAMESPACE})

    assert len(namespaces) == 3
    assert set(GLOBAL_PREFIXES) < set(namespaces)
    assert namespaces["a"] == "http://a.org/"
    assert "a" in namespaces
    assert str(namespaces)

    assert Namespaces(namespaces) == namespaces
    assert hash(Namespaces({"a": "http://a.org/"})) == hash(namespaces)
    assert hash(Namespaces({"a": "http://b.org/"})) != hash(namespaces)
