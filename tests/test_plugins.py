import pytest

from _locpath import plugins
from _locpath.plugins import plugin_manager
from locpath import AnyValue, Function, parse_tree, select


@pytest.fixture
def restored_functions():
    backup = plugin_manager.xpath_functions.copy()
    yield plugin_manager
    plugin_manager.xpath_functions.clear()
    plugin_manager.xpath_functions.update(backup)


def test_registered_functions():
    tree = parse_tree("<root><node/><node foo='BAR'/></root>")
    results = select(tree.document, "//*[is-last() and lowercase(@foo)='bar']")
    assert results.size == 1
    assert results.first is tree.root_element.child_nodes[1]


def test_invalid_registration(restored_functions):
    with pytest.raises(TypeError):
        restored_functions.register_xpath_function(0)


def test_redefinition(restored_functions):
    with pytest.warns(UserWarning, match="`lowercase` is redefined"):

        @restored_functions.register_xpath_function
        def lowercase(_, value) -> str:
            return "bar"

    tree = parse_tree("<root><node foo='FOO'/></root>")
    assert select(tree.document, "//node[lowercase(@foo)='bar']").size == 1
    # the replacement ignores its argument, hence the root element matches too
    assert select(tree.document, "//*[lowercase(@foo)='bar']").size == 2


def test_registration_by_name(restored_functions):
    @restored_functions.register_xpath_function("ends-with")
    def _(_, value, suffix) -> bool:
        return value.endswith(suffix)

    tree = parse_tree("<root><a/><b/></root>")
    results = select(tree.root_element, "*[ends-with(local-name(), 'b')]")
    assert results.size == 1
    assert results.first.local_name == "b"


def test_function_identity(restored_functions):
    def _first(_, *values):
        return values[0]

    restored_functions.register_xpath_function("first-of")(_first)
    restored_functions.register_xpath_function("head")(_first)

    first_of = Function("first-of", (AnyValue(1),))
    head = Function("head", (AnyValue(1),))
    assert first_of == head
    assert hash(first_of) == hash(head)
    assert first_of != Function("concat", (AnyValue(1), AnyValue(1)))


def test_load_plugins(monkeypatch):
    loaded = []

    class EntryPoint:
        def load(self):
            loaded.append(self)

    entry_point = EntryPoint()

    class EntryPoints:
        def select(self, group):
            return (entry_point,) if group == "locpath" else ()

    monkeypatch.setattr(plugins, "entry_points", EntryPoints)
    plugin_manager.load_plugins()
    assert loaded == [entry_point]
