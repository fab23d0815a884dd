import pytest

# keep this before imports from locpath!
from tests import plugins  # noqa: F401

from locpath import ParserOptions, parse_tree


@pytest.fixture
def abcd_tree():
    return parse_tree("<a><b/><c><d/></c></a>")


@pytest.fixture
def axes_tree():
    # whitespace between the elements is dropped in order to keep the expected
    # sequences legible
    return parse_tree(
        """\
        <a>
            <b>
                <c/>
                <d/>
                <e/>
            </b>
            <f>
                <g/>
                <h/>
                <i/>
            </f>
        </a>
        """.strip(),
        options=ParserOptions(remove_blank_text=True),
    )


@pytest.fixture
def queries_sample():
    return parse_tree(
        """\
            <root>
                <node n="1"/>
                <node n="2"/>
                <node/>
                <node n="3"/>
            </root>
        """.strip(),
        options=ParserOptions(remove_blank_text=True),
    )


@pytest.fixture
def sample_tree():
    return parse_tree(
        '<doc xmlns="https://name.space">'
        "<header/>"
        "<text>"
        '<milestone unit="page"/>'
        "<p>Lorem ipsum"
        '<milestone unit="line"/>'
        "dolor sit amet"
        "</p>"
        "</text>"
        "</doc>"
    )
