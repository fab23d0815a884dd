import pytest

from _locpath.exceptions import XPathParsingError
from _locpath.xpath.tokenizer import TokenType, tokenize


@pytest.mark.parametrize(
    ("in_", "out"),
    (
        (
            "starts-with(@foo,'a(b(c)')",
            ["starts-with", "(", "@", "foo", ",", "'a(b(c)'", ")"],
        ),
        (
            './/a[@href and not(starts-with(@href, "https://"))]',
            [
                ".",
                "//",
                "a",
                "[",
                "@",
                "href",
                "and",
                "not",
                "(",
                "starts-with",
                "(",
                "@",
                "href",
                ",",
                '"https://"',
                ")",
                ")",
                "]",
            ],
        ),
        (
            "../preceding-sibling::p:entry[last()-1]",
            [
                "..",
                "/",
                "preceding-sibling",
                "::",
                "p",
                ":",
                "entry",
                "[",
                "last",
                "(",
                ")",
                "-",
                "1",
                "]",
            ],
        ),
        ("a-b - c", ["a-b", "-", "c"]),
        ("1.5 div .5 mod 3.", ["1.5", "div", ".5", "mod", "3."]),
        ("@*|*", ["@", "*", "|", "*"]),
        ("x!=y<=z>=w", ["x", "!=", "y", "<=", "z", ">=", "w"]),
        ("\"it's\"", ["\"it's\""]),
        ("  \n\t", []),
    ),
)
def test_tokenize(in_, out):
    assert [x.string for x in tokenize(in_)] == out


def test_token_types_and_positions():
    tokens = tokenize("child::a[1.5]")
    assert [x.type for x in tokens] == [
        TokenType.NAME,
        TokenType.AXIS_SEPARATOR,
        TokenType.NAME,
        TokenType.OPEN_BRACKET,
        TokenType.NUMBER,
        TokenType.CLOSE_BRACKET,
    ]
    assert [x.position for x in tokens] == [0, 5, 7, 8, 9, 12]


@pytest.mark.parametrize(("in_", "position"), (("*[~lang]", 2), ("a#b", 1)))
def test_unrecognized_token(in_, position):
    with pytest.raises(XPathParsingError, match="Unrecognized token.") as excinfo:
        tokenize(in_)
    assert excinfo.value.position == position
