from dataclasses import FrozenInstanceError

import pytest

from mdcheck.models import Edit, EditKind, Finding, Position, Range, split_text
from tests.utils import make_view


def test_finding_rejects_invalid_coordinates():
    """Line, column and length bounds are enforced at construction."""
    with pytest.raises(ValueError):
        Finding(rule_ids=("MD001",), message="m", line=0)
    with pytest.raises(ValueError):
        Finding(rule_ids=("MD001",), message="m", line=1, column=0)
    with pytest.raises(ValueError):
        Finding(rule_ids=("MD001",), message="m", line=1, length=-1)


def test_finding_coerces_rule_ids_and_serializes_all_fields():
    finding = Finding(
        rule_ids=["MD009", "no-trailing-spaces"],  # type: ignore[arg-type]
        message="Trailing spaces",
        line=3,
        column=6,
        length=3,
        range=Range(Position(3, 6), Position(3, 9)),
        edit=Edit.replace_chars(3, 6, 3),
    )
    assert finding.rule_ids == ("MD009", "no-trailing-spaces")
    assert finding.primary_id == "MD009"
    assert finding.fixable
    payload = finding.to_dict()
    assert set(payload) == {
        "rule_ids",
        "message",
        "line",
        "column",
        "length",
        "range",
        "detail",
        "context",
        "edit",
    }
    assert payload["range"] == {
        "start": {"line": 3, "column": 6},
        "end": {"line": 3, "column": 9},
    }
    assert payload["edit"]["delete_length"] == 3
    assert not finding.without_edit().fixable


def test_edit_constructors_validate_kind():
    """Character edits need a column; line edits must not carry one."""
    with pytest.raises(ValueError):
        Edit(kind=EditKind.CHARACTERS, line=1)
    with pytest.raises(ValueError):
        Edit(kind=EditKind.LINES, line=1, column=2)
    assert Edit.replace_lines(2, 1).is_line_edit
    assert not Edit.replace_chars(2, 1).is_line_edit


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", []),
        ("\n", [""]),
        ("a", ["a"]),
        ("a\n", ["a"]),
        ("a\nb", ["a", "b"]),
        ("\n\n", ["", ""]),
    ],
)
def test_inserted_lines(text, expected):
    assert Edit.replace_lines(1, 0, text).inserted_lines() == expected


def test_split_text_remembers_newline_style():
    layout = split_text("a\r\nb\r\n")
    assert layout.lines == ("a", "b")
    assert layout.newline == "\r\n"
    assert layout.final_newline
    assert layout.join(["a", "c"]) == "a\r\nc\r\n"

    bare = split_text("x\ny")
    assert bare.lines == ("x", "y")
    assert not bare.final_newline
    assert bare.join(bare.lines) == "x\ny"

    assert split_text("").lines == ()


def test_document_view_is_immutable():
    view = make_view("# Title\n")
    with pytest.raises(FrozenInstanceError):
        view.lines = ()  # type: ignore[misc]
    scoped = view.with_config({"style": "atx"})
    with pytest.raises(TypeError):
        scoped.config["style"] = "setext"  # type: ignore[index]


def test_with_config_shares_lines_and_tokens():
    view = make_view("# Title\n\ntext\n")
    scoped = view.with_config({"maximum": 2})
    assert scoped.lines is view.lines
    assert scoped.tokens is view.tokens
    assert scoped.option("maximum") == 2
    assert view.option("maximum") is None


def test_document_view_line_access():
    view = make_view("---\ntitle: x\n---\nbody\n")
    assert view.line_count == 4
    assert view.line(4) == "body"
    assert view.content_start == 4
    assert view.numbered_lines() == [(4, "body")]
    with pytest.raises(IndexError):
        view.line(5)
