import json

from mdcheck.checks import FunctionCheck
from mdcheck.edits import find_conflicts
from mdcheck.engine import LintReport
from mdcheck.errors import CheckExecutionError, InvalidEditCoordinates
from mdcheck.models import Edit, Finding
from mdcheck.reporting import format_conflict, format_finding, render_json, render_text


def test_format_finding_includes_detail_and_context():
    finding = Finding(
        rule_ids=("MD001", "heading-increment"),
        message="Heading levels should only increment by one level at a time",
        line=3,
        detail="Expected: h2; Actual: h3",
        context="### B",
    )
    assert format_finding("doc.md", finding) == (
        "doc.md:3 MD001/heading-increment Heading levels should only increment "
        'by one level at a time [Expected: h2; Actual: h3] [Context: "### B"]'
    )


def test_render_text_lists_findings_failures_and_skips():
    report = LintReport(
        source_id="b.md",
        findings=[Finding(rule_ids=("MD009",), message="Trailing spaces", line=1, column=4)],
        failures=[CheckExecutionError("boom", rule_ids=("MD003",), source_id="b.md")],
        skipped=["MD048"],
    )
    empty = LintReport(source_id="a.md")
    assert render_text({"b.md": report, "a.md": empty}).splitlines() == [
        "b.md:1:4 MD009 Trailing spaces",
        "b.md: check MD003 failed: boom",
        "b.md: skipped checks MD048",
    ]


def test_render_json_is_sorted_by_source():
    reports = {name: LintReport(source_id=name) for name in ("z.md", "a.md")}
    payload = json.loads(render_json(reports))
    assert [doc["source_id"] for doc in payload["documents"]] == ["a.md", "z.md"]


def test_format_conflict_names_both_rules():
    check = FunctionCheck(["MD012"], lambda view: [])
    first = Finding(rule_ids=check.names, message="m", line=2, edit=Edit.replace_lines(2, 1))
    second = Finding(
        rule_ids=("MD009",), message="m", line=2, edit=Edit.replace_chars(2, 1, 1)
    )
    (conflict,) = find_conflicts([first, second])
    assert format_conflict("doc.md", conflict) == (
        "doc.md:2 conflicting edits: MD012 (line 2) conflicts with MD009 (line 2)"
    )


def test_dropped_edits_appear_in_text_and_json():
    error = InvalidEditCoordinates(
        Edit.replace_chars(4, 1, 1), "line 4 is outside a 1-line document", rule_ids=("MD009",)
    )
    report = LintReport(source_id="doc.md", invalid_edits=[error])
    assert render_text({"doc.md": report}) == (
        "doc.md:4 dropped MD009 edit: line 4 is outside a 1-line document"
    )
    (document,) = json.loads(render_json({"doc.md": report}))["documents"]
    assert document == report.to_dict()
    assert document["invalid_edits"] == [
        {"rule_ids": ["MD009"], "line": 4, "reason": "line 4 is outside a 1-line document"}
    ]
