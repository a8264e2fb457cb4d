import random
import threading
import time

from mdcheck.checks import FunctionCheck
from mdcheck.engine import finding_sort_key, run_checks, sort_findings
from mdcheck.errors import CheckExecutionError
from mdcheck.models import Edit, Finding
from mdcheck.registry import ActiveCheck, CheckRegistry
from tests.utils import RaisingCheck, StaticCheck, finding, make_view


def _active(*checks, config=None):
    return [ActiveCheck(check=check, config=dict(config or {})) for check in checks]


def test_failing_check_does_not_stop_the_others():
    view = make_view("text\n")
    good = StaticCheck(["GOOD"], [finding(1, rule="GOOD")])
    bad = RaisingCheck(["BAD", "bad-alias"], RuntimeError("boom"))
    report = run_checks(view, _active(bad, good))
    assert [f.primary_id for f in report.findings] == ["GOOD"]
    (failure,) = report.failures
    assert failure.rule_ids == ("BAD", "bad-alias")
    assert failure.source_id == "doc.md"
    assert "boom" in failure.message
    assert not report.ok


def test_returned_execution_error_is_recorded_as_failure():
    view = make_view("text\n")
    check = StaticCheck(["RET"], CheckExecutionError("bad option"))
    report = run_checks(view, _active(check))
    assert report.findings == []
    (failure,) = report.failures
    assert failure.rule_ids == ("RET",)
    assert failure.source_id == "doc.md"


def test_non_sequence_result_is_a_failure():
    view = make_view("text\n")
    report = run_checks(view, _active(StaticCheck(["ODD"], "not findings")))
    (failure,) = report.failures
    assert "instead of a sequence" in failure.message


def test_findings_without_rule_ids_get_the_check_names():
    view = make_view("text\n")
    bare = Finding(rule_ids=(), message="m", line=1)
    report = run_checks(view, _active(StaticCheck(["MDX", "alias"], [bare])))
    assert report.findings[0].rule_ids == ("MDX", "alias")


def test_findings_are_sorted_by_line_then_column_then_rule():
    view = make_view("a\nb\nc\n")
    first = StaticCheck(["B"], [finding(2, 3, rule="B"), finding(1, rule="B")])
    second = StaticCheck(["A"], [finding(2, 3, rule="A"), finding(2, rule="A")])
    report = run_checks(view, _active(first, second))
    assert [(f.line, f.column, f.primary_id) for f in report.findings] == [
        (1, None, "B"),
        (2, None, "A"),
        (2, 3, "A"),
        (2, 3, "B"),
    ]


def test_sort_order_is_independent_of_input_order():
    findings = [
        finding(1, rule="A", message="x"),
        finding(1, rule="A", message="y"),
        finding(1, 1, rule="A", length=2),
        finding(1, 1, rule="A", length=1),
        finding(1, 1, rule="A", detail="d"),
        finding(3, 2, rule="C"),
    ]
    expected = sort_findings(findings)
    rng = random.Random(7)
    for _ in range(20):
        shuffled = findings[:]
        rng.shuffle(shuffled)
        assert sort_findings(shuffled) == expected
    assert finding_sort_key(expected[0]) < finding_sort_key(expected[-1])


def test_duplicate_findings_from_different_checks_are_kept():
    view = make_view("a\n")
    one = StaticCheck(["A"], [finding(1, rule="SAME")])
    two = StaticCheck(["B"], [finding(1, rule="SAME")])
    report = run_checks(view, _active(one, two))
    assert len(report.findings) == 2


def test_parallel_run_matches_sequential_run():
    view = make_view("a\nb\nc\nd\n")

    def slow(line):
        def produce(view):
            time.sleep(0.01 * (5 - line))
            return [finding(line, rule=f"R{line}")]

        return produce

    checks = [StaticCheck([f"R{line}"], slow(line)) for line in range(1, 5)]
    checks.append(RaisingCheck(["BOOM"], ValueError("x")))
    sequential = run_checks(view, _active(*checks))
    parallel = run_checks(view, _active(*checks), max_workers=4)
    assert parallel.findings == sequential.findings
    assert [f.rule_ids for f in parallel.failures] == [f.rule_ids for f in sequential.failures]


def test_cancellation_skips_remaining_checks():
    view = make_view("a\n")
    cancel = threading.Event()

    def cancel_after(view):
        cancel.set()
        return [finding(1, rule="FIRST")]

    first = StaticCheck(["FIRST"], cancel_after)
    second = StaticCheck(["SECOND"], [finding(1, rule="SECOND")])
    report = run_checks(view, _active(first, second), cancel_event=cancel)
    assert [f.primary_id for f in report.findings] == ["FIRST"]
    assert report.skipped == ["SECOND"]
    assert not report.complete
    assert second.seen == []


def test_preset_cancel_runs_nothing():
    view = make_view("a\n")
    cancel = threading.Event()
    cancel.set()
    check = StaticCheck(["ONLY"], [finding(1)])
    report = run_checks(view, _active(check), cancel_event=cancel)
    assert report.findings == []
    assert report.skipped == ["ONLY"]


def test_expired_deadline_skips_checks():
    view = make_view("a\n")
    check = StaticCheck(["ONLY"], [finding(1)])
    report = run_checks(view, _active(check), deadline=time.monotonic() - 1)
    assert report.skipped == ["ONLY"]
    assert check.seen == []


def test_out_of_range_edit_is_dropped_but_finding_kept():
    view = make_view("abc\n")
    bad = finding(1, rule="BAD", edit=Edit.replace_chars(1, 9, 1))
    report = run_checks(view, _active(StaticCheck(["BAD"], [bad])))
    (kept,) = report.findings
    assert kept.edit is None
    (error,) = report.invalid_edits
    assert error.rule_ids == ("BAD",)
    assert report.failures == []


def test_checks_see_their_own_config_over_shared_content():
    view = make_view("# Title\n")
    one = StaticCheck(["ONE"])
    two = StaticCheck(["TWO"])
    active = [
        ActiveCheck(check=one, config={"limit": 1}),
        ActiveCheck(check=two, config={"limit": 2}),
    ]
    run_checks(view, active, max_workers=2)
    (seen_one,) = one.seen
    (seen_two,) = two.seen
    assert seen_one.option("limit") == 1
    assert seen_two.option("limit") == 2
    assert seen_one.lines is seen_two.lines is view.lines
    assert seen_one.tokens is seen_two.tokens is view.tokens


def test_report_serialization():
    registry = CheckRegistry()
    registry.register(StaticCheck(["A"], [finding(1, rule="A")]))
    view = make_view("x\n")
    report = run_checks(view, registry.resolve())
    payload = report.to_dict()
    assert payload["source_id"] == "doc.md"
    assert payload["findings"][0]["rule_ids"] == ["A"]
    assert payload["failures"] == []
    assert payload["skipped"] == []
    assert report.fixable() == []


def test_function_check_runs_like_any_other_check():
    def long_lines(view):
        return [
            Finding(rule_ids=(), message="too long", line=number)
            for number, text in view.numbered_lines()
            if len(text) > view.option("limit", 3)
        ]

    check = FunctionCheck(["CUSTOM", "custom-length"], long_lines, default_config={"limit": 3})
    registry = CheckRegistry()
    registry.register(check)
    report = run_checks(make_view("abc\nabcdef\n"), registry.resolve())
    (reported,) = report.findings
    assert reported.line == 2
    assert reported.rule_ids == ("CUSTOM", "custom-length")
