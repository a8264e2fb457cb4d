import json
from pathlib import Path

from typer.testing import CliRunner

from mdcheck.cli import app

runner = CliRunner()

CLEAN = "# Title\n\nSome text.\n"


def test_cli_lint_clean_file_exits_zero(tmp_path: Path):
    """lint exits 0 and prints nothing for a clean document."""
    path = tmp_path / "clean.md"
    path.write_text(CLEAN, encoding="utf-8")
    result = runner.invoke(app, ["lint", str(path)])
    assert result.exit_code == 0
    assert result.stdout.strip() == ""


def test_cli_lint_reports_findings(tmp_path: Path):
    """Findings are printed one per line and make lint exit with 1."""
    path = tmp_path / "doc.md"
    path.write_text("# Title\n\nHello   \n", encoding="utf-8")
    result = runner.invoke(app, ["lint", str(path)])
    assert result.exit_code == 1
    assert f"{path}:3:6 MD009/no-trailing-spaces Trailing spaces" in result.stdout


def test_cli_lint_json_output(tmp_path: Path):
    path = tmp_path / "doc.md"
    path.write_text("# A\n\n### B\n", encoding="utf-8")
    result = runner.invoke(app, ["lint", "--format", "json", str(path)])
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    (document,) = payload["documents"]
    assert document["source_id"] == str(path)
    assert [f["rule_ids"][0] for f in document["findings"]] == ["MD001"]
    assert document["findings"][0]["edit"]["text"] == "##"


def test_cli_lint_disable_option(tmp_path: Path):
    path = tmp_path / "doc.md"
    path.write_text("# Title\n\nHello   \n", encoding="utf-8")
    result = runner.invoke(app, ["lint", "--disable", "whitespace", str(path)])
    assert result.exit_code == 0


def test_cli_lint_with_config_file(tmp_path: Path):
    path = tmp_path / "doc.md"
    path.write_text("# Title\n\n" + "word " * 30 + "\n", encoding="utf-8")
    config_path = tmp_path / "mdcheck.yaml"
    config_path.write_text(
        "rules:\n  MD009: false\n  line-length:\n    line_length: 40\n", encoding="utf-8"
    )
    result = runner.invoke(app, ["lint", "--config", str(config_path), str(path)])
    assert result.exit_code == 1
    assert "MD013/line-length" in result.stdout


def test_cli_lint_walks_directories(tmp_path: Path):
    docs = tmp_path / "docs"
    (docs / "nested").mkdir(parents=True)
    (docs / "a.md").write_text(CLEAN, encoding="utf-8")
    (docs / "nested" / "b.markdown").write_text("#Bad\n", encoding="utf-8")
    (docs / "notes.txt").write_text("#Ignored\n", encoding="utf-8")
    result = runner.invoke(app, ["lint", str(docs)])
    assert result.exit_code == 1
    assert "b.markdown:1:1 MD018" in result.stdout
    assert "notes.txt" not in result.stdout


def test_cli_fix_writes_changes(tmp_path: Path):
    path = tmp_path / "doc.md"
    path.write_text("# A\n### B\n", encoding="utf-8")
    result = runner.invoke(app, ["fix", str(path)])
    assert result.exit_code == 0
    assert path.read_text(encoding="utf-8") == "# A\n\n## B\n"
    assert "applied 2 fix(es) in 1 pass(es)" in result.stdout


def test_cli_fix_preserves_crlf(tmp_path: Path):
    path = tmp_path / "doc.md"
    path.write_bytes(b"#Title\r\n")
    result = runner.invoke(app, ["fix", str(path)])
    assert result.exit_code == 0
    assert path.read_bytes() == b"# Title\r\n"


def test_cli_fix_dry_run_leaves_file_untouched(tmp_path: Path):
    path = tmp_path / "doc.md"
    path.write_text("#Title\n", encoding="utf-8")
    result = runner.invoke(app, ["fix", "--dry-run", str(path)])
    assert result.exit_code == 0
    assert "(dry run)" in result.stdout
    assert path.read_text(encoding="utf-8") == "#Title\n"


def test_cli_fix_strict_conflict_exits_one(tmp_path: Path):
    path = tmp_path / "doc.md"
    path.write_text("X\n \n \nY\n", encoding="utf-8")
    result = runner.invoke(app, ["fix", str(path)])
    assert result.exit_code == 1
    assert path.read_text(encoding="utf-8") == "X\n \n \nY\n"

    result = runner.invoke(app, ["fix", "--best-effort", str(path)])
    assert result.exit_code == 0
    assert path.read_text(encoding="utf-8") == "X\n\nY\n"


def test_cli_rules_lists_every_rule():
    result = runner.invoke(app, ["rules"])
    assert result.exit_code == 0
    assert "MD025/single-h1/single-title" in result.stdout
    md013 = next(line for line in result.stdout.splitlines() if line.startswith("MD013"))
    assert "disabled" in md013


def test_cli_print_config():
    """print-config command dumps the default configuration values."""
    result = runner.invoke(app, ["print-config"])
    assert result.exit_code == 0
    assert "fix_passes: 3" in result.stdout
    assert "parallel_checks" in result.stdout


def test_cli_skips_undecodable_file_and_lints_the_rest(tmp_path: Path):
    (tmp_path / "a.md").write_text("# Title\n\nHello   \n", encoding="utf-8")
    (tmp_path / "b.md").write_bytes(b"# B\n\xff\n")
    result = runner.invoke(app, ["lint", str(tmp_path)])
    assert result.exit_code == 1
    assert f"{tmp_path / 'a.md'}:3:6 MD009/no-trailing-spaces" in result.output
    assert f"{tmp_path / 'b.md'}: skipped, not valid UTF-8 at byte 4" in result.output


def test_cli_fix_still_fixes_readable_files(tmp_path: Path):
    good = tmp_path / "a.md"
    good.write_text("#Title\n", encoding="utf-8")
    bad = tmp_path / "b.md"
    bad.write_bytes(b"\xff#Bad\n")
    result = runner.invoke(app, ["fix", str(tmp_path)])
    assert result.exit_code == 1
    assert good.read_text(encoding="utf-8") == "# Title\n"
    assert bad.read_bytes() == b"\xff#Bad\n"
    assert "not valid UTF-8" in result.output


def test_cli_fix_reports_failing_checks(tmp_path: Path):
    path = tmp_path / "doc.md"
    path.write_text("#Title\n", encoding="utf-8")
    config_path = tmp_path / "mdcheck.yaml"
    config_path.write_text("rules:\n  MD003:\n    style: bogus\n", encoding="utf-8")
    result = runner.invoke(app, ["fix", "-c", str(config_path), str(path)])
    assert result.exit_code == 1
    assert path.read_text(encoding="utf-8") == "# Title\n"
    assert f"{path}: check MD003/heading-style failed:" in result.output
