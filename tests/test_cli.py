# tests/test_cli.py
"""
Tests for the ``testsnake`` command line: sub-commands, output formats,
and exit codes.
"""

import json

import pytest

from testsnake import __version__
from testsnake.main import EXIT_FINDINGS, EXIT_INFRA, EXIT_OK, main
from tests.conftest import GOLDEN_PACKAGE

GOLDEN = str(GOLDEN_PACKAGE)

CLEAN_TEST = (
    "package clean\n\n"
    'import "testing"\n\n'
    "func TestClean(t *testing.T) {\n"
    '\tt.Run("all_good", func(t *testing.T) {})\n'
    "}\n"
)

BAD_TEST = CLEAN_TEST.replace('"all_good"', '"NotGood"')


class TestCheck:

    def test_findings_exit_code(self, capsys):
        assert main(["check", GOLDEN]) == EXIT_FINDINGS
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 16
        assert all(line.startswith(GOLDEN) for line in lines)
        assert 'test name "AddPositiveNumbers" should use snake_case' in lines[0]

    def test_clean_package(self, write_go, capsys):
        directory = write_go({"clean_test.go": CLEAN_TEST})
        assert main(["check", str(directory)]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_json_format(self, capsys):
        assert main(["check", GOLDEN, "--format", "json"]) == EXIT_FINDINGS
        records = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert len(records) == 16
        assert {r["errorId"] for r in records} == {"testsnake"}

    def test_summary_format(self, capsys):
        assert main(["check", GOLDEN, "-f", "summary"]) == EXIT_FINDINGS
        out = capsys.readouterr().out
        assert "Checker run complete: 16 finding(s) in 2 file(s)" in out

    def test_no_nolint(self, capsys):
        assert main(["check", GOLDEN, "--no-nolint"]) == EXIT_FINDINGS
        assert len(capsys.readouterr().out.splitlines()) == 18

    def test_exclude(self, write_go, capsys):
        directory = write_go({"bad_test.go": BAD_TEST})
        assert main(["check", str(directory), "--exclude", "bad_test.go"]) == EXIT_OK
        err = capsys.readouterr().err
        assert "no Go files found" in err

    def test_recursive(self, write_go, capsys):
        root = write_go({"bad_test.go": BAD_TEST}, package_dir="root/nested")
        top = root.parent
        assert main(["check", str(top)]) == EXIT_OK
        assert main(["check", f"{top}/..."]) == EXIT_FINDINGS
        assert main(["check", "-r", str(top)]) == EXIT_FINDINGS

    def test_output_file(self, tmp_path, capsys):
        dest = tmp_path / "out" / "findings.txt"
        assert main(["check", GOLDEN, "-o", str(dest)]) == EXIT_FINDINGS
        assert capsys.readouterr().out == ""
        assert len(dest.read_text(encoding="utf-8").splitlines()) == 16

    def test_select_checker(self, capsys):
        assert main(["check", GOLDEN, "--checkers", "testsnake"]) == EXIT_FINDINGS


class TestCheckFailures:

    def test_missing_path(self, tmp_path, capsys):
        assert main(["check", str(tmp_path / "nowhere")]) == EXIT_INFRA
        assert "no such file or directory" in capsys.readouterr().err

    def test_unknown_checker(self, capsys):
        assert main(["check", GOLDEN, "--checkers", "nope"]) == EXIT_INFRA
        assert "unknown checker 'nope'" in capsys.readouterr().err

    def test_bad_suffix(self, capsys):
        assert main(["check", GOLDEN, "--test-suffix", "_test.txt"]) == EXIT_INFRA
        assert "must end in .go" in capsys.readouterr().err

    def test_bad_format_rejected_by_parser(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["check", GOLDEN, "--format", "xml"])
        assert info.value.code == 2


class TestNames:

    def test_lists_every_resolved_call(self, capsys):
        assert main(["names", GOLDEN]) == EXIT_OK
        out = capsys.readouterr().out.splitlines()
        assert any('"add_positive_numbers"' in line and line.endswith("[ok]") for line in out)
        assert any('"SlowPath"' in line and line.endswith("[bad]") for line in out)
        assert any('"SuppressedInline"' in line for line in out)
        assert any(line.endswith("<unresolved>") for line in out)
        assert not any("ThisIsNotATest" in line for line in out)

    def test_row_location_differs_from_call(self, capsys):
        main(["names", GOLDEN])
        out = capsys.readouterr().out.splitlines()
        line = next(l for l in out if '"PositionalBad"' in l)
        call_at, _, rest = line.partition(": ")
        assert call_at.endswith(":152:3")
        assert ":150:4 [bad]" in rest


class TestMisc:

    def test_checkers_listing(self, capsys):
        assert main(["checkers"]) == EXIT_OK
        out = capsys.readouterr().out
        assert out.startswith("testsnake")
        assert "[testsnake]" in out
        assert "snake_case" in out

    def test_no_command(self, capsys):
        assert main([]) == EXIT_INFRA
        assert "usage:" in capsys.readouterr().err

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--version"])
        assert info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_verbose_logging(self, capsys):
        main(["-vv", "check", GOLDEN])
        assert "loaded 2 file(s) in 1 package(s)" in capsys.readouterr().err
