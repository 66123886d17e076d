from __future__ import annotations

import pytest

from graft.runner import build_arg_parser, main

TARGET = """
switch (name) {
  case "a":
    count = 1;
    break;
  case "b":
    count = 2;
    break;
}
"""

DONOR = """
String s = get();
if (s == null) {
  return;
}
"""


def test_main_prints_guard_patch(java_file, capsys) -> None:
    source = java_file("Target.java", TARGET)
    donor = java_file("Donor.java", DONOR)

    code = main([str(source), "-l", "1-8", "-s", "name:String", "-s", "count:int", "-d", str(donor)])

    out = capsys.readouterr().out
    assert code == 0
    assert "# patch 1:" in out
    assert f"--- a/{source}" in out
    assert "+if (name == null) {" in out


def test_main_reads_locations_file(java_file, capsys) -> None:
    source = java_file("Target.java", TARGET)
    donor = java_file("Donor.java", DONOR)
    locations = java_file("suspicious.txt", f"# ranked\n{source}:1-8,0.7\n")

    code = main([str(source), "--locations", str(locations), "-s", "name:String", "-d", str(donor)])

    assert code == 0
    assert "+if (name == null) {" in capsys.readouterr().out


def test_tree_option_prints_lowered_tree(java_file, capsys) -> None:
    source = java_file("Target.java", "x = a + 1;")

    assert main([str(source), "--tree"]) == 0

    out = capsys.readouterr().out
    assert "infix operator='+'" in out


def test_no_selected_statement(java_file, capsys) -> None:
    source = java_file("Target.java", "x = 1;")

    assert main([str(source), "-l", "40"]) == 1
    assert "No suspicious statement selected" in capsys.readouterr().err


def test_no_patch_found(java_file, capsys) -> None:
    source = java_file("Target.java", "x = 1;")

    assert main([str(source), "-l", "1", "-s", "x:int"]) == 1
    assert "No patch found" in capsys.readouterr().err


@pytest.mark.parametrize(
    "argv_tail, message",
    [
        pytest.param(["-l", "x"], "Malformed location", id="bad-line"),
        pytest.param(["--max-patches", "0"], "max_patches", id="bad-limit"),
    ],
)
def test_errors_are_reported(java_file, capsys, argv_tail, message: str) -> None:
    source = java_file("Target.java", "x = 1;")

    assert main([str(source), *argv_tail]) == 1
    assert message in capsys.readouterr().err


def test_missing_source_file(tmp_path, capsys) -> None:
    assert main([str(tmp_path / "Missing.java"), "-l", "1"]) == 1
    assert "Missing.java" in capsys.readouterr().err


def test_syntax_error_is_reported(java_file, capsys) -> None:
    source = java_file("Broken.java", "if (x { y(); }")

    assert main([str(source), "-l", "1"]) == 1
    assert "Syntax error" in capsys.readouterr().err


def test_scope_entries_must_name_a_type() -> None:
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args(["Target.java", "-s", "count"])

    args = build_arg_parser().parse_args(["Target.java", "-s", "count : int"])
    assert args.scope == [("count", "int")]
