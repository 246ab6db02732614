# tests/conftest.py
"""
Shared helpers: build packages and oracles from Go snippets, find nodes,
and read ``// want`` annotations from golden files.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
from tree_sitter import Node

from goast_shims.ast_helper import iter_preorder
from goast_shims.golit import unquote
from goast_shims.source import GoPackage, GoSourceFile, build_program, parse_source
from goast_shims.type_oracle import TypeOracle

TESTDATA = Path(__file__).resolve().parent / "testdata"
GOLDEN_PACKAGE = TESTDATA / "src" / "testlintdata" / "testsnake"

_WANT_PREFIX = re.compile(r"^//\s*want\s+")
_GO_STRING = re.compile(r'"(?:[^"\\]|\\.)*"|`[^`]*`')


# ─────────────────────────────────────────────────────────────────────────
#  Building packages
# ─────────────────────────────────────────────────────────────────────────

def go_test_source(body: str, imports: Tuple[str, ...] = ("testing",), package: str = "example") -> str:
    """Wrap top-level declarations in a package clause and imports."""
    lines = [f"package {package}", ""]
    if imports:
        lines.append("import (")
        lines.extend(f"\t{spec}" if " " in spec else f'\t"{spec}"' for spec in imports)
        lines.append(")")
        lines.append("")
    lines.append(body)
    return "\n".join(lines) + "\n"


def make_package(files: Dict[str, str], directory: str = "pkg") -> GoPackage:
    parsed = [parse_source(f"{directory}/{name}", src) for name, src in files.items()]
    program = build_program(parsed)
    assert len(program.packages) == 1, program.packages
    return program.packages[0]


def analyze(
    source: str,
    name: str = "example_test.go",
    extra: Optional[Dict[str, str]] = None,
) -> Tuple[GoSourceFile, TypeOracle]:
    """Parse ``source`` (plus ``extra`` files of the same package) and build the oracle."""
    files = {name: source}
    files.update(extra or {})
    package = make_package(files)
    gofile = next(f for f in package.files if f.name == name)
    return gofile, TypeOracle(package)


# ─────────────────────────────────────────────────────────────────────────
#  Finding nodes
# ─────────────────────────────────────────────────────────────────────────

def find_nodes(gofile: GoSourceFile, node_type: str, text: Optional[str] = None) -> List[Node]:
    return [
        n for n in iter_preorder(gofile.root)
        if n.type == node_type and (text is None or gofile.text(n) == text)
    ]


def ident(gofile: GoSourceFile, name: str, occurrence: int = -1) -> Node:
    """The ``occurrence``-th identifier spelled ``name`` (last by default)."""
    return find_nodes(gofile, "identifier", name)[occurrence]


def run_call_args(gofile: GoSourceFile) -> List[Node]:
    """First argument of every ``*.Run(...)`` call, in document order."""
    args = []
    for call in find_nodes(gofile, "call_expression"):
        fn = call.child_by_field_name("function")
        if fn is not None and fn.type == "selector_expression":
            if gofile.text(fn.child_by_field_name("field")) == "Run":
                arg_list = call.child_by_field_name("arguments")
                args.append([c for c in arg_list.named_children if c.type != "comment"][0])
    return args


# ─────────────────────────────────────────────────────────────────────────
#  Golden files
# ─────────────────────────────────────────────────────────────────────────

def want_annotations(gofile: GoSourceFile) -> Dict[int, List[str]]:
    """``{line: [regexp, ...]}`` from ``// want "..."`` comments."""
    wants: Dict[int, List[str]] = {}
    for comment in gofile.comments():
        text = gofile.text(comment)
        match = _WANT_PREFIX.match(text)
        if not match:
            continue
        patterns = [unquote(lit) for lit in _GO_STRING.findall(text[match.end():])]
        wants.setdefault(comment.start_point[0] + 1, []).extend(patterns)
    return wants


@pytest.fixture
def write_go(tmp_path):
    """Write Go files into a temporary package directory; returns the directory."""
    def _write(files: Dict[str, str], package_dir: str = "pkg") -> Path:
        directory = tmp_path / package_dir
        directory.mkdir(parents=True, exist_ok=True)
        for name, src in files.items():
            (directory / name).write_text(src, encoding="utf-8")
        return directory
    return _write
