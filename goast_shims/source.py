"""
goast_shims/source.py
═════════════════════

Parsed-program front-end: loads Go source files, parses them with
tree-sitter, and groups them into packages.

    ┌──────────────┐   ┌───────────────┐   ┌──────────────┐
    │  .go files   │──▶│ GoSourceFile  │──▶│  GoPackage   │──▶ GoProgram
    │ (paths, ...) │   │ bytes + tree  │   │ dir + clause │
    └──────────────┘   └───────────────┘   └──────────────┘

A package is the set of files sharing a directory *and* a package clause,
so an external test package (``package foo_test``) next to ``package foo``
is a package of its own, exactly as the Go toolchain treats it.

Files with syntax errors are kept: tree-sitter recovers around the error
and the analyses run on whatever it could build.

License: MIT
"""

from __future__ import annotations

import fnmatch
import logging
import os
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple, Union

import tree_sitter_go as tsgo
from tree_sitter import Language, Node, Parser, Tree

from goast_shims.diagnostics import SourceLocation
from goast_shims.errors import ErrorCodes, SourceLoadError

logger = logging.getLogger(__name__)

GO_LANGUAGE = Language(tsgo.language())

# Directory names the go tool skips when expanding "./..."
_SKIPPED_DIR_PREFIXES = (".", "_")
_SKIPPED_DIRS = frozenset({"testdata"})


@dataclass
class GoSourceFile:
    """One parsed Go file."""
    path: str
    source: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def has_errors(self) -> bool:
        return self.root.has_error

    @property
    def package_name(self) -> str:
        for child in self.root.named_children:
            if child.type == "package_clause":
                for sub in child.named_children:
                    if sub.type == "package_identifier":
                        return self.text(sub)
        return ""

    def is_test_file(self, suffix: str = "_test.go") -> bool:
        return self.name.endswith(suffix)

    def text(self, node: Node) -> str:
        """Source text covered by ``node``."""
        return self.source[node.start_byte:node.end_byte].decode(
            "utf-8", errors="replace"
        )

    def location(self, node: Node) -> SourceLocation:
        row, col = node.start_point[0], node.start_point[1]
        return SourceLocation(file=self.path, line=row + 1, column=col + 1)

    def comments(self) -> Iterator[Node]:
        """All comment nodes, in document order."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.type == "comment":
                yield node
                continue
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        return f"<GoSourceFile {self.path!r}>"


@dataclass
class GoPackage:
    """Files in one directory sharing one package clause."""
    directory: str
    name: str
    files: List[GoSourceFile] = field(default_factory=list)

    def test_files(self, suffix: str = "_test.go") -> List[GoSourceFile]:
        return [f for f in self.files if f.is_test_file(suffix)]

    def __repr__(self) -> str:
        return f"<GoPackage {self.name} ({self.directory}, {len(self.files)} files)>"


@dataclass
class GoProgram:
    """The file set presented to an analysis pass."""
    packages: List[GoPackage] = field(default_factory=list)

    @property
    def files(self) -> List[GoSourceFile]:
        return [f for pkg in self.packages for f in pkg.files]


# ═════════════════════════════════════════════════════════════════════════
#  PARSING
# ═════════════════════════════════════════════════════════════════════════

def parse_source(path: str, source: Union[str, bytes]) -> GoSourceFile:
    """Parse in-memory Go source."""
    if isinstance(source, str):
        source = source.encode("utf-8")
    tree = Parser(GO_LANGUAGE).parse(source)
    gofile = GoSourceFile(path=path, source=source, tree=tree)
    if gofile.has_errors:
        logger.warning("%s: syntax errors, analyzing what could be parsed", path)
    return gofile


def parse_file(path: Union[str, Path]) -> GoSourceFile:
    """Read and parse one Go file."""
    p = Path(path)
    try:
        data = p.read_bytes()
    except FileNotFoundError as exc:
        raise SourceLoadError(
            "no such file", code=ErrorCodes.SOURCE_NOT_FOUND, path=str(p), cause=exc
        ) from exc
    except OSError as exc:
        raise SourceLoadError(
            f"cannot read file: {exc.strerror}", path=str(p), cause=exc
        ) from exc
    logger.debug("parsing %s (%d bytes)", p, len(data))
    return parse_source(str(p), data)


def build_program(files: Iterable[GoSourceFile]) -> GoProgram:
    """Group parsed files into packages by (directory, package clause)."""
    groups: "OrderedDict[Tuple[str, str], GoPackage]" = OrderedDict()
    for gofile in files:
        directory = os.path.dirname(gofile.path)
        key = (directory, gofile.package_name)
        pkg = groups.get(key)
        if pkg is None:
            pkg = groups[key] = GoPackage(directory=directory, name=key[1])
        pkg.files.append(gofile)
    return GoProgram(packages=list(groups.values()))


# ═════════════════════════════════════════════════════════════════════════
#  DISCOVERY
# ═════════════════════════════════════════════════════════════════════════

def _is_excluded(path: Path, exclude: Sequence[str]) -> bool:
    text = path.as_posix()
    return any(
        fnmatch.fnmatch(text, pat) or fnmatch.fnmatch(path.name, pat)
        for pat in exclude
    )


def _walk_dir(root: Path, recursive: bool) -> Iterator[Path]:
    if not recursive:
        yield from sorted(p for p in root.glob("*.go") if p.is_file())
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in _SKIPPED_DIRS and not d.startswith(_SKIPPED_DIR_PREFIXES)
        )
        for name in sorted(filenames):
            if name.endswith(".go"):
                yield Path(dirpath) / name


def discover_files(
    paths: Sequence[Union[str, Path]],
    recursive: bool = False,
    exclude: Sequence[str] = (),
) -> List[Path]:
    """
    Expand command-line style arguments into Go file paths.

    A directory contributes its ``*.go`` files; a trailing ``/...``
    (``./...``, ``pkg/...``) walks it recursively, as does ``recursive``.
    """
    found: List[Path] = []
    seen = set()
    for raw in paths:
        raw = str(raw)
        walk = recursive
        if raw == "..." or raw.endswith("/..."):
            walk = True
            raw = raw[:-3].rstrip("/") or "."
        p = Path(raw)
        if not p.exists():
            raise SourceLoadError(
                "no such file or directory", code=ErrorCodes.SOURCE_NOT_FOUND, path=raw
            )
        candidates = _walk_dir(p, walk) if p.is_dir() else iter([p])
        for candidate in candidates:
            if _is_excluded(candidate, exclude):
                logger.debug("excluded %s", candidate)
                continue
            key = candidate.resolve()
            if key in seen:
                continue
            seen.add(key)
            found.append(candidate)
    return found


def load_program(
    paths: Sequence[Union[str, Path]],
    recursive: bool = False,
    exclude: Sequence[str] = (),
) -> GoProgram:
    """Discover, parse and group the Go files named by ``paths``."""
    files = [parse_file(p) for p in discover_files(paths, recursive, exclude)]
    program = build_program(files)
    logger.info(
        "loaded %d file(s) in %d package(s)", len(files), len(program.packages)
    )
    return program


__all__ = [
    "GO_LANGUAGE",
    "GoSourceFile",
    "GoPackage",
    "GoProgram",
    "parse_source",
    "parse_file",
    "build_program",
    "discover_files",
    "load_program",
]
