# tests/test_resolver.py
"""
Tests for resolving a sub-test name argument to its compile-time value.
"""

import pytest

from testsnake.resolver import UNRESOLVED, Resolved, Unresolved, resolve
from tests.conftest import analyze, go_test_source, run_call_args


def _resolve_all(body, imports=("testing",), extra=None):
    """Resolve the name argument of every ``Run`` call in ``body``."""
    gofile, oracle = analyze(go_test_source(body, imports=imports), extra=extra)
    return [resolve(arg, gofile, oracle) for arg in run_call_args(gofile)]


def _test_func(*statements):
    return "func TestX(t *testing.T) {\n" + "".join(f"\t{s}\n" for s in statements) + "}"


class TestUnresolvedSingleton:

    def test_single_instance(self):
        assert Unresolved() is UNRESOLVED
        assert repr(UNRESOLVED) == "UNRESOLVED"
        assert not UNRESOLVED.resolved

    def test_resolved_flag(self):
        gofile, oracle = analyze(go_test_source(_test_func('t.Run("a", nil)')))
        value = resolve(run_call_args(gofile)[0], gofile, oracle)
        assert value.resolved
        assert isinstance(value, Resolved)


class TestLiterals:

    def test_interpreted(self):
        value, = _resolve_all(_test_func('t.Run("my_case", nil)'))
        assert value.text == "my_case"
        assert (value.location.line, value.location.column) == (8, 8)

    def test_raw(self):
        value, = _resolve_all(_test_func("t.Run(`raw name`, nil)"))
        assert value.text == "raw name"

    def test_escapes_are_decoded(self):
        value, = _resolve_all(_test_func(r't.Run("tab\there", nil)'))
        assert value.text == "tab\there"

    def test_parenthesized(self):
        value, = _resolve_all(_test_func('t.Run(("wrapped"), nil)'))
        assert value.text == "wrapped"
        assert value.location.column == 8

    def test_concatenated_literals(self):
        value, = _resolve_all(_test_func('t.Run("left" + "Right", nil)'))
        assert value.text == "leftRight"


class TestIdentifiers:

    def test_package_constant(self):
        value, = _resolve_all(
            'const caseName = "FromConst"\n\n' + _test_func("t.Run(caseName, nil)")
        )
        assert value.text == "FromConst"
        # reported at the argument, not at the declaration
        assert value.location.line == 10

    def test_local_constant(self):
        value, = _resolve_all(_test_func('const c = "local"', "t.Run(c, nil)"))
        assert value.text == "local"

    def test_constant_in_other_file(self):
        value, = _resolve_all(
            _test_func("t.Run(shared, nil)"),
            extra={"helpers.go": 'package example\n\nconst shared = "Shared"\n'},
        )
        assert value.text == "Shared"

    def test_variable_written_once(self):
        value, = _resolve_all(_test_func('name := "onceName"', "t.Run(name, nil)"))
        assert value.text == "onceName"
        assert value.location.line == 9

    def test_var_declaration(self):
        value, = _resolve_all(_test_func('var name = "declared"', "t.Run(name, nil)"))
        assert value.text == "declared"

    def test_variable_from_constant(self):
        value, = _resolve_all(
            'const base = "from_const"\n\n'
            + _test_func("name := base", "t.Run(name, nil)")
        )
        assert value.text == "from_const"

    def test_package_variable(self):
        value, = _resolve_all('var pkgName = "PkgVar"\n\n' + _test_func("t.Run(pkgName, nil)"))
        assert value.text == "PkgVar"

    @pytest.mark.parametrize("statements", [
        ('name := "a"', 'name = "B"', "t.Run(name, nil)"),
        ('name := "a"', 'name += "B"', "t.Run(name, nil)"),
        ('name := "a"', "p := &name", "_ = p", "t.Run(name, nil)"),
        ("var name string", "t.Run(name, nil)"),
        ('name := fmt.Sprintf("%d", 1)', "t.Run(name, nil)"),
        ('for _, name := range []string{"A"} {', "\tt.Run(name, nil)", "}"),
    ])
    def test_declines(self, statements):
        assert _resolve_all(_test_func(*statements), imports=("fmt", "testing")) == [UNRESOLVED]

    def test_paired_multi_define_resolves(self):
        values = _resolve_all(
            _test_func('a, b := "first", "Second"', "t.Run(a, nil)", "t.Run(b, nil)")
        )
        assert [v.text for v in values] == ["first", "Second"]

    def test_undeclared(self):
        assert _resolve_all(_test_func("t.Run(nowhere, nil)")) == [UNRESOLVED]

    def test_function_name(self):
        assert _resolve_all(
            "func helper() {}\n\n" + _test_func("t.Run(helper, nil)")
        ) == [UNRESOLVED]


class TestExpressions:

    def test_constant_plus_literal(self):
        value, = _resolve_all(
            'const prefix = "pre_"\n\n' + _test_func('t.Run(prefix + "Fix", nil)')
        )
        assert value.text == "pre_Fix"

    def test_long_concatenation_through_variable(self):
        terms = " + ".join(['"a"'] * 1500)
        value, = _resolve_all(_test_func(f"name := {terms}", "t.Run(name, nil)"))
        assert value.text == "a" * 1500

    def test_long_concatenation_argument(self):
        terms = " + ".join(['"ab"'] * 1000 + ['("c" + "d")'])
        value, = _resolve_all(_test_func(f"t.Run({terms}, nil)"))
        assert value.text == "ab" * 1000 + "cd"

    def test_long_concatenation_with_non_string_term(self):
        terms = " + ".join(['"a"'] * 1000 + ["t.Name()"])
        assert _resolve_all(_test_func(f"t.Run({terms}, nil)")) == [UNRESOLVED]

    def test_constant_plus_variable(self):
        assert _resolve_all(
            'const prefix = "pre_"\n\n'
            + _test_func('suffix := "x"', "t.Run(prefix + suffix, nil)")
        ) == [UNRESOLVED]

    def test_string_conversion(self):
        value, = _resolve_all(
            "type label string\n\n"
            'const l label = "Labelled"\n\n'
            + _test_func("t.Run(string(l), nil)")
        )
        assert value.text == "Labelled"

    def test_selector(self):
        assert _resolve_all(
            "type row struct{ name string }\n\n"
            + _test_func('r := row{name: "Row"}', "t.Run(r.name, nil)")
        ) == [UNRESOLVED]

    def test_call(self):
        assert _resolve_all(
            _test_func('t.Run(fmt.Sprint("a"), nil)'), imports=("fmt", "testing")
        ) == [UNRESOLVED]

    def test_index(self):
        assert _resolve_all(
            _test_func('names := []string{"A"}', "t.Run(names[0], nil)")
        ) == [UNRESOLVED]

    def test_none(self):
        gofile, oracle = analyze(go_test_source(""))
        assert resolve(None, gofile, oracle) is UNRESOLVED
