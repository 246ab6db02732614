# tests/test_type_oracle.py
"""
Tests for the package oracle: scopes and symbol resolution, static type
strings, string constant evaluation, writes, and struct fields.
"""

import pytest

from goast_shims.type_oracle import SymbolKind, WriteKind, import_name
from tests.conftest import analyze, find_nodes, go_test_source, ident


class TestImportName:

    @pytest.mark.parametrize("path, expected", [
        ("testing", "testing"),
        ("net/http", "http"),
        ("github.com/org/repo/v2", "repo"),
        ("gopkg.in/yaml.v3", "yaml"),
    ])
    def test_default_names(self, path, expected):
        assert import_name(path) == expected


class TestObjects:

    def test_param_symbol(self):
        gofile, oracle = analyze(go_test_source(
            "func TestX(t *testing.T) {\n\t_ = t\n}"
        ))
        sym = oracle.object_of(gofile, ident(gofile, "t"))
        assert sym.kind == SymbolKind.VAR
        assert sym.name == "t"

    def test_definition_and_use_share_symbol(self):
        gofile, oracle = analyze(go_test_source(
            'func TestX(t *testing.T) {\n\tname := "a"\n\t_ = name\n}'
        ))
        decl = oracle.object_of(gofile, ident(gofile, "name", 0))
        use = oracle.object_of(gofile, ident(gofile, "name", 1))
        assert decl is use

    def test_inner_block_shadows(self):
        gofile, oracle = analyze(go_test_source(
            "func TestX(t *testing.T) {\n"
            '\tname := "outer"\n'
            "\t{\n"
            '\t\tname := "inner"\n'
            "\t\t_ = name\n"
            "\t}\n"
            "\t_ = name\n"
            "}"
        ))
        outer, inner, inner_use, outer_use = find_nodes(gofile, "identifier", "name")
        assert oracle.object_of(gofile, inner_use) is oracle.object_of(gofile, inner)
        assert oracle.object_of(gofile, outer_use) is oracle.object_of(gofile, outer)
        assert oracle.object_of(gofile, inner) is not oracle.object_of(gofile, outer)

    def test_local_visible_only_after_declaration(self):
        gofile, oracle = analyze(go_test_source(
            'const name = "pkg_level"\n\n'
            "func TestX(t *testing.T) {\n"
            "\t_ = name\n"
            '\tname := "LocalName"\n'
            "\t_ = name\n"
            "}"
        ))
        const_def, before, local_def, after = find_nodes(gofile, "identifier", "name")
        assert oracle.object_of(gofile, before).kind == SymbolKind.CONST
        assert oracle.object_of(gofile, after) is oracle.object_of(gofile, local_def)

    def test_package_level_order_does_not_matter(self):
        gofile, oracle = analyze(go_test_source(
            "func TestX(t *testing.T) {\n\t_ = later\n}\n\n"
            'const later = "declared_below"'
        ))
        use = ident(gofile, "later", 0)
        assert oracle.object_of(gofile, use).kind == SymbolKind.CONST

    def test_other_file_in_package(self):
        gofile, oracle = analyze(
            go_test_source("func TestX(t *testing.T) {\n\t_ = shared\n}"),
            extra={"helpers.go": 'package example\n\nconst shared = "x"\n'},
        )
        sym = oracle.object_of(gofile, ident(gofile, "shared"))
        assert sym.kind == SymbolKind.CONST
        assert sym.file.name == "helpers.go"

    def test_predeclared_is_none(self):
        gofile, oracle = analyze(go_test_source(
            "func TestX(t *testing.T) {\n\t_ = len\n}"
        ))
        assert oracle.object_of(gofile, ident(gofile, "len")) is None

    def test_import_symbol(self):
        gofile, oracle = analyze(go_test_source(
            "func TestX(t *testing.T) {\n\t_ = fmt.Sprint\n}", imports=("fmt", "testing")
        ))
        sym = oracle.object_of(gofile, ident(gofile, "fmt"))
        assert sym.kind == SymbolKind.PACKAGE
        assert sym.import_path == "fmt"

    def test_unknown_file_rejected(self):
        gofile, oracle = analyze(go_test_source(""))
        other, _ = analyze(go_test_source(""), name="other_test.go")
        with pytest.raises(KeyError):
            oracle.object_of(other, other.root)


class TestTypes:

    def _receiver_type(self, body, imports=("testing",)):
        gofile, oracle = analyze(go_test_source(body, imports=imports))
        selectors = [
            call.child_by_field_name("function")
            for call in find_nodes(gofile, "call_expression")
            if call.child_by_field_name("function").type == "selector_expression"
        ]
        receiver = selectors[-1].child_by_field_name("operand")
        return oracle.type_of(gofile, receiver)

    def test_testing_t(self):
        assert self._receiver_type(
            "func TestX(t *testing.T) {\n\tt.Run(\"a\", nil)\n}"
        ) == "*testing.T"

    def test_testing_b(self):
        assert self._receiver_type(
            "func BenchmarkX(b *testing.B) {\n\tb.Run(\"a\", nil)\n}"
        ) == "*testing.B"

    def test_import_alias(self):
        assert self._receiver_type(
            "func TestX(t *tst.T) {\n\tt.Run(\"a\", nil)\n}",
            imports=('tst "testing"',),
        ) == "*testing.T"

    def test_dot_import(self):
        assert self._receiver_type(
            "func TestX(t *T) {\n\tt.Run(\"a\", nil)\n}",
            imports=('. "testing"',),
        ) == "*testing.T"

    def test_dot_import_leaves_local_and_predeclared_types(self):
        gofile, oracle = analyze(go_test_source(
            "type T struct{}\n\n"
            "var a *T\n\n"
            "var b string\n",
            imports=('. "testing"',),
        ))
        assert oracle.type_of(gofile, ident(gofile, "a")) == "*example.T"
        assert oracle.type_of(gofile, ident(gofile, "b")) == "string"

    def test_several_dot_imports_stay_unqualified(self):
        assert self._receiver_type(
            "func TestX(t *T) {\n\tt.Run(\"a\", nil)\n}",
            imports=('. "testing"', '. "strings"'),
        ) == "*T"

    def test_type_alias(self):
        assert self._receiver_type(
            "type TT = testing.T\n\n"
            "func TestX(t *TT) {\n\tt.Run(\"a\", nil)\n}"
        ) == "*testing.T"

    def test_defined_type_is_distinct(self):
        assert self._receiver_type(
            "type TT testing.T\n\n"
            "func TestX(t *TT) {\n\tt.Run(\"a\", nil)\n}"
        ) == "*example.TT"

    def test_local_type_named_t(self):
        assert self._receiver_type(
            "type T struct{}\n\n"
            "func (T) Run(string, func()) {}\n\n"
            "func TestX(x *testing.T) {\n\tvar t *T\n\tt.Run(\"a\", nil)\n}"
        ) == "*example.T"

    def test_address_of_composite(self):
        assert self._receiver_type(
            "type Runner struct{}\n\n"
            "func (r *Runner) Run(string, func()) {}\n\n"
            "func TestX(t *testing.T) {\n\tr := &Runner{}\n\tr.Run(\"a\", nil)\n}"
        ) == "*example.Runner"

    def test_inferred_through_variable(self):
        assert self._receiver_type(
            "func TestX(t *testing.T) {\n\tparent := t\n\tparent.Run(\"a\", nil)\n}"
        ) == "*testing.T"

    def test_struct_field(self):
        assert self._receiver_type(
            "type suite struct{ t *testing.T }\n\n"
            "func TestX(t *testing.T) {\n\ts := suite{t: t}\n\ts.t.Run(\"a\", nil)\n}"
        ) == "*testing.T"

    def test_helper_function_result(self):
        assert self._receiver_type(
            "func current() *testing.T { return nil }\n\n"
            "func TestX(t *testing.T) {\n\tcurrent().Run(\"a\", nil)\n}"
        ) == "*testing.T"

    def test_range_element(self):
        assert self._receiver_type(
            "func TestX(t *testing.T) {\n"
            "\tfor _, sub := range []*testing.T{t} {\n"
            "\t\tsub.Run(\"a\", nil)\n"
            "\t}\n"
            "}"
        ) == "*testing.T"

    def test_unknown_is_none(self):
        assert self._receiver_type(
            "func TestX(t *testing.T) {\n\tget().Run(\"a\", nil)\n}"
        ) is None

    def test_type_strings(self):
        gofile, oracle = analyze(go_test_source(
            "type row struct{ name string }\n\n"
            "var rows []row\n"
            "var index map[string]*row\n"
            "var fixed [2]string"
        ))
        types = {
            name: oracle.type_of(gofile, ident(gofile, name))
            for name in ("rows", "index", "fixed")
        }
        assert types == {
            "rows": "[]example.row",
            "index": "map[string]*example.row",
            "fixed": "[2]string",
        }


class TestConstants:

    def _value(self, decls, name):
        gofile, oracle = analyze(go_test_source(decls, imports=()))
        return oracle.constant_value(gofile, ident(gofile, name))

    def test_literal(self):
        assert self._value('const a = "x"', "a") == "x"

    def test_raw_literal(self):
        assert self._value("const a = `x\\y`", "a") == "x\\y"

    def test_concatenation_of_constants(self):
        assert self._value(
            'const (\n\ta = "left"\n\tb = a + "_" + "right"\n)', "b"
        ) == "left_right"

    def test_parentheses(self):
        assert self._value('const a = ("x" + ("y"))', "a") == "xy"

    def test_implicit_repetition(self):
        assert self._value('const (\n\ta = "same"\n\tb\n)', "b") == "same"

    def test_typed_constant(self):
        assert self._value(
            'type Name string\n\nconst a Name = "typed"', "a"
        ) == "typed"

    def test_named_string_conversion(self):
        assert self._value(
            'type Name string\n\nconst a = Name("conv")', "a"
        ) == "conv"

    def test_string_conversion(self):
        assert self._value('const a = string("s")', "a") == "s"

    def test_non_string(self):
        assert self._value("const a = 42", "a") is None

    def test_integer_conversion_not_folded(self):
        assert self._value("const a = string(65)", "a") is None

    def test_conversion_to_non_string_type(self):
        assert self._value(
            'type Num int\n\nconst a = Num("x")', "a"
        ) is None

    def test_variable_is_not_constant(self):
        gofile, oracle = analyze(go_test_source(
            'var v = "x"\n\nconst c = "y"\n\nvar w = c + v', imports=()
        ))
        binary = find_nodes(gofile, "binary_expression")[0]
        assert oracle.constant_value(gofile, binary) is None


class TestWrites:

    def _writes(self, body, name):
        gofile, oracle = analyze(go_test_source(body, imports=()))
        sym = oracle.object_of(gofile, ident(gofile, name, 0))
        return oracle, sym, [w.kind for w in oracle.writes_of(sym)]

    def test_single_define(self):
        oracle, sym, kinds = self._writes('func f() {\n\tx := "a"\n\t_ = x\n}', "x")
        assert kinds == [WriteKind.DEFINE]
        assert oracle.single_write(sym) is not None

    def test_define_then_assign(self):
        oracle, sym, kinds = self._writes(
            'func f() {\n\tx := "a"\n\tx = "b"\n\t_ = x\n}', "x"
        )
        assert kinds == [WriteKind.DEFINE, WriteKind.ASSIGN]
        assert oracle.single_write(sym) is None

    def test_declared_then_assigned_once(self):
        oracle, sym, kinds = self._writes(
            'func f() {\n\tvar x string\n\tx = "b"\n\t_ = x\n}', "x"
        )
        assert kinds == [WriteKind.ASSIGN]
        assert oracle.single_write(sym).rhs is not None

    def test_package_var(self):
        oracle, sym, kinds = self._writes('var x = "a"', "x")
        assert kinds == [WriteKind.DECLARE]

    def test_compound_and_incdec(self):
        _, _, kinds = self._writes(
            'func f() {\n\tx := "a"\n\tx += "b"\n\tn := 0\n\tn++\n\t_ = x\n}', "x"
        )
        assert kinds == [WriteKind.DEFINE, WriteKind.COMPOUND]
        _, _, kinds = self._writes("func f() {\n\tn := 0\n\tn++\n}", "n")
        assert kinds == [WriteKind.DEFINE, WriteKind.INCDEC]

    def test_address_taken(self):
        oracle, sym, kinds = self._writes(
            'func f() {\n\tx := "a"\n\tp := &x\n\t_ = p\n}', "x"
        )
        assert kinds == [WriteKind.DEFINE, WriteKind.ADDRESS]
        assert oracle.single_write(sym) is None

    def test_multi_value_is_unpaired(self):
        oracle, sym, kinds = self._writes(
            "func two() (string, string) { return \"a\", \"b\" }\n\n"
            "func f() {\n\tx, y := two()\n\t_, _ = x, y\n}",
            "x",
        )
        assert kinds == [WriteKind.DEFINE]
        assert oracle.single_write(sym) is None

    def test_redeclaration_reuses_symbol(self):
        gofile, oracle = analyze(go_test_source(
            "func two() (string, error) { return \"\", nil }\n\n"
            "func f() {\n"
            "\ta, err := two()\n"
            "\tb, err := two()\n"
            "\t_, _, _ = a, b, err\n"
            "}",
            imports=(),
        ))
        first, second, _ = find_nodes(gofile, "identifier", "err")
        sym = oracle.object_of(gofile, first)
        assert oracle.object_of(gofile, second) is sym
        assert len(oracle.writes_of(sym)) == 2

    def test_range_write(self):
        _, _, kinds = self._writes(
            "func f() {\n\tfor _, v := range []string{\"a\"} {\n\t\t_ = v\n\t}\n}", "v"
        )
        assert kinds == [WriteKind.RANGE]

    def test_consts_are_never_single_write(self):
        oracle, sym, _ = self._writes('const c = "x"', "c")
        assert oracle.single_write(sym) is None


class TestStructFields:

    def test_named_struct(self):
        gofile, oracle = analyze(go_test_source(
            "type row struct {\n\tname, input string\n\tok bool\n}\n\n"
            'var rows = []row{{"a", "b", true}}',
            imports=(),
        ))
        literal = find_nodes(gofile, "composite_literal")[0]
        assert oracle.element_field_names(gofile, literal) == ["name", "input", "ok"]

    def test_inline_struct_and_pointer_elements(self):
        gofile, oracle = analyze(go_test_source(
            "type row struct{ name string }\n\n"
            'var rows = []*row{{"a"}}\n'
            'var inline = []struct{ title string }{{"b"}}',
            imports=(),
        ))
        pointer_rows, inline_rows = [
            n for n in find_nodes(gofile, "composite_literal")
            if n.parent.type == "expression_list"
        ]
        assert oracle.element_field_names(gofile, pointer_rows) == ["name"]
        assert oracle.element_field_names(gofile, inline_rows) == ["title"]

    def test_embedded_field(self):
        gofile, oracle = analyze(go_test_source(
            "type base struct{}\n\ntype row struct {\n\tbase\n\tname string\n}",
            imports=(),
        ))
        type_id = find_nodes(gofile, "type_identifier", "row")[0]
        assert oracle.struct_fields(gofile, type_id) == ["base", "name"]

    def test_non_struct(self):
        gofile, oracle = analyze(go_test_source('var names = []string{"a"}', imports=()))
        literal = find_nodes(gofile, "composite_literal")[0]
        assert oracle.element_field_names(gofile, literal) == []
