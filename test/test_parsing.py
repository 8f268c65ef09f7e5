"""
Parser tests for Yex
AST shapes, precedence, desugaring and syntax errors
"""

import pytest
from parsing import (
  parse_program, pretty_print_ast,
  Literal, Identifier, LetBinding, AnonymousFunction, Application, BinaryOp,
  Conditional, LogicalOp, UnaryOp
)
from error_handling import YexSyntaxError, YexLexError


class TestExpressions:
  """Test the shape of parsed expressions"""

  def test_literals(self):
    assert parse_program("42") == Literal(42)
    assert parse_program("2.5") == Literal(2.5)
    assert parse_program('"hi"') == Literal("hi")

  def test_identifier(self):
    assert parse_program("x") == Identifier("x")

  def test_value_binding(self):
    assert parse_program("let x = 1 in x") == LetBinding("x", Literal(1), Identifier("x"))

  def test_anonymous_function(self):
    expr = parse_program("fn a b = a + b")
    assert expr == AnonymousFunction(
      ("a", "b"), BinaryOp("Add", Identifier("a"), Identifier("b"))
    )

  def test_application_with_arguments(self):
    expr = parse_program('puts("hi", x)')
    assert expr == Application(Identifier("puts"), (Literal("hi"), Identifier("x")))

  def test_application_without_arguments(self):
    assert parse_program("f()") == Application(Identifier("f"), ())

  def test_chained_application(self):
    expr = parse_program("f(1)(2)")
    assert expr == Application(Application(Identifier("f"), (Literal(1),)), (Literal(2),))

  def test_immediately_applied_function(self):
    expr = parse_program("(fn n = n * n)(20)")
    assert isinstance(expr, Application)
    assert isinstance(expr.callee, AnonymousFunction)
    assert expr.args == (Literal(20),)

  def test_let_as_operand(self):
    expr = parse_program("1 + let x = 2 in x")
    assert expr == BinaryOp("Add", Literal(1), LetBinding("x", Literal(2), Identifier("x")))

  def test_nested_lets(self):
    expr = parse_program("let x = 1 in let y = 2 in x")
    assert expr.body == LetBinding("y", Literal(2), Identifier("x"))

  def test_comments_between_tokens(self):
    assert parse_program("let x = 1 // one\nin x # done") == parse_program("let x = 1 in x")


class TestPrecedence:
  """Test operator associativity and application binding"""

  def test_single_tier_left_associative(self):
    expr = parse_program("2 + 3 * 4")
    assert expr == BinaryOp(
      "Multiply", BinaryOp("Add", Literal(2), Literal(3)), Literal(4)
    )

  def test_subtraction_is_left_associative(self):
    expr = parse_program("10 - 4 - 3")
    assert expr == BinaryOp(
      "Subtract", BinaryOp("Subtract", Literal(10), Literal(4)), Literal(3)
    )

  def test_parentheses_group(self):
    expr = parse_program("2 * (3 + 4)")
    assert expr == BinaryOp(
      "Multiply", Literal(2), BinaryOp("Add", Literal(3), Literal(4))
    )

  def test_application_binds_tighter(self):
    expr = parse_program("f(1) + g(2)")
    assert expr == BinaryOp(
      "Add",
      Application(Identifier("f"), (Literal(1),)),
      Application(Identifier("g"), (Literal(2),))
    )

  def test_let_body_extends_right(self):
    expr = parse_program("let x = 1 in x + 2")
    assert expr.body == BinaryOp("Add", Identifier("x"), Literal(2))


class TestDesugaring:
  """Test named function bindings become anonymous function bindings"""

  def test_named_function(self):
    expr = parse_program("let double n = n + n in double(4)")
    assert expr == LetBinding(
      "double",
      AnonymousFunction(("n",), BinaryOp("Add", Identifier("n"), Identifier("n"))),
      Application(Identifier("double"), (Literal(4),)),
      recursive=True
    )
    assert expr.params == ()

  def test_value_binding_is_not_recursive(self):
    assert parse_program("let x = 1 in x").recursive is False

  def test_desugar_is_identity_without_params(self):
    binding = LetBinding("x", Literal(1), Identifier("x"))
    assert binding.desugar() is binding


class TestPositions:
  """Test source positions on AST nodes"""

  def test_operator_position(self):
    expr = parse_program("1 +\n  2")
    assert expr.position.line == 1
    assert expr.position.column == 3

  def test_positions_do_not_affect_equality(self):
    assert parse_program("x") == parse_program("\n\n   x")


class TestSyntaxErrors:
  """Test syntax error reporting"""

  def parse_error(self, source):
    with pytest.raises(YexSyntaxError) as exc_info:
      parse_program(source)
    return exc_info.value

  def test_missing_in(self):
    error = self.parse_error("let x = 1")
    assert error.expected == ["'in'"]
    assert error.found == "end of input"

  def test_parenthesised_parameters(self):
    error = self.parse_error("fn (x) = x")
    assert error.expected == ["identifier"]
    assert error.found == "'('"

  def test_keyword_as_name(self):
    error = self.parse_error("let in = 1 in 2")
    assert error.found == "'in'"

  def test_trailing_tokens(self):
    error = self.parse_error("1 2")
    assert "expected end of input" in error.message
    assert error.found == "'2'"
    assert error.position.column == 3

  def test_missing_comma(self):
    error = self.parse_error("f(1 2)")
    assert error.expected == ["','", "')'"]

  def test_unclosed_paren(self):
    error = self.parse_error("(1 + 2")
    assert error.expected == ["')'"]
    assert error.found == "end of input"

  def test_missing_expression(self):
    error = self.parse_error(")")
    assert "expected an expression" in error.message

  def test_empty_program(self):
    error = self.parse_error("")
    assert error.found == "end of input"

  def test_duplicate_parameter(self):
    error = self.parse_error("fn x x = x")
    assert error.message == "duplicate parameter 'x'"

  def test_bad_parameter_list(self):
    error = self.parse_error("let x 1 in x")
    assert "expected parameter name or '='" in error.message

  def test_fn_needs_parameters(self):
    error = self.parse_error("fn = 1")
    assert error.found == "'='"

  def test_lex_errors_propagate(self):
    with pytest.raises(YexLexError):
      parse_program("let x = ~ in x")


class TestPrettyPrint:
  """Test the --parse tree view"""

  def test_function_application(self):
    tree = pretty_print_ast(parse_program("(fn n = n * n)(20)"))
    assert tree == "\n".join([
      "Apply",
      "  Function(n)",
      "    Multiply '*'",
      "      Identifier(n)",
      "      Identifier(n)",
      "  Literal(20)",
    ])

  def test_recursive_let(self):
    tree = pretty_print_ast(parse_program("let f x = x in f"))
    assert tree.splitlines()[0] == "Let f (recursive)"
    assert "  =" in tree.splitlines()
    assert "  in" in tree.splitlines()

  def test_conditional(self):
    tree = pretty_print_ast(parse_program("if a then 1 else nil"))
    assert tree == "\n".join([
      "If",
      "  Identifier(a)",
      "Then",
      "  Literal(1)",
      "Else",
      "  Literal(nil)",
    ])

  def test_logical_and_unary(self):
    tree = pretty_print_ast(parse_program("not a or -b"))
    assert tree == "\n".join([
      "Or 'or'",
      "  Not 'not'",
      "    Identifier(a)",
      "  Negate '-'",
      "    Identifier(b)",
    ])


class TestConditionals:
  """Test if expressions, Boolean literals and the comparison tiers"""

  def test_boolean_and_nil_literals(self):
    assert parse_program("true").value is True
    assert parse_program("false").value is False
    assert parse_program("nil").value is None

  def test_if_then_else(self):
    expr = parse_program("if x < 1 then 0 else x")
    assert expr == Conditional(
      BinaryOp("Less", Identifier("x"), Literal(1)), Literal(0), Identifier("x")
    )
    assert expr.position.column == 1

  def test_else_branch_extends_right(self):
    expr = parse_program("if c then 1 else 2 + 3")
    assert expr.else_branch == BinaryOp("Add", Literal(2), Literal(3))

  def test_if_as_operand(self):
    expr = parse_program("1 + if c then 2 else 3")
    assert isinstance(expr, BinaryOp)
    assert isinstance(expr.right, Conditional)

  def test_comparison_binds_looser_than_arithmetic(self):
    expr = parse_program("1 + 2 < 4")
    assert expr == BinaryOp("Less", BinaryOp("Add", Literal(1), Literal(2)), Literal(4))

  def test_tier_order(self):
    expr = parse_program("a < b == c and d or e")
    assert expr == LogicalOp(
      "Or",
      LogicalOp(
        "And",
        BinaryOp("Equal", BinaryOp("Less", Identifier("a"), Identifier("b")), Identifier("c")),
        Identifier("d")
      ),
      Identifier("e")
    )

  def test_and_is_left_associative(self):
    expr = parse_program("a and b and c")
    assert expr == LogicalOp(
      "And", LogicalOp("And", Identifier("a"), Identifier("b")), Identifier("c")
    )

  def test_unary_binds_tighter_than_arithmetic(self):
    expr = parse_program("-x * 2")
    assert expr == BinaryOp("Multiply", UnaryOp("Negate", Identifier("x")), Literal(2))

  def test_not_applies_to_comparison_operand(self):
    expr = parse_program("not a == b")
    assert expr == BinaryOp("Equal", UnaryOp("Not", Identifier("a")), Identifier("b"))

  def test_missing_else(self):
    with pytest.raises(YexSyntaxError) as exc_info:
      parse_program("if a then 1")
    assert exc_info.value.expected == ["'else'"]
    assert exc_info.value.found == "end of input"

  def test_assignment_in_condition(self):
    with pytest.raises(YexSyntaxError) as exc_info:
      parse_program("if a = 1 then 2 else 3")
    assert exc_info.value.expected == ["'then'"]
    assert exc_info.value.found == "'='"

  def test_literal_keyword_is_not_a_name(self):
    with pytest.raises(YexSyntaxError) as exc_info:
      parse_program("let true = 1 in true")
    assert exc_info.value.found == "'true'"


class TestDeepNesting:
  """Test sources nested deeper than the Python stack allows"""

  def test_long_let_chain(self):
    expr = parse_program("let a = 1 in " * 600 + "a")
    depth = 0
    while isinstance(expr, LetBinding):
      depth += 1
      expr = expr.body
    assert depth == 600
    assert expr == Identifier("a")

  def test_long_let_chain_with_functions(self):
    expr = parse_program("let f x = x in " * 600 + "f(1)")
    assert expr.recursive
    assert isinstance(expr.value, AnonymousFunction)

  @pytest.mark.parametrize("source", [
    "(" * 5000 + "1" + ")" * 5000,
    "-" * 5000 + "1",
    "fn x = " * 5000 + "x",
  ])
  def test_too_deep_is_a_syntax_error(self, source):
    with pytest.raises(YexSyntaxError) as exc_info:
      parse_program(source)
    assert exc_info.value.message == "expression is nested too deeply"
    assert exc_info.value.position is not None
