"""
Yex Interpreter - Tree Walking Evaluator
Reduces an expression and an environment to a value; puts is the only side effect
"""

from typing import Any, Dict, List, Optional
import logging

from environment import Environment, create_global_env
from error_handling import NotCallableError, StackOverflowError
from lexing import Token, tokenize
from parsing import (
  Expression,
  Literal,
  Identifier,
  LetBinding,
  AnonymousFunction,
  Application,
  BinaryOp,
  Conditional,
  LogicalOp,
  UnaryOp,
  OPERATOR_SYMBOLS,
  parse_program,
)
from stdlib import (
  Value,
  FunctionValue,
  BuiltinFunction,
  TRUE,
  FALSE,
  BINARY_OPERATIONS,
  UNARY_OPERATIONS,
  BUILTINS,
  expect_boolean,
  make_boolean,
  make_value,
  make_execution_context,
  call_builtin,
  yex_show,
)
from utilities import kind_of, validate_arity

logger = logging.getLogger(__name__)


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def evaluate(expr: Expression, env: Optional[Environment] = None, context: Optional[Dict] = None) -> Value:
  """
  Evaluate an expression to a value.
  Host recursion limits surface as StackOverflowError instead of RecursionError.
  """
  if env is None:
    env = create_global_env()
  if context is None:
    context = make_execution_context()

  try:
    return eval_ast(expr, env, context)
  except RecursionError:
    raise StackOverflowError() from None


def eval_ast(expr: Expression, env: Environment, context: Dict) -> Value:
  """Dispatch on the expression variant"""
  if isinstance(expr, Literal):
    return eval_literal(expr, env, context)
  elif isinstance(expr, Identifier):
    return eval_identifier(expr, env, context)
  elif isinstance(expr, LetBinding):
    return eval_let(expr, env, context)
  elif isinstance(expr, Conditional):
    return eval_conditional(expr, env, context)
  elif isinstance(expr, AnonymousFunction):
    return eval_function(expr, env, context)
  elif isinstance(expr, Application):
    return eval_application(expr, env, context)
  elif isinstance(expr, BinaryOp):
    return eval_binary_op(expr, env, context)
  elif isinstance(expr, LogicalOp):
    return eval_logical_op(expr, env, context)
  elif isinstance(expr, UnaryOp):
    return eval_unary_op(expr, env, context)
  raise TypeError(f"unknown expression node: {expr!r}")


def eval_literal(expr: Literal, env: Environment, context: Dict) -> Value:
  return make_value(expr.value)


def eval_identifier(expr: Identifier, env: Environment, context: Dict) -> Value:
  """Look the name up in the scope chain; built-ins are the last resort"""
  if not env.contains(expr.name) and expr.name in BUILTINS:
    return BUILTINS[expr.name]
  return env.lookup(expr.name, expr.position)


def eval_let(expr: LetBinding, env: Environment, context: Dict) -> Value:
  """
  Evaluate a value binding. The bound name is visible only in the body,
  except for desugared named functions, which also see themselves.
  A chain of lets is walked in a loop, one new frame per binding.
  """
  while isinstance(expr, LetBinding):
    env = _bind_let(expr, env, context)
    expr = expr.body
  return eval_ast(expr, env, context)


def _bind_let(expr: LetBinding, env: Environment, context: Dict) -> Environment:
  if expr.recursive:
    body_env = env.bind_recursive(expr.name, lambda frame: eval_ast(expr.value, frame, context))
  else:
    value = eval_ast(expr.value, env, context)
    body_env = env.bind(expr.name, value)

  if context['debug']:
    logger.debug("let %s = %s", expr.name, yex_show(body_env.lookup(expr.name)))

  return body_env


def eval_conditional(expr: Conditional, env: Environment, context: Dict) -> Value:
  """Evaluate the condition, then exactly one branch"""
  condition = eval_ast(expr.condition, env, context)
  if expect_boolean(condition, "'if' condition", expr.condition.position):
    return eval_ast(expr.then_branch, env, context)
  return eval_ast(expr.else_branch, env, context)


def eval_function(expr: AnonymousFunction, env: Environment, context: Dict) -> Value:
  """Create a function value that captures the current frame"""
  return FunctionValue(expr.params, expr.body, env)


def eval_application(expr: Application, env: Environment, context: Dict) -> Value:
  """Evaluate callee, then arguments left to right, then the call"""
  callee = eval_ast(expr.callee, env, context)

  if not isinstance(callee, (FunctionValue, BuiltinFunction)):
    raise NotCallableError(kind_of(callee), expr.position)

  args = [eval_ast(arg, env, context) for arg in expr.args]

  if isinstance(callee, BuiltinFunction):
    return call_builtin(callee, args, context, expr.position)

  return apply_function(callee, args, context, expr)


def apply_function(func: FunctionValue, args: List[Value], context: Dict, call: Application) -> Value:
  """Bind parameters in one frame chained to the function's defining frame"""
  validate_arity(_callee_name(call), func.params, args, call.position)

  max_depth = context['max_depth']
  if max_depth is not None and context['depth'] >= max_depth:
    raise StackOverflowError(f"call depth exceeded {max_depth}", call.position)

  if context['debug']:
    logger.debug("call %s(%s) at depth %d", _callee_name(call),
                 ", ".join(yex_show(arg) for arg in args), context['depth'])

  call_env = func.env.bind_all(func.params, args)

  context['depth'] += 1
  try:
    return eval_ast(func.body, call_env, context)
  finally:
    context['depth'] -= 1


def eval_binary_op(expr: BinaryOp, env: Environment, context: Dict) -> Value:
  left = eval_ast(expr.left, env, context)
  right = eval_ast(expr.right, env, context)
  return BINARY_OPERATIONS[expr.operator](left, right, expr.position)


def eval_logical_op(expr: LogicalOp, env: Environment, context: Dict) -> Value:
  """and/or over Booleans; the right operand is skipped once the result is known"""
  symbol = f"'{OPERATOR_SYMBOLS[expr.operator]}'"
  left = expect_boolean(eval_ast(expr.left, env, context), symbol, expr.position)

  if expr.operator == 'And' and not left:
    return FALSE
  if expr.operator == 'Or' and left:
    return TRUE

  right = eval_ast(expr.right, env, context)
  return make_boolean(expect_boolean(right, symbol, expr.position))


def eval_unary_op(expr: UnaryOp, env: Environment, context: Dict) -> Value:
  operand = eval_ast(expr.operand, env, context)
  return UNARY_OPERATIONS[expr.operator](operand, expr.position)


def _callee_name(call: Application) -> str:
  if isinstance(call.callee, Identifier):
    return call.callee.name
  return "function"


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def run_program(source: str, filename: str = "<input>", output=None,
                debug: bool = False, max_depth: Optional[int] = None) -> Value:
  """Lex, parse and evaluate a whole program in a fresh environment"""
  expr = parse_program(source, filename)
  context = make_execution_context(output=output, debug=debug, max_depth=max_depth)
  return evaluate(expr, create_global_env(), context)


class YexInterpreter:
  """Interpreter settings shared by the command line and the REPL"""

  def __init__(self, debug: bool = False, output=None, max_depth: Optional[int] = None):
    self.debug = debug
    self.output = output
    self.max_depth = max_depth

  def tokens(self, source: str, filename: str = "<input>") -> List[Token]:
    return list(tokenize(source, filename))

  def parse(self, source: str, filename: str = "<input>") -> Expression:
    return parse_program(source, filename)

  def run_string(self, source: str, filename: str = "<input>") -> Value:
    return run_program(source, filename, output=self.output,
                       debug=self.debug, max_depth=self.max_depth)

  def run_file(self, path: str) -> Value:
    with open(path, 'r', encoding='utf-8') as f:
      source = f.read()
    return self.run_string(source, path)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, output: Any = None, max_depth: Optional[int] = None) -> YexInterpreter:
  """Factory function returning an interpreter"""
  return YexInterpreter(debug=debug, output=output, max_depth=max_depth)

