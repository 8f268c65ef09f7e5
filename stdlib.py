"""
Yex Standard Library
Runtime values, their textual forms, the binary operators and the puts built-in
"""

from types import MappingProxyType
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field
import math
import operator
import sys

from error_handling import SourcePosition, OperandKindError
from utilities import binary_arithmetic_op, binary_comparison_op, kind_of, validate_arity


# ============================================================================
# VALUES
# ============================================================================

@dataclass(frozen=True)
class NumberValue:
  value: Union[int, float]
  kind = "Number"


@dataclass(frozen=True)
class StringValue:
  value: str
  kind = "String"


@dataclass(frozen=True)
class BooleanValue:
  value: bool
  kind = "Boolean"


TRUE = BooleanValue(True)
FALSE = BooleanValue(False)


@dataclass(frozen=True)
class FunctionValue:
  """User function: parameters, body and the frame it was defined in"""
  params: Tuple[str, ...]
  body: Any
  env: Any = field(compare=False, repr=False)
  kind = "Function"

  @property
  def arity(self) -> int:
    return len(self.params)


@dataclass(frozen=True)
class BuiltinFunction:
  """Host function; impl receives (args, context, position)"""
  name: str
  params: Tuple[str, ...]
  impl: Callable = field(compare=False, repr=False)
  kind = "Function"

  @property
  def arity(self) -> int:
    return len(self.params)


@dataclass(frozen=True)
class UnitValue:
  kind = "Unit"


UNIT = UnitValue()

Value = Union[NumberValue, StringValue, BooleanValue, FunctionValue, BuiltinFunction, UnitValue]


def make_value(value: Any) -> Value:
  """Wrap a Python constant as a runtime value"""
  if value is None:
    return UNIT
  # bool before int: True is also an int
  if isinstance(value, bool):
    return TRUE if value else FALSE
  if isinstance(value, (int, float)):
    return NumberValue(value)
  if isinstance(value, str):
    return StringValue(value)
  raise TypeError(f"cannot convert {type(value).__name__} to a Yex value")


# ============================================================================
# TEXTUAL FORMS
# ============================================================================

def format_number(n: Union[int, float]) -> str:
  """Decimal text of a number; integral floats print without a fraction"""
  if isinstance(n, float) and n.is_integer():
    n = int(n)
  try:
    return str(n)
  except ValueError:
    # Integers past the interpreter's digit limit cannot be converted
    return f"<number with about {int(n.bit_length() * math.log10(2)) + 1} digits>"


def yex_show(value: Value) -> str:
  """Text written by puts"""
  if isinstance(value, NumberValue):
    return format_number(value.value)
  elif isinstance(value, StringValue):
    return value.value
  elif isinstance(value, BooleanValue):
    return "true" if value.value else "false"
  elif isinstance(value, FunctionValue):
    return f"fn({value.arity})"
  elif isinstance(value, BuiltinFunction):
    return f"<builtin {value.name}>"
  elif isinstance(value, UnitValue):
    return "nil"
  return f"<{type(value).__name__}>"


def yex_repr(value: Value) -> str:
  """Text echoed by the REPL; strings are quoted"""
  if isinstance(value, StringValue):
    return f'"{value.value}"'
  return yex_show(value)


# ============================================================================
# OPERATORS
# ============================================================================

def make_boolean(flag: bool) -> BooleanValue:
  return TRUE if flag else FALSE


def expect_boolean(value: Value, construct: str, position: Optional[SourcePosition] = None) -> bool:
  """Unwrap a Boolean operand; there is no truthiness for other kinds"""
  if not isinstance(value, BooleanValue):
    raise OperandKindError(construct, "Boolean", kind_of(value), position)
  return value.value


def values_equal(x: Value, y: Value) -> bool:
  """Structural equality; values of different kinds are never equal,
  and functions are only equal to themselves"""
  if kind_of(x) != kind_of(y):
    return False
  if isinstance(x, (FunctionValue, BuiltinFunction)):
    return x is y
  return x == y


yex_add = binary_arithmetic_op(operator.add, "+", ["Number", "String"])
yex_sub = binary_arithmetic_op(operator.sub, "-")
yex_mul = binary_arithmetic_op(operator.mul, "*")
yex_div = binary_arithmetic_op(operator.truediv, "/")

yex_lt = binary_comparison_op(operator.lt, "<", make_boolean)
yex_le = binary_comparison_op(operator.le, "<=", make_boolean)
yex_gt = binary_comparison_op(operator.gt, ">", make_boolean)
yex_ge = binary_comparison_op(operator.ge, ">=", make_boolean)


def yex_equal(x: Value, y: Value, position: Optional[SourcePosition] = None) -> BooleanValue:
  return make_boolean(values_equal(x, y))


def yex_not_equal(x: Value, y: Value, position: Optional[SourcePosition] = None) -> BooleanValue:
  return make_boolean(not values_equal(x, y))


def yex_negate(x: Value, position: Optional[SourcePosition] = None) -> NumberValue:
  if not isinstance(x, NumberValue):
    raise OperandKindError("unary '-'", "Number", kind_of(x), position)
  return NumberValue(-x.value)


def yex_not(x: Value, position: Optional[SourcePosition] = None) -> BooleanValue:
  return make_boolean(not expect_boolean(x, "'not'", position))


# BinaryOp tag -> implementation
BINARY_OPERATIONS = MappingProxyType({
    'Add': yex_add,
    'Subtract': yex_sub,
    'Multiply': yex_mul,
    'Divide': yex_div,
    'Less': yex_lt,
    'LessEqual': yex_le,
    'Greater': yex_gt,
    'GreaterEqual': yex_ge,
    'Equal': yex_equal,
    'NotEqual': yex_not_equal,
})

# UnaryOp tag -> implementation
UNARY_OPERATIONS = MappingProxyType({
    'Negate': yex_negate,
    'Not': yex_not,
})


# ============================================================================
# EXECUTION CONTEXT
# ============================================================================

def make_execution_context(output=None, debug: bool = False, max_depth: Optional[int] = None) -> Dict:
  """Per-run settings and call depth; created fresh for every evaluation"""
  return {
      'output': output if output is not None else sys.stdout,
      'debug': debug,
      'max_depth': max_depth,
      'depth': 0,
  }


# ============================================================================
# BUILT-IN FUNCTIONS
# ============================================================================

def yex_puts(args: List[Value], context: Dict, position: Optional[SourcePosition] = None) -> UnitValue:
  """Write the value's text and a newline to the output stream"""
  context['output'].write(yex_show(args[0]) + "\n")
  return UNIT


def call_builtin(builtin: BuiltinFunction, args: List[Value], context: Dict,
                 position: Optional[SourcePosition] = None) -> Value:
  validate_arity(builtin.name, builtin.params, args, position)
  return builtin.impl(args, context, position)


BUILTINS = MappingProxyType({
    'puts': BuiltinFunction('puts', ('value',), yex_puts),
})
