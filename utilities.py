"""
Utilities module for the Yex interpreter
Error builders and the factories behind the binary operators
"""

import math
from typing import Any, Callable, List, Optional, Tuple

from error_handling import (
  SourcePosition,
  ArityMismatchError,
  TypeMismatchError,
  DivisionByZeroError,
  NumberOverflowError,
)


# ==================== VALUE INSPECTION ====================

def kind_of(value: Any) -> str:
  """
  Name of a runtime value's kind, as used in error messages

  Args:
    value: Any runtime value

  Returns:
    The value's `kind` attribute, or the Python type name as a fallback
  """
  return getattr(value, 'kind', type(value).__name__)


# ==================== ERROR MESSAGE BUILDERS ====================

def arity_error(
  func_name: str,
  expected: int,
  got: int,
  position: Optional[SourcePosition] = None
) -> ArityMismatchError:
  """
  Generate arity mismatch error

  Args:
    func_name: Function name (or "function" for anonymous ones)
    expected: Declared number of parameters
    got: Number of arguments supplied
    position: Position of the call

  Returns:
    ArityMismatchError with formatted message
  """
  return ArityMismatchError(func_name, expected, got, position)


def operation_error(
  op: str,
  left: Any,
  right: Any,
  position: Optional[SourcePosition] = None
) -> TypeMismatchError:
  """
  Generate operand type error

  Args:
    op: Operator symbol
    left: Left operand value
    right: Right operand value
    position: Position of the operator

  Returns:
    TypeMismatchError naming both operand kinds
  """
  return TypeMismatchError(op, kind_of(left), kind_of(right), position)


def validate_arity(
  func_name: str,
  params: Tuple[str, ...],
  args: List[Any],
  position: Optional[SourcePosition] = None
) -> None:
  """
  Check that a call supplies exactly one argument per parameter

  Raises:
    ArityMismatchError if the counts differ
  """
  if len(args) != len(params):
    raise arity_error(func_name, len(params), len(args), position)


# ==================== BINARY OPERATION FACTORIES ====================

def binary_comparison_op(
  op: Callable[[Any, Any], bool],
  op_symbol: str,
  make_result: Callable[[bool], Any],
  allowed_kinds: Optional[List[str]] = None
) -> Callable[[Any, Any, Optional[SourcePosition]], Any]:
  """
  Factory for ordering comparisons over same-kind values

  Args:
    op: Python operator function (e.g., operator.lt)
    op_symbol: Operator symbol for error messages
    make_result: Wraps the Python bool as a runtime value
    allowed_kinds: Value kinds that can be ordered

  Returns:
    Function (left, right, position) -> Boolean value

  Examples:
    yex_lt = binary_comparison_op(operator.lt, "<", make_boolean)
    yex_lt(NumberValue(1), NumberValue(2), None) -> BooleanValue(True)
  """
  if allowed_kinds is None:
    allowed_kinds = ["Number", "String"]

  def comparison(x: Any, y: Any, position: Optional[SourcePosition] = None) -> Any:
    if kind_of(x) != kind_of(y) or kind_of(x) not in allowed_kinds:
      raise operation_error(op_symbol, x, y, position)
    return make_result(op(x.value, y.value))

  return comparison


def binary_arithmetic_op(
  op: Callable[[Any, Any], Any],
  op_symbol: str,
  allowed_kinds: Optional[List[str]] = None
) -> Callable[[Any, Any, Optional[SourcePosition]], Any]:
  """
  Factory for binary operations over same-kind values

  Args:
    op: Python operator function (e.g., operator.add)
    op_symbol: Operator symbol for error messages
    allowed_kinds: Value kinds that support this operation

  Returns:
    Function (left, right, position) -> value of the operands' kind

  Examples:
    yex_add = binary_arithmetic_op(operator.add, "+", ["Number", "String"])
    yex_add(NumberValue(1), NumberValue(2), None) -> NumberValue(3)
  """
  if allowed_kinds is None:
    allowed_kinds = ["Number"]

  def arithmetic(x: Any, y: Any, position: Optional[SourcePosition] = None) -> Any:
    if kind_of(x) != kind_of(y) or kind_of(x) not in allowed_kinds:
      raise operation_error(op_symbol, x, y, position)
    try:
      result = op(x.value, y.value)
    except ZeroDivisionError:
      raise DivisionByZeroError(position) from None
    except OverflowError:
      # Mixing a huge integer with a float, or dividing huge integers
      raise NumberOverflowError(op_symbol, position) from None
    if isinstance(result, float) and math.isinf(result):
      raise NumberOverflowError(op_symbol, position)
    return type(x)(result)

  return arithmetic

