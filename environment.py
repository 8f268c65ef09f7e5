"""
Yex Runtime Environment
A chain of frames; binding always creates a child frame and never touches the parent
"""

from typing import Any, Callable, Dict, Iterable, Optional

from error_handling import SourcePosition, UndefinedNameError


# Marks the slot of a recursive binding before its value exists
_UNSET = object()


class Environment:
  """One frame of the lexical scope chain"""

  __slots__ = ('_bindings', 'parent')

  def __init__(self, bindings: Optional[Dict[str, Any]] = None, parent: Optional['Environment'] = None):
    self._bindings = dict(bindings or {})
    self.parent = parent

  def lookup(self, name: str, position: Optional[SourcePosition] = None) -> Any:
    """Find the nearest binding of name, walking outward through parents"""
    frame = self
    while frame is not None:
      if name in frame._bindings:
        value = frame._bindings[name]
        if value is _UNSET:
          # Only reachable while a recursive binding is still being built
          raise UndefinedNameError(name, position)
        return value
      frame = frame.parent
    raise UndefinedNameError(name, position)

  def contains(self, name: str) -> bool:
    frame = self
    while frame is not None:
      if name in frame._bindings:
        return True
      frame = frame.parent
    return False

  def bind(self, name: str, value: Any) -> 'Environment':
    """Return a new child frame with name bound to value"""
    return Environment({name: value}, self)

  def bind_all(self, names: Iterable[str], values: Iterable[Any]) -> 'Environment':
    """Return one new child frame binding every name to its value"""
    return Environment(dict(zip(names, values)), self)

  def bind_recursive(self, name: str, build: Callable[['Environment'], Any]) -> 'Environment':
    """Return a child frame whose binding for name may refer to the frame itself

    build receives the new frame and returns the value; the slot is filled
    exactly once, right after build returns.
    """
    frame = Environment({name: _UNSET}, self)
    value = build(frame)
    frame._fill(name, value)
    return frame

  def _fill(self, name: str, value: Any) -> None:
    if self._bindings.get(name, None) is not _UNSET:
      raise RuntimeError(f"binding '{name}' is already set")
    self._bindings[name] = value

  def depth(self) -> int:
    count = 0
    frame = self.parent
    while frame is not None:
      count += 1
      frame = frame.parent
    return count

  def __repr__(self) -> str:
    return f"Environment({list(self._bindings)}, depth={self.depth()})"


def create_global_env() -> Environment:
  """Create the root frame every program starts from

  Built-ins are not stored here; the evaluator falls back to them when a
  name is not bound anywhere in the chain, so user bindings shadow them.
  """
  return Environment()
