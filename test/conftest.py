"""
Test configuration for Yex interpreter tests
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import run_program


@pytest.fixture
def run():
  """Run a program; returns (value, text written by puts)"""
  def _run(source, **kwargs):
    output = io.StringIO()
    value = run_program(source, output=output, **kwargs)
    return value, output.getvalue()
  return _run


@pytest.fixture
def script(tmp_path):
  """Write source to a .yex file and return its path as a string"""
  def _script(source, name="script.yex"):
    path = tmp_path / name
    path.write_text(source, encoding="utf-8")
    return str(path)
  return _script
