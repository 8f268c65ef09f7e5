"""
Yex Programming Language - Main Entry Point
Runs scripts, shows their tokens or syntax tree, or starts the interactive mode
"""

import sys
import argparse
import logging
import os
import traceback
from typing import List, Optional

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import YexError, render_error
from interpreter import YexInterpreter, create_interpreter
from lexing import KEYWORDS, token_summary
from parsing import pretty_print_ast
from stdlib import BUILTINS, yex_repr

VERSION = "Yex v0.1.0"
REPL_FILENAME = "<repl>"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='yex',
      description='Yex - a small expression-oriented functional language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.yex              # Run a Yex script
  %(prog)s -i                      # Interactive mode
  %(prog)s --tokens script.yex     # Show the token stream
  %(prog)s --parse script.yex      # Show the syntax tree
  %(prog)s --debug script.yex      # Run with debug logging
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Yex script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Tokenize file and show the tokens'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the syntax tree'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug logging and internal tracebacks'
  )

  parser.add_argument(
      '--max-depth',
      type=int,
      default=None,
      metavar='N',
      help='Fail with a stack overflow after N nested calls'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def configure_logging(debug: bool = False) -> None:
  """Send log records to stderr so they never mix with puts output"""
  logging.basicConfig(
      level=logging.DEBUG if debug else logging.WARNING,
      format="%(levelname)s %(name)s: %(message)s",
      stream=sys.stderr
  )


def read_source(script_path: str) -> Optional[str]:
  """Read a script, reporting problems on stderr; None when unreadable"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
    print("  Hint: Check the file path and make sure the file exists", file=sys.stderr)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
  except IsADirectoryError:
    print(f"Error: '{script_path}' is a directory", file=sys.stderr)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
    print("  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
  return None


def report_error(error: YexError, source: str, filename: str) -> None:
  sys.stdout.flush()
  print(render_error(error, source, filename), file=sys.stderr, end="")


def show_tokens(script_path: str, debug: bool = False) -> int:
  """Tokenize a Yex script file and print one token per line"""
  source = read_source(script_path)
  if source is None:
    return 1

  interpreter = create_interpreter(debug=debug)
  try:
    for token in interpreter.tokens(source, script_path):
      position, token_type, lexeme = token_summary(token)
      print(f"{position:>8}  {token_type:<12} {lexeme}")
  except YexError as e:
    report_error(e, source, script_path)
    return 1
  return 0


def show_ast(script_path: str, debug: bool = False) -> int:
  """Parse a Yex script file and print its syntax tree"""
  source = read_source(script_path)
  if source is None:
    return 1

  interpreter = create_interpreter(debug=debug)
  try:
    print(pretty_print_ast(interpreter.parse(source, script_path)))
  except YexError as e:
    report_error(e, source, script_path)
    return 1
  except RecursionError:
    print(f"Error: syntax tree of '{script_path}' is too deep to display", file=sys.stderr)
    return 1
  return 0


def run_script_file(script_path: str, debug: bool = False, max_depth: Optional[int] = None) -> int:
  """Run a Yex script file; returns the process exit status"""
  source = read_source(script_path)
  if source is None:
    return 1

  interpreter = create_interpreter(debug=debug, max_depth=max_depth)
  try:
    interpreter.run_string(source, script_path)
  except YexError as e:
    report_error(e, source, script_path)
    return 1
  except Exception as e:
    print(f"Internal error while executing '{script_path}': {e}", file=sys.stderr)
    if debug:
      traceback.print_exc()
    return 1
  return 0


def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.yex_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    # First run, nothing to load yet
    pass
  readline.set_history_length(1000)

  completions = list(KEYWORDS) + list(BUILTINS) + [":tokens", ":parse", ":help", "exit"]

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def print_repl_help() -> None:
  print("REPL Commands:")
  print("  :tokens <expr>    - Show the tokens of an expression")
  print("  :parse <expr>     - Show the syntax tree of an expression")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print('  puts("hi")                       - Print a value')
  print("  let x = 2 in x * x               - Value binding")
  print("  let double n = n + n in double(4) - Named function")
  print("  (fn a b = a + b)(1, 2)           - Anonymous function")
  print("  if n <= 1 then 1 else 2          - Conditional (needs a Boolean)")
  print("  true and not false or nil == nil - Booleans and comparisons")


def handle_repl_line(interpreter: YexInterpreter, line: str) -> bool:
  """Run one REPL line; returns False when the session should end"""
  code = line.strip()

  if not code:
    return True

  if code == "exit":
    return False

  if code == ":help":
    print_repl_help()
    return True

  try:
    if code.startswith(":tokens "):
      for token in interpreter.tokens(code[8:], REPL_FILENAME):
        print(f"  {token}")
    elif code.startswith(":parse "):
      print(pretty_print_ast(interpreter.parse(code[7:], REPL_FILENAME)))
    else:
      value = interpreter.run_string(code, REPL_FILENAME)
      print(f">> {yex_repr(value)}")
  except YexError as e:
    source = code.split(" ", 1)[1] if code.startswith(":") else code
    report_error(e, source, REPL_FILENAME)
  except Exception as e:
    sys.stdout.flush()
    print(f"Internal error: {e}", file=sys.stderr)
    if interpreter.debug:
      traceback.print_exc()

  return True


def run_interactive_mode(debug: bool = False, max_depth: Optional[int] = None) -> None:
  """Run Yex in interactive mode; every line is a whole program"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  print()

  setup_readline()
  interpreter = create_interpreter(debug=debug, max_depth=max_depth)

  while True:
    try:
      line = input("yex> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if not handle_repl_line(interpreter, line):
      break


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Yex"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)
  configure_logging(args.debug)

  if args.script:
    if args.tokens:
      status = show_tokens(args.script, debug=args.debug)
    elif args.parse:
      status = show_ast(args.script, debug=args.debug)
    else:
      status = run_script_file(args.script, debug=args.debug, max_depth=args.max_depth)
    sys.exit(status)

  if args.tokens or args.parse:
    arg_parser.error("--tokens and --parse need a script file")

  run_interactive_mode(debug=args.debug, max_depth=args.max_depth)


if __name__ == "__main__":
  main()
