#!/usr/bin/env python3

# Entry of tinysh

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional

try:
    import readline  # type: ignore
except Exception:  # pragma: no cover - fallback when readline unavailable
    readline = None

READLINE_ACTIVE = bool(readline)

PROMPT = "$ "
PROMPT_ENV = "TINYSH_PROMPT"

from ops import ShellSession, execute_line  # local module in the same folder
from scanner import ScanError, format_tokens, scan


def get_prompt(override: Optional[str] = None) -> str:
    """Prompt to show: --prompt, then $TINYSH_PROMPT, then the default."""
    if override is not None:
        return override
    return os.environ.get(PROMPT_ENV) or PROMPT


def setup_readline() -> None:
    if not READLINE_ACTIVE:
        return
    try:
        readline.parse_and_bind("set editing-mode emacs")
        readline.parse_and_bind("Control-l: clear-screen")
    except Exception:
        pass


def show_tokens(line: str) -> int:
    try:
        tokens = scan(line)
    except ScanError as e:
        print(f"tinysh: {e}", file=sys.stderr)
        return 2
    print(format_tokens(tokens))
    return 0


def run_line(line: str, session: ShellSession, *, tokens_only: bool = False) -> int:
    if tokens_only:
        return show_tokens(line)
    return execute_line(line, session)


def repl(session: Optional[ShellSession] = None, prompt: Optional[str] = None, tokens_only: bool = False) -> int:
    session = session or ShellSession(inherit_env=True)
    prompt = get_prompt(prompt)

    setup_readline()

    while True:
        try:
            line = input(prompt)
        except EOFError:
            # Ctrl-D on empty line -> exit
            print()
            break
        except KeyboardInterrupt:
            # Ctrl-C at prompt -> new line and continue
            print()
            continue

        line = line.strip()
        if line == "":
            continue

        try:
            run_line(line, session, tokens_only=tokens_only)
        except Exception as e:
            print(f"tinysh: error: {e}", file=sys.stderr)
            session.last_exit_code = 1

    return session.last_exit_code


def parse_args(args=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="tinysh - a small interactive command interpreter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tinysh                          # Interactive prompt
  tinysh -c 'echo "hello world"'  # Run one line and exit
  tinysh --tokens                 # Show how each line is split into words

Builtins: cd, echo, exit, pwd, type
"""
    )

    parser.add_argument(
        "--command", "-c",
        metavar="LINE",
        help="Run a single line and exit with its status"
    )
    parser.add_argument(
        "--prompt",
        metavar="TEXT",
        help=f"Prompt to display (default: ${PROMPT_ENV} or {PROMPT!r})"
    )
    parser.add_argument(
        "--tokens",
        action="store_true",
        help="Print the scanned tokens of each line instead of running it"
    )

    return parser.parse_args(args)


def main(argv=None) -> None:
    args = parse_args(argv)
    if args.command is not None:
        session = ShellSession(inherit_env=True)
        sys.exit(run_line(args.command.strip(), session, tokens_only=args.tokens))
    sys.exit(repl(prompt=args.prompt, tokens_only=args.tokens))


if __name__ == "__main__":
    main()
