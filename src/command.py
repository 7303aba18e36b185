# module for command execution

from __future__ import annotations

import os
import subprocess
import sys
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from ops import ShellSession

EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127
EXIT_INTERRUPTED = 130


def _error(msg: str) -> None:
    sys.stderr.write(msg + "\n")
    sys.stderr.flush()


class CommandRunner:
    """Run one external program, relaying its output.

    Lifecycle:
    - Initialize with the argv as typed and the resolved executable path.
    - Call run() to spawn the process and wait for it.
    - After running, access exit_code, stdout, stderr.

    argv[0] is passed to the child unchanged, so the program sees the
    name it was invoked by rather than the full path.
    """

    def __init__(self, argv: List[str], executable: str, env: Optional[Dict[str, str]] = None) -> None:
        self.argv: List[str] = list(argv)
        self.executable: str = executable
        self.env: Optional[Dict[str, str]] = dict(env) if env is not None else None
        self.exit_code: Optional[int] = None
        self.stdout: Optional[str] = None
        self.stderr: Optional[str] = None

    def run(self) -> int:
        try:
            completed = subprocess.run(
                self.argv,
                executable=self.executable,
                capture_output=True,
                text=True,
                errors="replace",
                env=self.env,
            )
        except KeyboardInterrupt:
            self.exit_code = EXIT_INTERRUPTED
            return self.exit_code
        except FileNotFoundError:
            self.stderr = f"{self.argv[0]}: command not found\n"
            self.exit_code = EXIT_NOT_FOUND
            sys.stderr.write(self.stderr)
            sys.stderr.flush()
            return self.exit_code
        except OSError as e:
            # PermissionError, exec format errors and the like
            self.stderr = f"tinysh: {self.argv[0]}: {e.strerror or e}\n"
            self.exit_code = EXIT_NOT_EXECUTABLE
            sys.stderr.write(self.stderr)
            sys.stderr.flush()
            return self.exit_code

        self.stdout = completed.stdout
        self.stderr = completed.stderr
        if self.stdout:
            sys.stdout.write(self.stdout)
            sys.stdout.flush()
        if self.stderr:
            sys.stderr.write(self.stderr)
            sys.stderr.flush()

        code = completed.returncode
        if code < 0:
            # killed by a signal
            code = 128 - code
        self.exit_code = code
        return self.exit_code


# --- Builtins ---

def _echo(args: List[str], session: ShellSession) -> int:
    sys.stdout.write(" ".join(args[1:]) + "\n")
    sys.stdout.flush()
    return 0


def _exit(args: List[str], session: ShellSession) -> int:
    if len(args) < 2:
        raise SystemExit(session.last_exit_code)
    try:
        code = int(args[1])
    except ValueError:
        _error(f"exit: {args[1]}: numeric argument required")
        raise SystemExit(2) from None
    raise SystemExit(code & 0xFF)


def _type(args: List[str], session: ShellSession) -> int:
    rc = 0
    for name in args[1:]:
        if is_builtin(name):
            print(f"{name} is a shell builtin")
            continue
        path = session.find_executable(name)
        if path:
            print(f"{name} is {path}")
        else:
            print(f"{name}: not found")
            rc = 1
    return rc


def _pwd(args: List[str], session: ShellSession) -> int:
    try:
        print(os.getcwd())
    except OSError as e:
        _error(f"pwd: {e.strerror or e}")
        return 1
    return 0


def _cd(args: List[str], session: ShellSession) -> int:
    if len(args) > 2:
        _error("cd: too many arguments")
        return 1
    target = args[1] if len(args) == 2 else "~"
    if target == "~":
        path = session.home()
    elif target.startswith("~/"):
        path = os.path.join(session.home(), target[2:])
    else:
        path = target
    try:
        session.chdir(path)
    except NotADirectoryError:
        _error(f"cd: {target}: Not a directory")
        return 1
    except FileNotFoundError:
        _error(f"cd: {target}: No such file or directory")
        return 1
    except PermissionError:
        _error(f"cd: {target}: Permission denied")
        return 1
    return 0


BUILTIN_COMMANDS: Dict[str, Callable[[List[str], ShellSession], int]] = {
    'echo': _echo,
    'exit': _exit,
    'type': _type,
    'pwd': _pwd,
    'cd': _cd,
}


def is_builtin(name: str) -> bool:
    return name in BUILTIN_COMMANDS


# --- Dispatch ---

def run_external(args: List[str], session: ShellSession) -> int:
    path = session.find_executable(args[0])
    if path is None:
        _error(f"{args[0]}: command not found")
        return EXIT_NOT_FOUND
    runner = CommandRunner(args, executable=path, env=session.get_env())
    return runner.run()


def run(args: List[str], session: ShellSession) -> int:
    """Run ``args[0]`` as a builtin or external program; return its status."""
    handler = BUILTIN_COMMANDS.get(args[0])
    if handler is not None:
        return handler(args, session)
    return run_external(args, session)
