from __future__ import annotations

import os
import shutil
import sys
from typing import Dict, List, Optional

import command
from scanner import ScanError, WORD, scan

# Status for a line that could not be scanned
EXIT_SCAN_ERROR = 2


class ShellSession:
    """Holds session-wide shell context like environment variables."""

    def __init__(self, inherit_env: bool = True) -> None:
        # String-only environment used as base for subprocesses
        self.env: Dict[str, str] = dict(os.environ) if inherit_env else {}
        self.last_exit_code: int = 0

    def get_env(self) -> Dict[str, str]:
        return dict(self.env)

    def search_path(self) -> List[str]:
        path = self.env.get("PATH", os.defpath)
        return [d for d in path.split(os.pathsep) if d]

    def home(self) -> str:
        return self.env.get("HOME") or os.path.expanduser("~")

    def find_executable(self, name: str) -> Optional[str]:
        """Resolve a command name to an executable path, or None.

        Names with a path separator are taken as paths; anything else is
        looked up in the session's PATH directories, in order.
        """
        if not name:
            return None
        if os.sep in name or (os.altsep and os.altsep in name):
            if os.path.isfile(name) and os.access(name, os.X_OK):
                return os.path.abspath(name)
            return None
        return shutil.which(name, mode=os.F_OK | os.X_OK, path=os.pathsep.join(self.search_path()))

    def chdir(self, target: str) -> None:
        # Raises OSError (FileNotFoundError, NotADirectoryError, ...) on failure
        oldpwd = os.getcwd()
        os.chdir(target)
        self.env["OLDPWD"] = oldpwd
        self.env["PWD"] = os.getcwd()


def execute_line(line: str, session: ShellSession) -> int:
    try:
        tokens = scan(line)
    except ScanError as e:
        sys.stderr.write(f"tinysh: {e}\n")
        sys.stderr.flush()
        session.last_exit_code = EXIT_SCAN_ERROR
        return EXIT_SCAN_ERROR

    args = [t.text for t in tokens if t.kind == WORD]
    if not args:
        return session.last_exit_code

    session.last_exit_code = command.run(args, session)
    return session.last_exit_code
