#!/usr/bin/env python3
"""Utilities for driving ``tinysh`` interactively in tests."""

from __future__ import annotations

import os
import queue
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from main import PROMPT as DEFAULT_PROMPT, PROMPT_ENV


@dataclass
class CommandResult:
    """Container for command execution output collected from the REPL."""

    stdout: str
    stderr: str
    output: str


class ShellTester:
    """Lightweight helper for scripting interactions with ``tinysh``."""

    QUIESCENT_DELAY = 0.05

    def __init__(
        self,
        executable: Optional[str] = None,
        cwd: Optional[Path] = None,
        env: Optional[dict[str, str]] = None,
        startup_timeout: float = 5.0,
    ) -> None:
        self.prompt = DEFAULT_PROMPT
        python = executable or sys.executable
        main_script = SRC_DIR / "main.py"
        env_vars = dict(os.environ, PYTHONUNBUFFERED="1")
        env_vars.pop(PROMPT_ENV, None)
        if env:
            env_vars.update(env)
        self.proc = subprocess.Popen(
            [python, str(main_script)],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=0,
            cwd=str(cwd or ROOT),
            env=env_vars,
        )
        if not self.proc.stdin or not self.proc.stdout or not self.proc.stderr:
            raise RuntimeError("Failed to start tinysh subprocess with pipes")

        self.stdout_queue: "queue.Queue[str]" = queue.Queue()
        self.stderr_queue: "queue.Queue[str]" = queue.Queue()
        self._stdout_thread = threading.Thread(target=self._read_stdout, daemon=True)
        self._stderr_thread = threading.Thread(target=self._read_stderr, daemon=True)
        self._stdout_thread.start()
        self._stderr_thread.start()

        # Consume the initial prompt so subsequent reads start cleanly.
        self._collect_until_prompt(timeout=startup_timeout)

    # ------------------------------------------------------------------
    def _read_stdout(self) -> None:
        assert self.proc.stdout is not None
        while True:
            chunk = self.proc.stdout.read(1)
            if not chunk:
                break
            self.stdout_queue.put(chunk)

    def _read_stderr(self) -> None:
        assert self.proc.stderr is not None
        while True:
            chunk = self.proc.stderr.read(1)
            if not chunk:
                break
            self.stderr_queue.put(chunk)

    # ------------------------------------------------------------------
    def _drain_stderr(self) -> str:
        out = ""
        while True:
            try:
                out += self.stderr_queue.get_nowait()
            except queue.Empty:
                return out

    def _collect_until_prompt(self, timeout: float) -> tuple[str, str]:
        start = time.time()
        stdout_buffer = ""
        stderr_buffer = ""
        last_activity = time.time()

        while time.time() - start < timeout:
            got_chunk = False
            try:
                chunk = self.stdout_queue.get(timeout=0.05)
                stdout_buffer += chunk
                last_activity = time.time()
                got_chunk = True
            except queue.Empty:
                pass

            err = self._drain_stderr()
            if err:
                stderr_buffer += err
                last_activity = time.time()
                got_chunk = True

            if stdout_buffer.endswith(self.prompt) and (time.time() - last_activity) >= self.QUIESCENT_DELAY:
                return stdout_buffer[: -len(self.prompt)], stderr_buffer

            if not got_chunk:
                time.sleep(0.01)

        raise TimeoutError("Timed out waiting for tinysh prompt")

    # ------------------------------------------------------------------
    def run(self, cmd: str, timeout: float = 5.0) -> CommandResult:
        if self.proc.poll() is not None:
            raise RuntimeError("tinysh subprocess has exited; cannot run command")

        # Send the command followed by newline to simulate pressing Enter.
        assert self.proc.stdin is not None
        self.proc.stdin.write(cmd + "\n")
        self.proc.stdin.flush()

        stdout_text, stderr_text = self._collect_until_prompt(timeout)
        return CommandResult(stdout=stdout_text, stderr=stderr_text, output=stdout_text + stderr_text)

    def finish(self, cmd: str, timeout: float = 5.0) -> int:
        """Send a line that ends the session (e.g. ``exit 3``) and return the exit status."""
        assert self.proc.stdin is not None
        self.proc.stdin.write(cmd + "\n")
        self.proc.stdin.flush()
        return self.proc.wait(timeout=timeout)

    # ------------------------------------------------------------------
    def close(self, timeout: float = 2.0) -> None:
        if self.proc.poll() is None:
            self.proc.terminate()
            try:
                self.proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                self.proc.kill()
                self.proc.wait()

    def __enter__(self) -> "ShellTester":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()
