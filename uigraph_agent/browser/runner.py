"""Runs generated Playwright scripts in a child Python process."""
import asyncio
import logging
import os
import re
import sys
from typing import Optional, Tuple

from pydantic import BaseModel

TRACEBACK_HEADER = "Traceback (most recent call last):"


class ExecutionResult(BaseModel):
    success: bool
    output: str = ""
    error_message: Optional[str] = None
    stack_trace: Optional[str] = None


def parse_python_error(stderr: str, returncode: int = 1) -> Tuple[str, Optional[str]]:
    """Split a failed run's stderr into (error message, stack trace).

    The error message is the last non-empty line, which for an uncaught
    exception is ``ExceptionType: message``.
    """
    lines = [line for line in stderr.splitlines() if line.strip()]
    error_message = lines[-1].strip() if lines else f"Process exited with code {returncode}"

    index = stderr.rfind(TRACEBACK_HEADER)
    stack_trace = stderr[index:].strip() if index >= 0 else None
    return error_message, stack_trace


class BaseCodeRunner:
    """Executes a source text against a live browser."""

    async def run(self, code: str, name: str = "scenario") -> ExecutionResult:
        raise NotImplementedError


class PlaywrightCodeRunner(BaseCodeRunner):
    def __init__(self, work_dir: str = "./generated", timeout: float = 300, python_executable: str = None):
        self.work_dir = work_dir
        self.timeout = timeout
        self.python_executable = python_executable or sys.executable

    def _script_path(self, name: str) -> str:
        safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", name)
        return os.path.join(self.work_dir, f"{safe_name}.py")

    async def run(self, code: str, name: str = "scenario") -> ExecutionResult:
        os.makedirs(self.work_dir, exist_ok=True)
        path = self._script_path(name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(code)
        logging.info(f"Running generated script {path}")

        process = await asyncio.create_subprocess_exec(
            self.python_executable, path, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logging.warning(f"Script {path} timed out after {self.timeout}s")
            return ExecutionResult(success=False, error_message=f"Execution timed out after {self.timeout}s")

        out = stdout.decode(errors="replace") if stdout else ""
        err = stderr.decode(errors="replace") if stderr else ""
        output = "\n".join(part for part in (out, err) if part)
        logging.debug(f"Script {path} exited with code {process.returncode}")

        if process.returncode == 0:
            return ExecutionResult(success=True, output=output)

        error_message, stack_trace = parse_python_error(err, process.returncode)
        return ExecutionResult(
            success=False, output=output, error_message=error_message, stack_trace=stack_trace
        )
