"""Custom exceptions for pyzfs."""

from typing import List, Optional


class ZfsError(Exception):
    """Base exception for pyzfs errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ExecutionError(ZfsError):
    """External command failed to launch or exited with a nonzero status."""

    def __init__(self, message: str, debug: str = "", stderr: str = "", returncode: Optional[int] = None):
        super().__init__(message)
        self.debug = debug
        self.stderr = stderr
        self.returncode = returncode

    def __str__(self) -> str:
        return f"{self.message}: {self.debug!r} => {self.stderr}"


class FormatError(ZfsError):
    """Command output does not have the expected shape."""

    def __init__(self, message: str, line_number: Optional[int] = None, raw_line: Optional[List[str]] = None):
        super().__init__(message)
        self.line_number = line_number
        self.raw_line = raw_line
