from __future__ import annotations


class PulseError(Exception):
    pass


class ParseError(PulseError):
    """Malformed `git log` line or counter output."""


class ExternalToolError(PulseError):
    def __init__(self, message: str, *, command: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.command = list(command or [])
        self.stderr = stderr

    def __str__(self) -> str:
        msg = super().__str__()
        detail = self.stderr.strip()
        if detail:
            return f"{msg}: {detail.splitlines()[-1]}"
        return msg


class PersistenceError(PulseError):
    pass


class ContractViolationError(PulseError, ValueError):
    pass
