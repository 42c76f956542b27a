"""Error hierarchy for the readiness check and the verification harness."""

from __future__ import annotations

from typing import Any


class MqReadyError(Exception):
    """Base exception with a structured error payload."""

    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict for reports."""
        return {
            "error": self.error_code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


class SignalReadError(MqReadyError):
    """The readiness signal could not be read (anything but not-found)."""

    error_code = "SIGNAL_READ_ERROR"
    message = "Unable to read the readiness signal"


class PollDeadlineExceeded(MqReadyError):
    """A poll-until-ready loop ran out of time."""

    error_code = "POLL_DEADLINE_EXCEEDED"
    message = "Target did not become ready in time"

    def __init__(
        self,
        description: str,
        deadline: float,
        attempts: int,
        last_error: BaseException | None = None,
    ):
        self.description = description
        self.deadline = deadline
        self.attempts = attempts
        self.last_error = last_error
        text = f"{description} not ready after {deadline:.1f}s ({attempts} attempts)"
        if last_error is not None:
            text += f": {last_error}"
        super().__init__(
            text,
            details={
                "description": description,
                "deadline": deadline,
                "attempts": attempts,
                "last_error": str(last_error) if last_error else None,
            },
        )


class ContainerOperationError(MqReadyError):
    """A container lifecycle operation failed or returned a non-zero exit code."""

    error_code = "CONTAINER_OPERATION_ERROR"
    message = "Container operation failed"

    def __init__(
        self,
        operation: str,
        message: str | None = None,
        exit_code: int | None = None,
        output: str = "",
        container_id: str | None = None,
    ):
        self.operation = operation
        self.exit_code = exit_code
        self.output = output
        self.container_id = container_id
        text = f"{operation} failed"
        if exit_code is not None:
            text += f" (rc={exit_code})"
        if message:
            text += f": {message}"
        super().__init__(
            text,
            details={
                "operation": operation,
                "exit_code": exit_code,
                "output": output[-2000:],
                "container_id": container_id,
            },
        )


class ContainerStateError(MqReadyError):
    """A lifecycle transition was requested from the wrong state."""

    error_code = "CONTAINER_STATE_ERROR"
    message = "Illegal container state transition"


class ExpositionParseError(MqReadyError):
    """A metrics exposition line could not be parsed."""

    error_code = "EXPOSITION_PARSE_ERROR"
    message = "Malformed metrics exposition"

    def __init__(self, line: str, line_number: int, reason: str):
        self.line = line
        self.line_number = line_number
        self.reason = reason
        super().__init__(
            f"line {line_number}: {reason}: {line[:200]!r}",
            details={"line": line[:200], "line_number": line_number, "reason": reason},
        )


class MetricShapeError(AssertionError):
    """Scraped metrics violated one or more shape rules.

    Subclasses AssertionError so pytest reports it as a test failure rather
    than an error.
    """

    def __init__(self, violations: list[Any]):
        self.violations = list(violations)
        lines = [f"{len(self.violations)} metric shape violation(s):"]
        lines.extend(f"  - {v}" for v in self.violations)
        super().__init__("\n".join(lines))
