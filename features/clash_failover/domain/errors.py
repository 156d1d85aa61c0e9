from __future__ import annotations


class ControllerError(Exception):
    """Base class for every error raised by the failover controller."""


class ConfigurationError(ControllerError):
    """Invalid or missing configuration; fatal at startup."""


class PatternError(ConfigurationError):
    def __init__(self, field_name: str, pattern: str, reason: str) -> None:
        super().__init__(f"invalid {field_name} pattern {pattern!r}: {reason}")
        self.field_name = field_name
        self.pattern = pattern


class TransientError(ControllerError):
    """A call to the control service failed; retried on the next cycle."""


class FetchError(TransientError):
    pass


class ProbeError(TransientError):
    pass


class SwitchError(TransientError):
    pass


class NoCandidateError(ControllerError):
    """The pool is empty or no endpoint satisfies the escalated threshold."""
