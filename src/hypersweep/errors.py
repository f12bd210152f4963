# Copyright (c) Syntropy Systems
"""Error types raised by hypersweep."""
from __future__ import annotations


class HypersweepError(Exception):
    """Base class for all hypersweep errors."""


class InvalidArgument(HypersweepError, ValueError):
    """A distribution, policy or configuration parameter is out of range.

    Raised synchronously at construction time. Not retryable.
    """


class UnsupportedDistributionForStrategy(InvalidArgument):
    """A distribution cannot be used with the chosen sampling strategy."""

    def __init__(self, parameter: str, tag: str, strategy: str) -> None:
        self.parameter = parameter
        self.tag = tag
        self.strategy = strategy
        super().__init__(
            f"Parameter '{parameter}' uses '{tag}', which {strategy} sampling "
            "does not support"
        )


class SubmissionRejected(HypersweepError):
    """The control plane refused a job (quota, malformed configuration).

    The server's detail message is kept verbatim.
    """

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class TransportError(HypersweepError):
    """Network or authentication failure talking to the control plane.

    Callers may retry with backoff; hypersweep never retries internally.
    """


class NoCompletedRuns(HypersweepError):
    """No child run has reported the primary metric yet."""


class WaitInterrupted(HypersweepError):
    """A blocking wait was stopped by the caller.

    The remote job keeps running.
    """
