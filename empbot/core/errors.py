"""Exceptions raised by the webhook pipeline."""

from typing import List, Tuple


class MessagingError(Exception):
    """The messaging platform rejected or failed a reply."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class SignatureError(Exception):
    """The webhook signature header is missing or does not match the body."""


class BatchProcessingError(Exception):
    """One or more events in a webhook batch raised.

    Every event has already settled when this is raised, so replies for the
    events that succeeded were sent.
    """

    def __init__(self, total: int, failures: List[Tuple[int, BaseException]]):
        self.total = total
        self.failures = failures
        super().__init__(f"{len(failures)} of {total} events failed")
