"""Diagnostic monitoring during validation.

This module handles:
- Classifying diagnostic events by severity and message content
- Holding the sticky abort flag raised by qualifying events
- Scoping event delivery to an explicit subscription handle
- Parsing backend output lines into diagnostic events

The subscription handle only exists between attach() and detach(), so
events can only affect the abort flag while validation is running. Events
may be emitted from another thread; the flag is a threading.Event.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from builder_action.types import LogType

logger = logging.getLogger(__name__)

ABORT_SEVERITIES = frozenset({LogType.ERROR, LogType.EXCEPTION, LogType.ASSERT})


@dataclass(frozen=True)
class BenignMessage:
    """Allow-list entry for an error message that must not abort the run.

    Attributes:
        text: Case-sensitive substring to look for.
        prefix_only: Match only at the start of the message.
    """

    text: str
    prefix_only: bool = False

    def matches(self, message: str) -> bool:
        """Return True if the message matches this entry."""
        if self.prefix_only:
            return message.startswith(self.text)
        return self.text in message


# Errors raised by rendering features that are unavailable in headless runs
BENIGN_MESSAGES: tuple[BenignMessage, ...] = (
    BenignMessage("Video shaders not found.", prefix_only=True),
    BenignMessage(
        "has an unsupported or invalid shader. Texture will not be rendered."
    ),
)


@dataclass(frozen=True)
class DiagnosticEvent:
    """A severity-tagged message emitted by the backend.

    Attributes:
        message: Message text.
        stacktrace: Stack context, possibly empty.
        severity: Severity of the event.
    """

    message: str
    stacktrace: str
    severity: LogType


def is_abort_triggering(
    event: DiagnosticEvent,
    benign_messages: tuple[BenignMessage, ...] = BENIGN_MESSAGES,
) -> bool:
    """Decide whether an event must abort the build.

    Args:
        event: Diagnostic event to classify.
        benign_messages: Allow-list of messages to ignore.

    Returns:
        True for error, exception and assert events that are not allow-listed.
    """
    if event.severity not in ABORT_SEVERITIES:
        return False
    return not any(entry.matches(event.message) for entry in benign_messages)


class DiagnosticSubscription:
    """Handle through which events reach a monitor while it is attached."""

    def __init__(self, monitor: DiagnosticMonitor) -> None:
        self._monitor = monitor
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        """Whether the subscription no longer delivers events."""
        return self._closed.is_set()

    def emit(self, event: DiagnosticEvent) -> None:
        """Deliver an event to the monitor; ignored once closed."""
        if self.closed:
            return
        self._monitor.observe(event)

    __call__ = emit

    def close(self) -> None:
        self._closed.set()


class DiagnosticMonitor:
    """Watches diagnostic events and raises a sticky abort flag."""

    def __init__(
        self, benign_messages: tuple[BenignMessage, ...] = BENIGN_MESSAGES
    ) -> None:
        self._benign_messages = benign_messages
        self._abort = threading.Event()
        self._subscription: DiagnosticSubscription | None = None

    @property
    def abort_requested(self) -> bool:
        """Whether a qualifying event has been observed."""
        return self._abort.is_set()

    def observe(self, event: DiagnosticEvent) -> None:
        """Classify one event, setting the abort flag if it qualifies."""
        if is_abort_triggering(event, self._benign_messages):
            self._abort.set()

    def attach(self) -> DiagnosticSubscription:
        """Begin observing; returns the handle events are emitted through.

        Raises:
            RuntimeError: If the monitor is already attached.
        """
        if self._subscription is not None:
            raise RuntimeError("Diagnostic monitor is already attached")
        self._abort.clear()
        self._subscription = DiagnosticSubscription(self)
        logger.debug("Diagnostic monitor attached")
        return self._subscription

    def detach(self) -> None:
        """Stop observing; later events on the old handle are dropped."""
        if self._subscription is None:
            return
        self._subscription.close()
        self._subscription = None
        logger.debug("Diagnostic monitor detached")

    @contextmanager
    def monitoring(self) -> Iterator[DiagnosticSubscription]:
        """Attach for the duration of a with-block."""
        subscription = self.attach()
        try:
            yield subscription
        finally:
            self.detach()


_TAGGED_LINE = re.compile(
    r"^\[(?P<severity>Error|Exception|Assert|Warning|Log)\]\s?(?P<message>.*)$"
)


def parse_diagnostic_line(line: str, stacktrace: str = "") -> DiagnosticEvent:
    """Turn one backend output line into a diagnostic event.

    Lines tagged ``[Error]``, ``[Exception]``, ``[Assert]``, ``[Warning]``
    or ``[Log]`` carry that severity. Untagged lines are plain log output.

    Args:
        line: Output line without trailing newline.
        stacktrace: Optional stack context.

    Returns:
        Parsed DiagnosticEvent.
    """
    match = _TAGGED_LINE.match(line)
    if match is None:
        return DiagnosticEvent(
            message=line, stacktrace=stacktrace, severity=LogType.LOG
        )
    return DiagnosticEvent(
        message=match.group("message"),
        stacktrace=stacktrace,
        severity=LogType(match.group("severity").lower()),
    )


__all__ = [
    "ABORT_SEVERITIES",
    "BENIGN_MESSAGES",
    "BenignMessage",
    "DiagnosticEvent",
    "DiagnosticMonitor",
    "DiagnosticSubscription",
    "is_abort_triggering",
    "parse_diagnostic_line",
]
