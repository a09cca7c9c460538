from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Protocol, Tuple

logger = logging.getLogger(__name__)

OUTBOX_SIZE = 50


class Mailer(Protocol):
    def send(self, *, to: str, subject: str, body: str) -> bool:
        raise NotImplementedError


class LoggingMailer:
    """Mailer that writes messages to the log instead of an SMTP server."""

    def __init__(self, sender: str = "no-reply@staff-management.local", *, keep_last: int = OUTBOX_SIZE):
        self._sender = sender
        # most recent messages only
        self.outbox: Deque[Tuple[str, str, str]] = deque(maxlen=keep_last)

    def send(self, *, to: str, subject: str, body: str) -> bool:
        self.outbox.append((to, subject, body))
        logger.info("Mail from=%s to=%s subject=%r", self._sender, to, subject)
        logger.debug("Mail body:\n%s", body)
        return True
