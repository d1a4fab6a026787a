"""Element context used when the manager runs as a standalone service."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, Dict, List

LOGGER = logging.getLogger(__name__)

MAX_MESSAGES = 50


@dataclass(slots=True, frozen=True)
class OperatorMessage:
    text: str
    shown_at: datetime

    def as_dict(self) -> Dict[str, str]:
        return {
            "text": self.text,
            "shownAt": self.shown_at.isoformat(timespec="seconds"),
        }


@dataclass
class LocalElementContext:
    """Logs operator messages and keeps the most recent ones for display."""

    agent_id: int
    element_id: int
    messages: Deque[OperatorMessage] = field(
        default_factory=lambda: deque(maxlen=MAX_MESSAGES)
    )

    def show_information_message(self, message: str) -> None:
        LOGGER.warning("Operator notice for %s/%s: %s", self.agent_id, self.element_id, message)
        self.messages.append(
            OperatorMessage(text=message, shown_at=datetime.now(timezone.utc))
        )

    def recent_messages(self) -> List[Dict[str, str]]:
        return [message.as_dict() for message in self.messages]
