from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class EmailMessage:
    to: List[str]
    subject: str
    html: str
    reply_to: Optional[str] = None
    tags: List[str] = field(default_factory=list)


class BaseEmailClient(ABC):
    """Transactional email sender. ``send`` raises on any delivery failure."""

    @property
    @abstractmethod
    def provider(self) -> str:
        ...

    @abstractmethod
    async def send(self, message: EmailMessage) -> Optional[str]:
        """Deliver *message*; returns the provider message id when there is one."""
        ...
