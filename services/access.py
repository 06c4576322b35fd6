"""Allow-list check for signed-in users."""

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, Optional

logger = logging.getLogger(__name__)


class AccessList:
    """Exact-membership allow-list of e-mail addresses."""

    def __init__(self, emails: Iterable[str]):
        self._emails: FrozenSet[str] = frozenset(email.strip() for email in emails if email and email.strip())

    @classmethod
    def from_csv(cls, value: Optional[str]) -> "AccessList":
        return cls((value or "").split(","))

    def __len__(self) -> int:
        return len(self._emails)

    def is_authorized(self, email: Optional[str]) -> bool:
        if not email:
            return False
        allowed = email.strip() in self._emails
        if allowed:
            logger.info("Access granted to %s", email)
        else:
            logger.warning("Access denied for %s", email)
        return allowed


__all__ = ["AccessList"]
