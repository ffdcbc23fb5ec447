"""Status notice feed port — where order status changes are announced."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StatusNotice:
    order_id: str
    status: str
    changed_at: datetime


class NoticeFeedPort(ABC):
    """Abstract interface for downstream status notice consumers."""

    @abstractmethod
    def publish(self, notice: StatusNotice) -> None:
        """Hand one status notice to downstream notification logic."""
        ...
