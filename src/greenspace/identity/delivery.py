"""Confirmation code delivery Protocol and mock implementation."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from greenspace.identity.models import CodeDelivery

logger = logging.getLogger(__name__)


@runtime_checkable
class CodeDeliveryService(Protocol):
    """Protocol for services that send confirmation codes to users."""

    def send(self, delivery: CodeDelivery) -> CodeDelivery: ...


class MockCodeDeliveryService:
    """Mock delivery service that records every code instead of sending it.

    ``latest_code`` lets local tooling and tests read back what a user
    would have received.
    """

    def __init__(self) -> None:
        self._deliveries: list[CodeDelivery] = []

    def send(self, delivery: CodeDelivery) -> CodeDelivery:
        delivery.delivered = True
        self._deliveries.append(delivery)
        logger.info(
            "Delivered %s code to %s via %s",
            delivery.purpose.value,
            delivery.details.destination,
            delivery.details.delivery_medium.value,
        )
        return delivery

    def list_for_user(self, username: str) -> list[CodeDelivery]:
        return [d for d in self._deliveries if d.username == username]

    def latest_code(self, destination: str) -> str | None:
        for delivery in reversed(self._deliveries):
            if delivery.details.destination == destination:
                return delivery.code
        return None

    @property
    def count(self) -> int:
        return len(self._deliveries)
