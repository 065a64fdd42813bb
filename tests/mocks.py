"""In-memory fakes for the topology services."""

import asyncio

from app.models.network import ElementStatus, NetworkElementType
from app.schemas.topology import ElementRef, NetworkElement


def ref(element_type: NetworkElementType, business_id: str, port: str | None = None) -> ElementRef:
    return ElementRef(element_type=element_type, business_id=business_id, port=port)


def element(
    element_type: NetworkElementType,
    business_id: str,
    *,
    parent: tuple[NetworkElementType, str] | None = None,
    split_ratio: str | None = None,
    outputs: list[tuple[NetworkElementType, str]] | None = None,
    status: ElementStatus = ElementStatus.active,
) -> NetworkElement:
    return NetworkElement(
        element_type=element_type,
        business_id=business_id,
        split_ratio=split_ratio,
        status=status,
        input=ref(*parent) if parent else None,
        outputs=tuple(ref(*item) for item in outputs or []),
    )


class FakeNetworkElementRepository:
    """Repository backed by a list of elements.

    Records every call, can fail or stall on demand and tracks how many
    lookups were in flight at the same time and which ones were cancelled.
    """

    def __init__(self, elements: list[NetworkElement] | None = None, delay: float = 0.0):
        self.elements: list[NetworkElement] = list(elements or [])
        self.delay = delay
        self.calls: list[tuple] = []
        self.fail_on: set[tuple] = set()
        self.delays: dict[tuple, float] = {}
        self.cancelled: list[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add(self, *elements: NetworkElement) -> None:
        self.elements.extend(elements)

    async def _enter(self, call: tuple) -> None:
        self.calls.append(call)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(call, self.delay))
        except asyncio.CancelledError:
            self.cancelled.append(call)
            raise
        finally:
            self.in_flight -= 1
        if call in self.fail_on:
            raise ConnectionError(f"lookup failed: {call}")

    async def find_by_input(self, element_type, parent_type, parent_business_id):
        await self._enter(("find_by_input", element_type, parent_type, parent_business_id))
        return [
            item
            for item in self.elements
            if item.element_type == element_type
            and item.input is not None
            and item.input.element_type == parent_type
            and item.input.business_id == parent_business_id
        ]

    async def find_by_business_id(self, element_type, business_id):
        await self._enter(("find_by_business_id", element_type, business_id))
        for item in self.elements:
            if item.element_type == element_type and item.business_id == business_id:
                return item
        return None

    async def find_customers_by_network_input(self, terminal_type, terminal_business_id):
        await self._enter(("find_customers", terminal_type, terminal_business_id))
        return [
            item
            for item in self.elements
            if item.element_type == NetworkElementType.customer
            and item.input is not None
            and item.input.element_type == terminal_type
            and item.input.business_id == terminal_business_id
        ]

    async def count(self, element_type, status=None):
        await self._enter(("count", element_type, status))
        return sum(
            1
            for item in self.elements
            if item.element_type == element_type and (status is None or item.status == status)
        )
