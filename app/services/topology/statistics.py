from __future__ import annotations

from app.models.network import ElementStatus, NetworkElementType
from app.schemas.topology import ElementCount, NetworkStatistics
from app.services.topology.concurrency import gather_or_cancel
from app.services.topology.repository import NetworkElementRepository


async def network_statistics(repository: NetworkElementRepository) -> NetworkStatistics:
    """Total and active element counts for every element type."""
    element_types = list(NetworkElementType)
    results = await gather_or_cancel(
        *(repository.count(element_type) for element_type in element_types),
        *(
            repository.count(element_type, ElementStatus.active)
            for element_type in element_types
        ),
    )
    totals = results[: len(element_types)]
    active = results[len(element_types):]
    return NetworkStatistics(
        counts={
            element_type: ElementCount(total=total, active=active_count)
            for element_type, total, active_count in zip(element_types, totals, active)
        }
    )
