"""Reconstruct the deployed PON tree below an OLT.

Children are found by scanning each child collection for records whose input
reference equals the parent's ``(type, business id)``. All lookups for one
tree level run concurrently and are joined before descending, so the number
of round trips grows with depth (at most five levels) rather than width.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from app.models.network import NetworkElementType
from app.schemas.topology import (
    ElementChildren,
    NetworkElement,
    TopologyNode,
    TopologyTree,
)
from app.services.topology.concurrency import gather_or_cancel
from app.services.topology.errors import TopologyNotFoundError, UnknownSplitterError
from app.services.topology.repository import NetworkElementRepository
from app.services.topology.rules import TopologyRules, configured_rules

logger = logging.getLogger(__name__)

CHILD_TYPES: Mapping[NetworkElementType, tuple[NetworkElementType, ...]] = {
    NetworkElementType.olt: (NetworkElementType.ms, NetworkElementType.fdb),
    NetworkElementType.ms: (NetworkElementType.subms, NetworkElementType.fdb),
    NetworkElementType.subms: (NetworkElementType.fdb,),
    NetworkElementType.fdb: (NetworkElementType.x2,),
    NetworkElementType.x2: (NetworkElementType.customer,),
    NetworkElementType.customer: (),
}

_SPLITTER_TYPES = (NetworkElementType.ms, NetworkElementType.subms)


class NetworkGraphResolver:
    def __init__(
        self,
        repository: NetworkElementRepository,
        rules: TopologyRules | None = None,
    ):
        self.repository = repository
        self.rules = rules if rules is not None else configured_rules()

    async def resolve_element(
        self, element_type: NetworkElementType, business_id: str
    ) -> NetworkElement:
        element = await self.repository.find_by_business_id(element_type, business_id)
        if element is None:
            raise TopologyNotFoundError(element_type.value, business_id)
        return element

    async def resolve_input(self, element: NetworkElement) -> NetworkElement | None:
        if element.input is None:
            return None
        return await self.repository.find_by_business_id(
            element.input.element_type, element.input.business_id
        )

    async def _lookup(
        self, parent: NetworkElement, child_type: NetworkElementType
    ) -> tuple[NetworkElement, ...]:
        if child_type == NetworkElementType.customer:
            found = await self.repository.find_customers_by_network_input(
                parent.element_type, parent.business_id
            )
        else:
            found = await self.repository.find_by_input(
                child_type, parent.element_type, parent.business_id
            )
        # Repositories may return business-key matches that disagree with
        # the requested pair; keep only genuine attachments.
        children = [
            child
            for child in found
            if child.element_type == child_type and child.input is not None
            and child.input.matches(parent)
        ]
        return tuple(sorted(children, key=lambda child: child.business_id))

    async def resolve_children(self, element: NetworkElement) -> ElementChildren:
        """Single-level view: the element, its upstream device and direct children."""
        child_types = CHILD_TYPES[element.element_type]
        input_device, *found = await gather_or_cancel(
            self.resolve_input(element),
            *(self._lookup(element, child_type) for child_type in child_types),
        )
        return ElementChildren(
            element=element,
            input_device=input_device,
            connected_devices=dict(zip(child_types, found)),
        )

    def _stage_loss(self, element: NetworkElement) -> float:
        if element.element_type not in _SPLITTER_TYPES:
            return 0.0
        try:
            return self.rules.loss_of(element.split_ratio)
        except UnknownSplitterError:
            logger.warning(
                "Unknown splitter type %r on %s %s",
                element.split_ratio,
                element.element_type.value,
                element.business_id,
            )
            return 0.0

    async def resolve_topology(self, olt_business_id: str) -> TopologyTree:
        root = await self.resolve_element(NetworkElementType.olt, olt_business_id)
        return await self.build_tree(root)

    async def build_tree(self, root: NetworkElement) -> TopologyTree:
        """Materialize the tree below ``root``.

        Repository errors and cancellation propagate; a partially built tree
        is never returned.
        """
        entries: list[_Entry] = [_Entry(element=root, cumulative_loss_db=self._stage_loss(root))]
        level = [0]
        while level:
            pending = [
                (index, child_type)
                for index in level
                for child_type in CHILD_TYPES[entries[index].element.element_type]
            ]
            results = await gather_or_cancel(
                *(self._lookup(entries[index].element, child_type) for index, child_type in pending)
            )

            next_level = []
            for (index, child_type), children in zip(pending, results):
                parent = entries[index]
                parent.children[child_type] = []
                for child in children:
                    entries.append(
                        _Entry(
                            element=child,
                            cumulative_loss_db=parent.cumulative_loss_db + self._stage_loss(child),
                        )
                    )
                    parent.children[child_type].append(len(entries) - 1)
                    next_level.append(len(entries) - 1)
            level = next_level

        # Children always have higher indexes than their parent.
        nodes: dict[int, TopologyNode] = {}
        for index in range(len(entries) - 1, -1, -1):
            entry = entries[index]
            nodes[index] = TopologyNode(
                element=entry.element,
                stage_loss_db=self._stage_loss(entry.element),
                cumulative_loss_db=entry.cumulative_loss_db,
                connected_devices={
                    child_type: tuple(nodes[child] for child in child_indexes)
                    for child_type, child_indexes in entry.children.items()
                },
            )

        logger.info(
            "Resolved topology for %s %s: %d elements",
            root.element_type.value,
            root.business_id,
            len(entries),
        )
        return TopologyTree(root=nodes[0])


@dataclass
class _Entry:
    element: NetworkElement
    cumulative_loss_db: float
    children: dict[NetworkElementType, list[int]] = field(default_factory=dict)
