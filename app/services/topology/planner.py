"""Topology planning for a single PON port.

Two shapes are ever produced for a plannable request:

- ``direct``: below the subscriber threshold, clients attach straight to the
  OLT port and no passive loss is introduced.
- ``tube_system``: at or above the threshold, a fixed 1x16 primary feeding
  1x4 secondaries. The template's ceiling is 16 x 4 subscribers regardless of
  the requested count.

``custom`` is only used for requests the OLT technology cannot serve.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from app.models.network import NetworkElementType
from app.schemas.topology import Stage, TopologyPlan, TopologyType
from app.services.topology.errors import UnknownTechnologyError
from app.services.topology.rules import TopologyRules, configured_rules

logger = logging.getLogger(__name__)

DIRECT_LABEL = "direct"


class TopologyPlanner:
    def __init__(self, rules: TopologyRules | None = None):
        self.rules = rules if rules is not None else configured_rules()

    def plan(self, subscriber_count: int, technology: str) -> TopologyPlan:
        """Plan the passive layout for ``subscriber_count`` subscribers.

        The caller is expected to reject non-positive counts beforehand.
        Capacity problems are reported through ``is_valid=False``, never raised.
        """
        try:
            capacity = self.rules.capacity_of(technology)
        except UnknownTechnologyError as exc:
            logger.info("Rejecting plan for unknown technology %r", technology)
            return TopologyPlan(
                topology_type=TopologyType.custom,
                total_loss_db=0.0,
                stages=(),
                max_subscribers=0,
                is_valid=False,
                message=str(exc),
            )

        if subscriber_count > capacity:
            logger.debug(
                "Subscriber count %s exceeds %s capacity %s", subscriber_count, technology, capacity
            )
            return TopologyPlan(
                topology_type=TopologyType.custom,
                total_loss_db=0.0,
                stages=(),
                max_subscribers=capacity,
                is_valid=False,
                message=(
                    f"Subscriber count {subscriber_count} exceeds "
                    f"{technology.upper()} capacity limit of {capacity}"
                ),
            )

        if subscriber_count < self.rules.subscriber_threshold:
            return self._direct(subscriber_count)
        return self._tube_system()

    def _direct(self, subscriber_count: int) -> TopologyPlan:
        stage = Stage(
            index=1,
            element_type=NetworkElementType.olt,
            splitter_label=DIRECT_LABEL,
            stage_loss_db=0.0,
            cumulative_loss_db=0.0,
            output_ports=subscriber_count,
            can_extend=False,
        )
        return TopologyPlan(
            topology_type=TopologyType.direct,
            total_loss_db=0.0,
            stages=(stage,),
            max_subscribers=subscriber_count,
            is_valid=True,
            message=(
                f"Direct topology for {subscriber_count} subscribers. "
                "No passive elements needed."
            ),
        )

    def _tube_system(self) -> TopologyPlan:
        rules = self.rules
        primary_loss = rules.loss_of(rules.tube_primary)
        secondary_loss = rules.loss_of(rules.tube_secondary)
        primary_ports = rules.output_ports_of(rules.tube_primary)
        secondary_ports = rules.output_ports_of(rules.tube_secondary)
        cumulative = primary_loss + secondary_loss

        stages = (
            Stage(
                index=1,
                element_type=NetworkElementType.ms,
                splitter_label=rules.tube_primary,
                stage_loss_db=primary_loss,
                cumulative_loss_db=primary_loss,
                output_ports=primary_ports,
                can_extend=not rules.is_budget_exhausted(primary_loss),
            ),
            Stage(
                index=2,
                element_type=NetworkElementType.subms,
                splitter_label=rules.tube_secondary,
                stage_loss_db=secondary_loss,
                cumulative_loss_db=cumulative,
                output_ports=secondary_ports,
                can_extend=not rules.is_budget_exhausted(cumulative),
            ),
        )
        total = abs(cumulative)
        return TopologyPlan(
            topology_type=TopologyType.tube_system,
            total_loss_db=total,
            stages=stages,
            max_subscribers=primary_ports * secondary_ports,
            is_valid=total <= rules.max_passive_loss_db,
            message=(
                f"Tube system topology: {rules.tube_primary} -> "
                f"{rules.tube_secondary_count}x{rules.tube_secondary} "
                f"(total loss: {total:g} dB). No further passive elements allowed."
            ),
        )


def cumulative_loss(stages: Sequence[Stage]) -> float:
    return sum(stage.stage_loss_db for stage in stages)


def max_subscribers_for(stages: Sequence[Stage], rules: TopologyRules | None = None) -> int:
    """Multiply the split outputs of every splitter stage; 0 for no stages."""
    if rules is None:
        rules = configured_rules()
    if not stages:
        return 0
    total = 1
    for stage in stages:
        if stage.splitter_label == DIRECT_LABEL:
            continue
        total *= rules.output_ports_of(stage.splitter_label)
    return total


def plan(subscriber_count: int, technology: str) -> TopologyPlan:
    return TopologyPlanner().plan(subscriber_count, technology)
