"""Validation of planned topologies and analysis of deployed splitter chains."""

from __future__ import annotations

import logging

from app.models.network import NetworkElementType
from app.schemas.topology import (
    AnalyzedStage,
    ElementRef,
    ExistingTopologyAnalysis,
    NetworkElement,
    TopologyPlan,
    TopologyType,
    ValidationResult,
)
from app.services.topology.concurrency import gather_or_cancel
from app.services.topology.errors import UnknownSplitterError
from app.services.topology.repository import NetworkElementRepository
from app.services.topology.rules import TopologyRules, configured_rules

logger = logging.getLogger(__name__)

SPLITTER_TYPES = (NetworkElementType.ms, NetworkElementType.subms)


class TopologyValidator:
    def __init__(self, rules: TopologyRules | None = None):
        self.rules = rules if rules is not None else configured_rules()

    def validate(self, plan: TopologyPlan) -> ValidationResult:
        rules = self.rules
        errors: list[str] = []

        if not plan.is_valid:
            errors.append(plan.message)

        if plan.total_loss_db > rules.max_passive_loss_db:
            errors.append(
                f"Total loss {plan.total_loss_db:g} dB exceeds maximum allowed "
                f"{rules.max_passive_loss_db:g} dB"
            )

        if plan.stages and plan.stages[0].output_ports > plan.max_subscribers:
            errors.append("Topology cannot support required subscriber count")

        # The tube system is a fixed template; any new template needs its own checks here.
        if plan.topology_type == TopologyType.tube_system:
            stages = plan.stages
            if len(stages) != 2:
                errors.append(
                    f"Tube system must have exactly 2 stages: "
                    f"{rules.tube_primary} -> {rules.tube_secondary_count}x{rules.tube_secondary}"
                )
            if not stages or stages[0].splitter_label != rules.tube_primary:
                errors.append(f"Tube system must start with {rules.tube_primary} primary splitter")
            if len(stages) < 2 or stages[1].splitter_label != rules.tube_secondary:
                errors.append(f"Tube system secondary must be {rules.tube_secondary} splitter")

        return ValidationResult(is_valid=not errors, errors=tuple(errors))


class ExistingTopologyAnalyzer:
    """Sum the real splitter loss hanging off a deployed element.

    Referenced splitters are resolved level by level through the repository.
    Splitters listed in one element's ``outputs`` are chained in list order,
    and each resolved splitter continues the chain through its own outputs.
    Unresolvable references are skipped: deployed data is expected to be
    incomplete and the analysis reports on whatever could be resolved.
    """

    def __init__(
        self,
        repository: NetworkElementRepository,
        rules: TopologyRules | None = None,
    ):
        self.repository = repository
        self.rules = rules if rules is not None else configured_rules()

    async def analyze_existing(self, root: NetworkElement) -> ExistingTopologyAnalysis:
        rules = self.rules
        stages: list[AnalyzedStage] = []
        errors: list[str] = []
        warnings: list[str] = []
        worst_loss = 0.0

        seen = {(root.element_type, root.business_id)}
        # (element, stage number, cumulative loss at element)
        frontier: list[tuple[NetworkElement, int, float]] = [(root, 0, 0.0)]

        while frontier:
            # Splitters listed in one element's outputs form a sequence: each
            # one adds its loss to the ones listed before it.
            refs: list[tuple[int, ElementRef]] = []
            for slot, (parent, _, _) in enumerate(frontier):
                for ref in parent.outputs:
                    if ref.element_type not in SPLITTER_TYPES:
                        continue
                    key = (ref.element_type, ref.business_id)
                    if key in seen:
                        logger.warning(
                            "%s %s referenced more than once below %s %s",
                            ref.element_type.value,
                            ref.business_id,
                            root.element_type.value,
                            root.business_id,
                        )
                        warnings.append(
                            f"{ref.element_type.value.upper()} {ref.business_id} is referenced "
                            "more than once; counted only the first time"
                        )
                        continue
                    seen.add(key)
                    refs.append((slot, ref))

            resolved = await gather_or_cancel(
                *(
                    self.repository.find_by_business_id(ref.element_type, ref.business_id)
                    for _, ref in refs
                )
            )

            chains = {
                slot: (stage, cumulative) for slot, (_, stage, cumulative) in enumerate(frontier)
            }
            next_frontier = []
            for (slot, ref), element in zip(refs, resolved):
                parent = frontier[slot][0]
                if element is None:
                    logger.warning(
                        "Skipping unresolved %s %s referenced by %s %s",
                        ref.element_type.value,
                        ref.business_id,
                        parent.element_type.value,
                        parent.business_id,
                    )
                    warnings.append(
                        f"{ref.element_type.value.upper()} {ref.business_id} referenced by "
                        f"{parent.element_type.value.upper()} {parent.business_id} "
                        "could not be resolved and was skipped"
                    )
                    continue
                try:
                    loss = rules.loss_of(element.split_ratio)
                except UnknownSplitterError as exc:
                    errors.append(f"{element.element_type.value.upper()} {element.business_id}: {exc}")
                    loss = 0.0
                stage, cumulative = chains[slot]
                stage, cumulative = stage + 1, cumulative + loss
                chains[slot] = (stage, cumulative)
                stages.append(
                    AnalyzedStage(
                        stage=stage,
                        device_type=element.element_type,
                        device_id=element.business_id,
                        splitter_label=element.split_ratio,
                        loss_db=loss,
                        cumulative_loss_db=cumulative,
                    )
                )
                worst_loss = min(worst_loss, cumulative)
                next_frontier.append((element, stage, cumulative))
            frontier = next_frontier

        total = abs(worst_loss)
        if total > rules.max_passive_loss_db:
            errors.append(
                f"Total loss {total:g} dB exceeds maximum allowed {rules.max_passive_loss_db:g} dB"
            )
        elif rules.is_budget_exhausted(worst_loss):
            warnings.append(
                f"Maximum passive loss of {rules.max_passive_loss_db:g} dB reached. "
                "No further passive elements can be added"
            )

        recommendations: list[str] = []
        if total > rules.max_passive_loss_db:
            recommendations.append(
                f"Remove or replace splitters to cut {total - rules.max_passive_loss_db:g} dB of loss"
            )
        elif rules.is_budget_exhausted(worst_loss):
            recommendations.append("Cannot add more passive elements to this chain")
        else:
            recommendations.append(
                f"Remaining loss budget: {rules.remaining_budget_db(worst_loss):g} dB"
            )
            fitting = [
                label
                for label, loss in sorted(rules.splitter_losses.items(), key=lambda item: -item[1])
                if rules.can_add_passive_element(worst_loss, loss)
            ]
            if fitting:
                recommendations.append(f"Largest splitter that still fits: {fitting[-1]}")

        return ExistingTopologyAnalysis(
            root=root.ref,
            total_loss_db=total,
            stages=tuple(stages),
            is_valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            recommendations=tuple(recommendations),
        )


def validate(plan: TopologyPlan) -> ValidationResult:
    return TopologyValidator().validate(plan)
