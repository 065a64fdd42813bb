from __future__ import annotations

from app.models.network import NetworkElementType
from app.schemas.topology import (
    DiagramConnection,
    DiagramStage,
    Stage,
    TopologyDiagram,
    TopologyPlan,
)
from app.services.topology.errors import UnknownTechnologyError
from app.services.topology.rules import TopologyRules, configured_rules

DEVICE_PREFIXES = {
    NetworkElementType.olt: "OLT",
    NetworkElementType.ms: "MS",
    NetworkElementType.subms: "SUBMS",
    NetworkElementType.fdb: "FDB",
    NetworkElementType.x2: "X2",
}


def recommend(
    subscriber_count: int, technology: str, rules: TopologyRules | None = None
) -> list[str]:
    """Human-readable guidance for serving ``subscriber_count`` on ``technology``."""
    if rules is None:
        rules = configured_rules()
    recommendations: list[str] = []
    if subscriber_count < rules.subscriber_threshold:
        recommendations.append("Use DIRECT topology - no passive elements needed")
        recommendations.append("Connect clients directly to OLT port")
    else:
        primary_loss = abs(rules.loss_of(rules.tube_primary))
        secondary_loss = abs(rules.loss_of(rules.tube_secondary))
        ceiling = rules.output_ports_of(rules.tube_primary) * rules.output_ports_of(
            rules.tube_secondary
        )
        recommendations.append(
            f"Use TUBE SYSTEM topology: {rules.tube_primary} -> "
            f"{rules.tube_secondary_count}x{rules.tube_secondary}"
        )
        recommendations.append(
            f"Total loss will be {primary_loss + secondary_loss:g} dB "
            f"({primary_loss:g} + {secondary_loss:g})"
        )
        recommendations.append(
            f"No further passive elements allowed after {rules.max_passive_loss_db:g} dB"
        )
        recommendations.append(f"Maximum {ceiling} subscribers supported")

    try:
        capacity = rules.capacity_of(technology)
    except UnknownTechnologyError:
        recommendations.append(f"Unknown OLT technology {technology!r}; choose a supported PON type")
        return recommendations
    if subscriber_count > capacity:
        recommendations.append(
            f"Consider using multiple OLT ports or {technology.upper()} "
            f"for {subscriber_count} subscribers"
        )
    return recommendations


def device_name(element_type: NetworkElementType, index: int) -> str:
    return f"{DEVICE_PREFIXES.get(element_type, 'DEV')}_{index}"


def _connections(stage: Stage) -> tuple[DiagramConnection, ...]:
    if stage.element_type == NetworkElementType.olt:
        return (DiagramConnection(type="client", count=stage.output_ports),)
    return (DiagramConnection(type="next_stage", count=stage.output_ports),)


def diagram(plan: TopologyPlan) -> TopologyDiagram:
    return TopologyDiagram(
        topology_type=plan.topology_type,
        total_loss_db=plan.total_loss_db,
        stages=tuple(
            DiagramStage(
                index=stage.index,
                element_type=stage.element_type,
                device_name=device_name(stage.element_type, stage.index),
                splitter_label=stage.splitter_label,
                stage_loss_db=stage.stage_loss_db,
                cumulative_loss_db=stage.cumulative_loss_db,
                output_ports=stage.output_ports,
                can_extend=stage.can_extend,
                connections=_connections(stage),
            )
            for stage in plan.stages
        ),
        message=plan.message,
    )
