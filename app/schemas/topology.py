from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field

from app.models.network import ElementStatus, NetworkElementType


class TopologyType(enum.Enum):
    direct = "direct"
    tube_system = "tube_system"
    custom = "custom"


class ElementRef(BaseModel):
    """Weak ``(type, business id)`` pointer between stored elements."""

    model_config = ConfigDict(frozen=True)

    element_type: NetworkElementType
    business_id: str = Field(min_length=1)
    port: str | None = None
    description: str | None = None

    def matches(self, element: NetworkElement) -> bool:
        return (
            self.element_type == element.element_type
            and self.business_id == element.business_id
        )


class NetworkElement(BaseModel):
    model_config = ConfigDict(frozen=True)

    element_type: NetworkElementType
    business_id: str
    name: str | None = None
    status: ElementStatus = ElementStatus.active
    split_ratio: str | None = None
    technology: str | None = None
    input: ElementRef | None = None
    outputs: tuple[ElementRef, ...] = ()

    @property
    def ref(self) -> ElementRef:
        return ElementRef(element_type=self.element_type, business_id=self.business_id)


class Stage(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1)
    element_type: NetworkElementType
    splitter_label: str
    stage_loss_db: float
    cumulative_loss_db: float
    output_ports: int = Field(ge=0)
    can_extend: bool


class TopologyPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    topology_type: TopologyType
    total_loss_db: float
    stages: tuple[Stage, ...] = ()
    max_subscribers: int
    is_valid: bool
    message: str


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: tuple[str, ...] = ()


class AnalyzedStage(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: int = Field(ge=1)
    device_type: NetworkElementType
    device_id: str
    splitter_label: str | None
    loss_db: float
    cumulative_loss_db: float


class ExistingTopologyAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    root: ElementRef
    total_loss_db: float
    stages: tuple[AnalyzedStage, ...] = ()
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


class DiagramConnection(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    count: int


class DiagramStage(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    element_type: NetworkElementType
    device_name: str
    splitter_label: str
    stage_loss_db: float
    cumulative_loss_db: float
    output_ports: int
    can_extend: bool
    connections: tuple[DiagramConnection, ...] = ()


class TopologyDiagram(BaseModel):
    model_config = ConfigDict(frozen=True)

    topology_type: TopologyType
    total_loss_db: float
    stages: tuple[DiagramStage, ...] = ()
    message: str


class TopologyNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    element: NetworkElement
    stage_loss_db: float = 0.0
    cumulative_loss_db: float = 0.0
    connected_devices: dict[NetworkElementType, tuple[TopologyNode, ...]] = Field(
        default_factory=dict
    )

    def children(self, element_type: NetworkElementType) -> tuple[TopologyNode, ...]:
        return self.connected_devices.get(element_type, ())


TopologyNode.model_rebuild()


class TopologyTree(BaseModel):
    model_config = ConfigDict(frozen=True)

    root: TopologyNode

    def walk(self):
        """Yield every node depth-first, parents before children."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            for element_type in reversed(list(node.connected_devices)):
                stack.extend(reversed(node.connected_devices[element_type]))

    def count(self, element_type: NetworkElementType) -> int:
        return sum(1 for node in self.walk() if node.element.element_type == element_type)


class ElementChildren(BaseModel):
    model_config = ConfigDict(frozen=True)

    element: NetworkElement
    input_device: NetworkElement | None = None
    connected_devices: dict[NetworkElementType, tuple[NetworkElement, ...]] = Field(
        default_factory=dict
    )


class ElementCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    active: int = 0


class NetworkStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    counts: dict[NetworkElementType, ElementCount] = Field(default_factory=dict)

    def total(self, element_type: NetworkElementType) -> int:
        count = self.counts.get(element_type)
        return count.total if count else 0
