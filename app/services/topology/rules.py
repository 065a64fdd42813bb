"""Optical loss and PON capacity rule table.

Splitter insertion losses are negative dB values keyed by split ratio label.
The passive loss budget is a positive magnitude; a chain is within budget
while ``abs(sum(losses)) <= max_passive_loss_db``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from app.config import Settings, settings
from app.services.topology.errors import UnknownSplitterError, UnknownTechnologyError

logger = logging.getLogger(__name__)

SPLITTER_LOSSES_DB: Mapping[str, float] = MappingProxyType(
    {
        "1x2": -3.0,
        "1x4": -7.0,
        "1x8": -10.0,
        "1x16": -13.0,
        "1x32": -17.0,
        "1x64": -20.0,
    }
)

PON_CAPACITY: Mapping[str, int] = MappingProxyType(
    {
        "epon": 64,
        "gpon": 128,
        "xgpon": 128,
        "xgspon": 128,
    }
)

DEFAULT_TECHNOLOGY = "gpon"
SUBSCRIBER_THRESHOLD = 12
MAX_PASSIVE_LOSS_DB = 20.0

TUBE_PRIMARY = "1x16"
TUBE_SECONDARY = "1x4"
TUBE_SECONDARY_COUNT = 4

_RATIO_RE = re.compile(r"^1x(\d+)$")


@dataclass(frozen=True)
class TopologyRules:
    splitter_losses: Mapping[str, float] = field(default_factory=lambda: SPLITTER_LOSSES_DB)
    pon_capacity: Mapping[str, int] = field(default_factory=lambda: PON_CAPACITY)
    subscriber_threshold: int = SUBSCRIBER_THRESHOLD
    max_passive_loss_db: float = MAX_PASSIVE_LOSS_DB
    tube_primary: str = TUBE_PRIMARY
    tube_secondary: str = TUBE_SECONDARY
    tube_secondary_count: int = TUBE_SECONDARY_COUNT
    default_technology: str = DEFAULT_TECHNOLOGY
    strict_splitters: bool = False
    strict_technology: bool = False

    def __post_init__(self):
        object.__setattr__(self, "splitter_losses", MappingProxyType(dict(self.splitter_losses)))
        object.__setattr__(
            self,
            "pon_capacity",
            MappingProxyType({key.lower(): value for key, value in self.pon_capacity.items()}),
        )
        if self.default_technology.lower() not in self.pon_capacity:
            raise ValueError(f"Default technology {self.default_technology!r} has no capacity")

    @classmethod
    def from_settings(cls, settings: Settings) -> TopologyRules:
        return cls(
            subscriber_threshold=settings.topology_subscriber_threshold,
            max_passive_loss_db=settings.topology_max_passive_loss_db,
            strict_splitters=settings.topology_strict_splitters,
            strict_technology=settings.topology_strict_technology,
        )

    def loss_of(self, label: str | None) -> float:
        """Return the insertion loss (negative dB) of a splitter label.

        Unknown labels are treated as a 0 dB passthrough unless
        ``strict_splitters`` is set, in which case UnknownSplitterError is raised.
        """
        loss = self.splitter_losses.get(label or "")
        if loss is None:
            if self.strict_splitters:
                raise UnknownSplitterError(label)
            logger.debug("No loss entry for splitter %r, treating as passthrough", label)
            return 0.0
        return loss

    def capacity_of(self, technology: str | None) -> int:
        """Return the subscriber capacity of one PON port for an OLT technology.

        Lookup is case-insensitive. Unknown technologies fall back to the
        default technology's capacity unless ``strict_technology`` is set.
        """
        key = (technology or "").strip().lower()
        capacity = self.pon_capacity.get(key)
        if capacity is None:
            if self.strict_technology:
                raise UnknownTechnologyError(technology)
            logger.debug(
                "No capacity entry for technology %r, using %s", technology, self.default_technology
            )
            return self.pon_capacity[self.default_technology.lower()]
        return capacity

    def output_ports_of(self, label: str | None) -> int:
        match = _RATIO_RE.match(label or "")
        if not match:
            return 0
        return int(match.group(1))

    def is_budget_exhausted(self, cumulative_loss_db: float) -> bool:
        return abs(cumulative_loss_db) >= self.max_passive_loss_db

    def can_add_passive_element(self, current_loss_db: float, new_loss_db: float) -> bool:
        return abs(current_loss_db) + abs(new_loss_db) <= self.max_passive_loss_db

    def remaining_budget_db(self, cumulative_loss_db: float) -> float:
        return max(0.0, self.max_passive_loss_db - abs(cumulative_loss_db))


# Built-in table, independent of the environment.
DEFAULT_RULES = TopologyRules()


def configured_rules() -> TopologyRules:
    """Rule table for the current application settings."""
    return TopologyRules.from_settings(settings)
