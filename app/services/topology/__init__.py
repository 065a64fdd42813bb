"""PON topology services.

This package provides:
- the splitter loss / PON capacity rule table
- topology planning for a subscriber count and OLT technology
- validation of planned topologies and analysis of deployed splitter chains
- recommendations and stage diagrams for a plan
- reconstruction of the deployed OLT -> customer tree from stored elements
"""

from app.services.topology.errors import (
    TopologyNotFoundError,
    UnknownSplitterError,
    UnknownTechnologyError,
)
from app.services.topology.planner import (
    TopologyPlanner,
    cumulative_loss,
    max_subscribers_for,
    plan,
)
from app.services.topology.recommendations import diagram, recommend
from app.services.topology.repository import (
    NetworkElementRepository,
    SqlNetworkElementRepository,
)
from app.services.topology.resolver import CHILD_TYPES, NetworkGraphResolver
from app.services.topology.rules import DEFAULT_RULES, TopologyRules, configured_rules
from app.services.topology.statistics import network_statistics
from app.services.topology.validator import (
    ExistingTopologyAnalyzer,
    TopologyValidator,
    validate,
)

__all__ = [
    "CHILD_TYPES",
    "DEFAULT_RULES",
    "ExistingTopologyAnalyzer",
    "NetworkElementRepository",
    "NetworkGraphResolver",
    "SqlNetworkElementRepository",
    "TopologyNotFoundError",
    "TopologyPlanner",
    "TopologyRules",
    "TopologyValidator",
    "UnknownSplitterError",
    "UnknownTechnologyError",
    "configured_rules",
    "cumulative_loss",
    "diagram",
    "max_subscribers_for",
    "network_statistics",
    "plan",
    "recommend",
    "validate",
]
