"""Plan or inspect PON topologies from the command line.

Examples:
    python -m scripts.plan_topology plan 24 --technology gpon
    python -m scripts.plan_topology resolve OLT001
    python -m scripts.plan_topology analyze ms MS001
    python -m scripts.plan_topology stats
"""

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from app.config import settings
from app.models.network import NetworkElementType
from app.services.topology import (
    ExistingTopologyAnalyzer,
    NetworkGraphResolver,
    SqlNetworkElementRepository,
    TopologyNotFoundError,
    TopologyPlanner,
    TopologyRules,
    TopologyValidator,
    diagram,
    network_statistics,
    recommend,
)


def _dump(model) -> None:
    print(json.dumps(model.model_dump(mode="json"), indent=2))


def plan_command(args, rules: TopologyRules) -> int:
    if args.subscribers <= 0:
        print("subscribers must be a positive integer", file=sys.stderr)
        return 2
    topology = TopologyPlanner(rules).plan(args.subscribers, args.technology)
    validation = TopologyValidator(rules).validate(topology)
    payload = {
        "plan": topology.model_dump(mode="json"),
        "validation": validation.model_dump(mode="json"),
        "recommendations": recommend(args.subscribers, args.technology, rules),
        "diagram": diagram(topology).model_dump(mode="json"),
    }
    print(json.dumps(payload, indent=2))
    return 0 if validation.is_valid else 1


def _repository() -> SqlNetworkElementRepository:
    from app.db import SessionLocal

    return SqlNetworkElementRepository(SessionLocal)


async def resolve_command(args, rules: TopologyRules) -> int:
    resolver = NetworkGraphResolver(_repository(), rules)
    tree = await resolver.resolve_topology(args.olt_id)
    _dump(tree)
    return 0


async def analyze_command(args, rules: TopologyRules) -> int:
    repository = _repository()
    element_type = NetworkElementType(args.element_type)
    root = await NetworkGraphResolver(repository, rules).resolve_element(
        element_type, args.business_id
    )
    analysis = await ExistingTopologyAnalyzer(repository, rules).analyze_existing(root)
    _dump(analysis)
    return 0 if analysis.is_valid else 1


async def stats_command(args, rules: TopologyRules) -> int:
    _dump(await network_statistics(_repository()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PON topology planner")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    plan_parser = sub.add_parser("plan", help="Plan a topology for a subscriber count")
    plan_parser.add_argument("subscribers", type=int)
    plan_parser.add_argument("--technology", default="gpon")

    resolve_parser = sub.add_parser("resolve", help="Resolve the deployed tree below an OLT")
    resolve_parser.add_argument("olt_id")

    analyze_parser = sub.add_parser("analyze", help="Analyze splitter loss below an element")
    analyze_parser.add_argument(
        "element_type", choices=[item.value for item in NetworkElementType]
    )
    analyze_parser.add_argument("business_id")

    sub.add_parser("stats", help="Count elements per type")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    rules = TopologyRules.from_settings(settings)
    if args.command == "plan":
        return plan_command(args, rules)
    commands = {
        "resolve": resolve_command,
        "analyze": analyze_command,
        "stats": stats_command,
    }
    try:
        return asyncio.run(commands[args.command](args, rules))
    except TopologyNotFoundError as exc:
        print(exc.detail, file=sys.stderr)
        return 3


if __name__ == "__main__":
    sys.exit(main())
