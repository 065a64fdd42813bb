"""SQL repository and end-to-end resolution against SQLite."""

import pytest

from app.models.network import ElementStatus, NetworkElementType as T, X2Terminal
from app.services.topology.repository import SqlNetworkElementRepository, parse_ref
from app.services.topology.resolver import NetworkGraphResolver
from app.services.topology.validator import ExistingTopologyAnalyzer


@pytest.fixture()
def repository(session_factory, seeded_network):
    return SqlNetworkElementRepository(session_factory)


@pytest.mark.asyncio
async def test_find_by_input_is_ordered_by_business_id(repository, db_session):
    db_session.add(X2Terminal(x2_id="X2000", input_type="fdb", input_id="FDB001"))
    db_session.commit()

    found = await repository.find_by_input(T.x2, T.fdb, "FDB001")
    assert [item.business_id for item in found] == ["X2000", "X2001"]
    assert all(item.input.business_id == "FDB001" for item in found)


@pytest.mark.asyncio
async def test_find_by_input_for_olt_is_empty(repository):
    assert await repository.find_by_input(T.olt, T.ms, "MS001") == []


@pytest.mark.asyncio
async def test_find_by_business_id(repository):
    olt = await repository.find_by_business_id(T.olt, "OLT001")
    assert olt.name == "Head End"
    assert olt.technology == "gpon"
    assert olt.input is None
    assert [(ref.element_type, ref.business_id, ref.port) for ref in olt.outputs] == [
        (T.ms, "MS001", "1"),
        (T.fdb, "FDB001", "2"),
    ]

    ms = await repository.find_by_business_id(T.ms, "MS001")
    assert ms.split_ratio == "1x16"
    assert (ms.input.element_type, ms.input.business_id, ms.input.port) == (T.olt, "OLT001", "1")

    assert await repository.find_by_business_id(T.ms, "MS404") is None


@pytest.mark.asyncio
async def test_find_customers_by_network_input(repository):
    customers = await repository.find_customers_by_network_input(T.x2, "X2002")
    assert [(c.business_id, c.name) for c in customers] == [("CUST002", "Grace")]
    assert await repository.find_customers_by_network_input(T.x2, "X2404") == []


@pytest.mark.asyncio
async def test_count(repository, db_session):
    db_session.add(X2Terminal(x2_id="X2003", status=ElementStatus.offline))
    db_session.commit()

    assert await repository.count(T.x2) == 3
    assert await repository.count(T.x2, ElementStatus.active) == 2
    assert await repository.count(T.customer) == 2


def test_parse_ref_ignores_unsupported_links():
    assert parse_ref({"type": "odf", "id": "ODF1"}) is None
    assert parse_ref({"type": "ms"}) is None
    assert parse_ref("MS001") is None

    ref = parse_ref({"type": "SUBMS", "id": 7, "port": 3, "description": "north"})
    assert (ref.element_type, ref.business_id, ref.port, ref.description) == (
        T.subms,
        "7",
        "3",
        "north",
    )


@pytest.mark.asyncio
async def test_resolve_topology_from_database(repository):
    tree = await NetworkGraphResolver(repository).resolve_topology("OLT001")

    assert tree.count(T.customer) == 2
    subms = tree.root.children(T.ms)[0].children(T.subms)[0]
    customer = subms.children(T.fdb)[0].children(T.x2)[0].children(T.customer)[0]
    assert customer.element.business_id == "CUST002"
    assert customer.cumulative_loss_db == -20

    direct = tree.root.children(T.fdb)[0].children(T.x2)[0].children(T.customer)[0]
    assert direct.element.business_id == "CUST001"
    assert direct.cumulative_loss_db == 0


@pytest.mark.asyncio
async def test_analyze_existing_from_database(repository):
    olt = await repository.find_by_business_id(T.olt, "OLT001")
    analysis = await ExistingTopologyAnalyzer(repository).analyze_existing(olt)

    assert analysis.total_loss_db == 20
    assert [stage.device_id for stage in analysis.stages] == ["MS001", "SUBMS001"]
    assert analysis.is_valid is True
