import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.db import Base
from app.models.network import (
    DistributionBox,
    MainSplitter,
    OltDevice,
    OltTechnology,
    PonCustomer,
    SubSplitter,
    X2Terminal,
)
from app.services.topology.rules import TopologyRules
from tests.mocks import FakeNetworkElementRepository


@pytest.fixture()
def engine(tmp_path):
    # File-backed SQLite with one connection per checkout: the SQL repository
    # runs every lookup in its own worker thread and session.
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'pon.db'}",
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def rules():
    return TopologyRules()


@pytest.fixture()
def fake_repository():
    return FakeNetworkElementRepository()


@pytest.fixture()
def seeded_network(db_session):
    """OLT001 -> MS001 (1x16) -> SUBMS001 (1x4) -> FDB002 -> X2002 -> CUST002.

    OLT001 also feeds FDB001 directly, which feeds X2001 with one customer.
    """
    db_session.add_all(
        [
            OltDevice(
                olt_id="OLT001",
                name="Head End",
                olt_type=OltTechnology.gpon,
                outputs=[
                    {"type": "ms", "id": "MS001", "port": 1},
                    {"type": "fdb", "id": "FDB001", "port": 2},
                ],
            ),
            MainSplitter(
                ms_id="MS001",
                name="Primary",
                splitter_type="1x16",
                input_type="olt",
                input_id="OLT001",
                input_port="1",
                outputs=[{"type": "subms", "id": "SUBMS001"}],
            ),
            SubSplitter(
                subms_id="SUBMS001",
                name="Secondary",
                splitter_type="1x4",
                input_type="ms",
                input_id="MS001",
                outputs=[{"type": "fdb", "id": "FDB002"}],
            ),
            DistributionBox(fdb_id="FDB001", name="Direct Box", input_type="olt", input_id="OLT001"),
            DistributionBox(fdb_id="FDB002", name="Street Box", input_type="subms", input_id="SUBMS001"),
            X2Terminal(x2_id="X2001", input_type="fdb", input_id="FDB001"),
            X2Terminal(x2_id="X2002", input_type="fdb", input_id="FDB002"),
            PonCustomer(
                customer_id="CUST001",
                name="Ada",
                network_input_type="x2",
                network_input_id="X2001",
            ),
            PonCustomer(
                customer_id="CUST002",
                name="Grace",
                network_input_type="x2",
                network_input_id="X2002",
            ),
        ]
    )
    db_session.commit()
    return db_session
