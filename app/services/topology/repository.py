"""Network element lookups used by the topology resolver and analyzer.

Elements reference each other by ``(type, business id)`` pairs stored on the
child's input columns, not by foreign keys. Lookups therefore match on the
pair's value; dangling and duplicate references are expected.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.network import (
    DistributionBox,
    ElementStatus,
    MainSplitter,
    NetworkElementType,
    OltDevice,
    PonCustomer,
    SubSplitter,
    X2Terminal,
)
from app.schemas.topology import ElementRef, NetworkElement

logger = logging.getLogger(__name__)


class NetworkElementRepository(Protocol):
    async def find_by_input(
        self,
        element_type: NetworkElementType,
        parent_type: NetworkElementType,
        parent_business_id: str,
    ) -> list[NetworkElement]: ...

    async def find_by_business_id(
        self, element_type: NetworkElementType, business_id: str
    ) -> NetworkElement | None: ...

    async def find_customers_by_network_input(
        self, terminal_type: NetworkElementType, terminal_business_id: str
    ) -> list[NetworkElement]: ...

    async def count(
        self, element_type: NetworkElementType, status: ElementStatus | None = None
    ) -> int: ...


@dataclass(frozen=True)
class _ElementTable:
    model: Any
    key: Any
    input_type: Any
    input_id: Any
    input_port: Any


_TABLES: dict[NetworkElementType, _ElementTable] = {
    NetworkElementType.olt: _ElementTable(OltDevice, OltDevice.olt_id, None, None, None),
    NetworkElementType.ms: _ElementTable(
        MainSplitter,
        MainSplitter.ms_id,
        MainSplitter.input_type,
        MainSplitter.input_id,
        MainSplitter.input_port,
    ),
    NetworkElementType.subms: _ElementTable(
        SubSplitter,
        SubSplitter.subms_id,
        SubSplitter.input_type,
        SubSplitter.input_id,
        SubSplitter.input_port,
    ),
    NetworkElementType.fdb: _ElementTable(
        DistributionBox,
        DistributionBox.fdb_id,
        DistributionBox.input_type,
        DistributionBox.input_id,
        DistributionBox.input_port,
    ),
    NetworkElementType.x2: _ElementTable(
        X2Terminal,
        X2Terminal.x2_id,
        X2Terminal.input_type,
        X2Terminal.input_id,
        X2Terminal.input_port,
    ),
    NetworkElementType.customer: _ElementTable(
        PonCustomer,
        PonCustomer.customer_id,
        PonCustomer.network_input_type,
        PonCustomer.network_input_id,
        PonCustomer.network_input_port,
    ),
}


def _coerce_type(value) -> NetworkElementType | None:
    if value is None:
        return None
    if isinstance(value, NetworkElementType):
        return value
    try:
        return NetworkElementType(str(value).strip().lower())
    except ValueError:
        return None


def parse_ref(value: Any) -> ElementRef | None:
    """Build an ElementRef from a stored ``{"type", "id", "port", ...}`` entry.

    Entries with an unknown type or no id (e.g. ``"odf"``/``"other"`` links)
    return None.
    """
    if not isinstance(value, dict):
        return None
    element_type = _coerce_type(value.get("type"))
    business_id = value.get("id")
    if element_type is None or business_id in (None, ""):
        return None
    port = value.get("port")
    return ElementRef(
        element_type=element_type,
        business_id=str(business_id),
        port=str(port) if port is not None else None,
        description=value.get("description"),
    )


def _input_ref(table: _ElementTable, record) -> ElementRef | None:
    if table.input_type is None:
        return None
    return parse_ref(
        {
            "type": getattr(record, table.input_type.key),
            "id": getattr(record, table.input_id.key),
            "port": getattr(record, table.input_port.key),
        }
    )


def to_element(element_type: NetworkElementType, record) -> NetworkElement:
    table = _TABLES[element_type]
    outputs = tuple(
        ref for ref in (parse_ref(item) for item in (getattr(record, "outputs", None) or [])) if ref
    )
    olt_type = getattr(record, "olt_type", None)
    return NetworkElement(
        element_type=element_type,
        business_id=getattr(record, table.key.key),
        name=record.name,
        status=record.status or ElementStatus.active,
        split_ratio=getattr(record, "splitter_type", None),
        technology=olt_type.value if olt_type is not None else None,
        input=_input_ref(table, record),
        outputs=outputs,
    )


class SqlNetworkElementRepository:
    """SQLAlchemy-backed repository.

    Each lookup opens its own session from ``session_factory`` inside a worker
    thread so concurrent lookups do not share a Session.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    async def _run(self, fn, *args):
        return await asyncio.to_thread(self._in_session, fn, *args)

    def _in_session(self, fn, *args):
        db = self.session_factory()
        try:
            return fn(db, *args)
        finally:
            db.close()

    async def find_by_input(
        self,
        element_type: NetworkElementType,
        parent_type: NetworkElementType,
        parent_business_id: str,
    ) -> list[NetworkElement]:
        return await self._run(
            self._find_by_input, element_type, parent_type, parent_business_id
        )

    async def find_by_business_id(
        self, element_type: NetworkElementType, business_id: str
    ) -> NetworkElement | None:
        return await self._run(self._find_by_business_id, element_type, business_id)

    async def find_customers_by_network_input(
        self, terminal_type: NetworkElementType, terminal_business_id: str
    ) -> list[NetworkElement]:
        return await self._run(
            self._find_by_input, NetworkElementType.customer, terminal_type, terminal_business_id
        )

    async def count(
        self, element_type: NetworkElementType, status: ElementStatus | None = None
    ) -> int:
        return await self._run(self._count, element_type, status)

    @staticmethod
    def _find_by_input(
        db: Session,
        element_type: NetworkElementType,
        parent_type: NetworkElementType,
        parent_business_id: str,
    ) -> list[NetworkElement]:
        table = _TABLES[element_type]
        if table.input_type is None:
            return []
        stmt = (
            select(table.model)
            .where(table.input_type == parent_type.value)
            .where(table.input_id == parent_business_id)
            .order_by(table.key.asc())
        )
        records = db.scalars(stmt).all()
        logger.debug(
            "Found %d %s under %s %s",
            len(records),
            element_type.value,
            parent_type.value,
            parent_business_id,
        )
        return [to_element(element_type, record) for record in records]

    @staticmethod
    def _find_by_business_id(
        db: Session, element_type: NetworkElementType, business_id: str
    ) -> NetworkElement | None:
        table = _TABLES[element_type]
        stmt = select(table.model).where(table.key == business_id).limit(1)
        record = db.scalars(stmt).first()
        if record is None:
            return None
        return to_element(element_type, record)

    @staticmethod
    def _count(
        db: Session, element_type: NetworkElementType, status: ElementStatus | None
    ) -> int:
        table = _TABLES[element_type]
        stmt = select(func.count()).select_from(table.model)
        if status is not None:
            stmt = stmt.where(table.model.status == status)
        return db.scalar(stmt) or 0
