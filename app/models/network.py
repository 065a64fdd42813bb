import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


class NetworkElementType(enum.Enum):
    olt = "olt"
    ms = "ms"  # primary splitter
    subms = "subms"  # secondary splitter
    fdb = "fdb"  # fiber distribution box
    x2 = "x2"  # terminal
    customer = "customer"


class ElementStatus(enum.Enum):
    active = "active"
    inactive = "inactive"
    maintenance = "maintenance"
    offline = "offline"
    error = "error"


class OltTechnology(enum.Enum):
    gpon = "gpon"
    epon = "epon"
    xgspon = "xgspon"
    xgpon = "xgpon"
    other = "other"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OltDevice(Base):
    __tablename__ = "pon_olts"
    __table_args__ = (UniqueConstraint("olt_id", name="uq_pon_olts_olt_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    olt_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str | None] = mapped_column(String(160))
    olt_type: Mapped[OltTechnology] = mapped_column(
        Enum(OltTechnology, name="olttechnology"), default=OltTechnology.gpon
    )
    status: Mapped[ElementStatus] = mapped_column(
        Enum(ElementStatus, name="pon_element_status"), default=ElementStatus.active
    )
    total_ports: Mapped[int | None] = mapped_column(Integer)
    # [{"type": "ms", "id": "MS001", "port": 1, "description": "..."}]
    outputs: Mapped[list | None] = mapped_column(JSON)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class MainSplitter(Base):
    __tablename__ = "pon_main_splitters"
    __table_args__ = (
        UniqueConstraint("ms_id", name="uq_pon_main_splitters_ms_id"),
        Index("ix_pon_main_splitters_input", "input_type", "input_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    ms_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str | None] = mapped_column(String(160))
    splitter_type: Mapped[str | None] = mapped_column(String(16), default="1x8")
    status: Mapped[ElementStatus] = mapped_column(
        Enum(ElementStatus, name="pon_element_status"), default=ElementStatus.active
    )
    input_type: Mapped[str | None] = mapped_column(String(16))
    input_id: Mapped[str | None] = mapped_column(String(64))
    input_port: Mapped[str | None] = mapped_column(String(32))
    outputs: Mapped[list | None] = mapped_column(JSON)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class SubSplitter(Base):
    __tablename__ = "pon_sub_splitters"
    __table_args__ = (
        UniqueConstraint("subms_id", name="uq_pon_sub_splitters_subms_id"),
        Index("ix_pon_sub_splitters_input", "input_type", "input_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    subms_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str | None] = mapped_column(String(160))
    splitter_type: Mapped[str | None] = mapped_column(String(16), default="1x4")
    status: Mapped[ElementStatus] = mapped_column(
        Enum(ElementStatus, name="pon_element_status"), default=ElementStatus.active
    )
    input_type: Mapped[str | None] = mapped_column(String(16))
    input_id: Mapped[str | None] = mapped_column(String(64))
    input_port: Mapped[str | None] = mapped_column(String(32))
    outputs: Mapped[list | None] = mapped_column(JSON)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class DistributionBox(Base):
    __tablename__ = "pon_distribution_boxes"
    __table_args__ = (
        UniqueConstraint("fdb_id", name="uq_pon_distribution_boxes_fdb_id"),
        Index("ix_pon_distribution_boxes_input", "input_type", "input_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    fdb_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str | None] = mapped_column(String(160))
    status: Mapped[ElementStatus] = mapped_column(
        Enum(ElementStatus, name="pon_element_status"), default=ElementStatus.active
    )
    input_type: Mapped[str | None] = mapped_column(String(16))
    input_id: Mapped[str | None] = mapped_column(String(64))
    input_port: Mapped[str | None] = mapped_column(String(32))
    outputs: Mapped[list | None] = mapped_column(JSON)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class X2Terminal(Base):
    __tablename__ = "pon_x2_terminals"
    __table_args__ = (
        UniqueConstraint("x2_id", name="uq_pon_x2_terminals_x2_id"),
        Index("ix_pon_x2_terminals_input", "input_type", "input_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    x2_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str | None] = mapped_column(String(160))
    status: Mapped[ElementStatus] = mapped_column(
        Enum(ElementStatus, name="pon_element_status"), default=ElementStatus.active
    )
    input_type: Mapped[str | None] = mapped_column(String(16))
    input_id: Mapped[str | None] = mapped_column(String(64))
    input_port: Mapped[str | None] = mapped_column(String(32))
    outputs: Mapped[list | None] = mapped_column(JSON)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class PonCustomer(Base):
    """Subscriber drop attached to a terminal through ``network_input_*``."""

    __tablename__ = "pon_customers"
    __table_args__ = (
        UniqueConstraint("customer_id", name="uq_pon_customers_customer_id"),
        Index(
            "ix_pon_customers_network_input",
            "network_input_type",
            "network_input_id",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str | None] = mapped_column(String(160))
    status: Mapped[ElementStatus] = mapped_column(
        Enum(ElementStatus, name="pon_element_status"), default=ElementStatus.active
    )
    network_input_type: Mapped[str | None] = mapped_column(String(16))
    network_input_id: Mapped[str | None] = mapped_column(String(64))
    network_input_port: Mapped[str | None] = mapped_column(String(32))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
