"""add pon topology tables

Revision ID: a3c1e5f7b9d2
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, ENUM


# revision identifiers, used by Alembic.
revision = "a3c1e5f7b9d2"
down_revision = None
branch_labels = None
depends_on = None

ELEMENT_STATUS = ENUM(
    "active",
    "inactive",
    "maintenance",
    "offline",
    "error",
    name="pon_element_status",
    create_type=False,
)
OLT_TECHNOLOGY = ENUM(
    "gpon",
    "epon",
    "xgspon",
    "xgpon",
    "other",
    name="olttechnology",
    create_type=False,
)

# (table, business key column, splitter default, input column prefix)
ELEMENT_TABLES = [
    ("pon_main_splitters", "ms_id", "1x8", "input"),
    ("pon_sub_splitters", "subms_id", "1x4", "input"),
    ("pon_distribution_boxes", "fdb_id", None, "input"),
    ("pon_x2_terminals", "x2_id", None, "input"),
    ("pon_customers", "customer_id", None, "network_input"),
]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    ELEMENT_STATUS.create(bind, checkfirst=True)
    OLT_TECHNOLOGY.create(bind, checkfirst=True)

    if "pon_olts" not in existing_tables:
        op.create_table(
            "pon_olts",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("olt_id", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=160), nullable=True),
            sa.Column("olt_type", OLT_TECHNOLOGY, nullable=True),
            sa.Column("status", ELEMENT_STATUS, nullable=True),
            sa.Column("total_ports", sa.Integer(), nullable=True),
            sa.Column("outputs", sa.JSON(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint("olt_id", name="uq_pon_olts_olt_id"),
        )

    for table, key, splitter_default, prefix in ELEMENT_TABLES:
        if table in existing_tables:
            continue
        columns = [
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column(key, sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=160), nullable=True),
        ]
        if splitter_default is not None:
            columns.append(sa.Column("splitter_type", sa.String(length=16), nullable=True))
        columns += [
            sa.Column("status", ELEMENT_STATUS, nullable=True),
            sa.Column(f"{prefix}_type", sa.String(length=16), nullable=True),
            sa.Column(f"{prefix}_id", sa.String(length=64), nullable=True),
            sa.Column(f"{prefix}_port", sa.String(length=32), nullable=True),
        ]
        if table != "pon_customers":
            columns += [
                sa.Column("outputs", sa.JSON(), nullable=True),
                sa.Column("notes", sa.Text(), nullable=True),
            ]
        op.create_table(
            table,
            *columns,
            *_timestamps(),
            sa.UniqueConstraint(key, name=f"uq_{table}_{key}"),
        )
        op.create_index(
            f"ix_{table}_{prefix}", table, [f"{prefix}_type", f"{prefix}_id"]
        )


def downgrade() -> None:
    bind = op.get_bind()
    for table, _key, _default, prefix in reversed(ELEMENT_TABLES):
        op.drop_index(f"ix_{table}_{prefix}", table_name=table)
        op.drop_table(table)
    op.drop_table("pon_olts")
    OLT_TECHNOLOGY.drop(bind, checkfirst=True)
    ELEMENT_STATUS.drop(bind, checkfirst=True)
