"""initial gacha schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "gachas",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_gachas")),
    )
    op.create_table(
        "prizes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("gacha_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("draw_limit", sa.Integer(), nullable=True),
        sa.Column("category_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(
            ["gacha_id"],
            ["gachas.id"],
            name=op.f("fk_prizes_gacha_id_gachas"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_prizes")),
    )
    op.create_index(op.f("ix_prizes_gacha_id"), "prizes", ["gacha_id"], unique=False)
    op.create_table(
        "categories",
        sa.Column("gacha_id", sa.String(length=36), nullable=False),
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(
            ["gacha_id"],
            ["gachas.id"],
            name=op.f("fk_categories_gacha_id_gachas"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("gacha_id", "id", name=op.f("pk_categories")),
    )
    op.create_table(
        "targets",
        sa.Column("gacha_id", sa.String(length=36), nullable=False),
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(
            ["gacha_id"],
            ["gachas.id"],
            name=op.f("fk_targets_gacha_id_gachas"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("gacha_id", "id", name=op.f("pk_targets")),
    )
    op.create_table(
        "operations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("gacha_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("results", sa.JSON(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("target", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(
            ["gacha_id"],
            ["gachas.id"],
            name=op.f("fk_operations_gacha_id_gachas"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_operations")),
    )
    op.create_index(
        op.f("ix_operations_gacha_id"), "operations", ["gacha_id"], unique=False
    )
    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("key", name=op.f("pk_app_settings")),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_index(op.f("ix_operations_gacha_id"), table_name="operations")
    op.drop_table("operations")
    op.drop_table("targets")
    op.drop_table("categories")
    op.drop_index(op.f("ix_prizes_gacha_id"), table_name="prizes")
    op.drop_table("prizes")
    op.drop_table("gachas")
