from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())

    if "customers" not in tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("email_normalized", sa.String(length=255), nullable=True),
            sa.Column("phone", sa.String(length=30), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_customers_email_normalized", "customers", ["email_normalized"], unique=True)

    if "movies" not in tables:
        op.create_table(
            "movies",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_movies_title", "movies", ["title"], unique=False)

    if "rentals" not in tables:
        op.create_table(
            "rentals",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("days_rented", sa.Integer(), nullable=False),
            sa.Column("movie_id", sa.Integer(), sa.ForeignKey("movies.id"), nullable=False),
            sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
            sa.Column(
                "payment_method",
                sa.Enum("mbway", "paypal", name="payment_method", native_enum=False),
                nullable=False,
            ),
            sa.Column("payment_value", sa.Numeric(10, 2), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_rentals_movie_id", "rentals", ["movie_id"], unique=False)
        op.create_index("ix_rentals_customer_id", "rentals", ["customer_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_rentals_customer_id", table_name="rentals")
    op.drop_index("ix_rentals_movie_id", table_name="rentals")
    op.drop_table("rentals")
    op.drop_index("ix_movies_title", table_name="movies")
    op.drop_table("movies")
    op.drop_index("ix_customers_email_normalized", table_name="customers")
    op.drop_table("customers")
