"""Initial schema: indicator tables, users, request tracking and cron log.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )


def upgrade() -> None:
    op.create_table(
        "dollar_rates",
        _id(),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("dollar_type", sa.String(20), nullable=False),
        sa.Column("buy_price", sa.Float, nullable=True),
        sa.Column("sell_price", sa.Float, nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint("date", "dollar_type", name="uq_dollar_rates_date_type"),
    )
    op.create_index("ix_dollar_rates_type_date", "dollar_rates", ["dollar_type", "date"])

    op.create_table(
        "emae",
        _id(),
        sa.Column("date", sa.Date, nullable=False, unique=True),
        sa.Column("original_value", sa.Float, nullable=True),
        sa.Column("seasonally_adjusted_value", sa.Float, nullable=True),
        sa.Column("cycle_trend_value", sa.Float, nullable=True),
        _created_at(),
    )

    op.create_table(
        "emae_by_activity",
        _id(),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("economy_sector", sa.String(120), nullable=False),
        sa.Column("economy_sector_code", sa.String(10), nullable=False),
        sa.Column("original_value", sa.Float, nullable=True),
        _created_at(),
        sa.UniqueConstraint("date", "economy_sector_code", name="uq_emae_by_activity_date_code"),
    )

    op.create_table(
        "ipc",
        _id(),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("component", sa.String(200), nullable=False),
        sa.Column("component_code", sa.String(40), nullable=False),
        sa.Column("component_type", sa.String(20), nullable=False),
        sa.Column("region", sa.String(40), nullable=False, server_default="Nacional"),
        sa.Column("index_value", sa.Float, nullable=False),
        _created_at(),
        sa.UniqueConstraint("date", "component_code", "region", name="uq_ipc_date_code_region"),
    )

    op.create_table(
        "embi_risk",
        _id(),
        sa.Column("external_id", sa.String(40), nullable=False, unique=True),
        sa.Column("closing_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("value", sa.Float, nullable=False),
        _created_at(),
    )
    op.create_index("ix_embi_risk_closing_date", "embi_risk", ["closing_date"])

    for table in ("cer", "uva"):
        op.create_table(
            table,
            _id(),
            sa.Column("date", sa.Date, nullable=False, unique=True),
            sa.Column("value", sa.Float, nullable=False),
            _created_at(),
        )

    op.create_table(
        "labor_market",
        _id(),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("period", sa.String(10), nullable=False),
        sa.Column("data_type", sa.String(20), nullable=False),
        sa.Column("region", sa.String(60), nullable=False),
        sa.Column("gender", sa.String(20), nullable=False, server_default="Total"),
        sa.Column("age_group", sa.String(20), nullable=False, server_default="Total"),
        sa.Column("demographic_segment", sa.String(60), nullable=True),
        sa.Column("activity_rate", sa.Float, nullable=True),
        sa.Column("employment_rate", sa.Float, nullable=True),
        sa.Column("unemployment_rate", sa.Float, nullable=True),
        sa.Column("total_population", sa.Float, nullable=True),
        sa.Column("economically_active_population", sa.Float, nullable=True),
        sa.Column("employed_population", sa.Float, nullable=True),
        sa.Column("unemployed_population", sa.Float, nullable=True),
        sa.Column("inactive_population", sa.Float, nullable=True),
        sa.Column("source_file", sa.String(255), nullable=True),
        _created_at(),
        sa.UniqueConstraint(
            "period", "data_type", "region", "gender", "age_group",
            name="uq_labor_market_natural_key",
        ),
    )
    op.create_index("ix_labor_market_date", "labor_market", ["date"])

    op.create_table(
        "poverty_data",
        _id(),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("period", sa.String(10), nullable=False),
        sa.Column("semester", sa.Integer, nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("data_type", sa.String(20), nullable=False),
        sa.Column("region", sa.String(60), nullable=False),
        sa.Column("cuadro_source", sa.String(20), nullable=False),
        sa.Column("source_file", sa.String(255), nullable=True),
        sa.Column("poverty_rate_persons", sa.Float, nullable=True),
        sa.Column("poverty_rate_households", sa.Float, nullable=True),
        sa.Column("indigence_rate_persons", sa.Float, nullable=True),
        sa.Column("indigence_rate_households", sa.Float, nullable=True),
        _created_at(),
        sa.UniqueConstraint("period", "region", name="uq_poverty_natural_key"),
    )
    op.create_index("ix_poverty_data_date", "poverty_data", ["date"])

    op.create_table(
        "users",
        _id(),
        sa.Column("external_user_id", sa.String(100), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("api_key", sa.String(64), nullable=True, unique=True),
        sa.Column("plan_type", sa.String(20), nullable=False, server_default="free"),
        sa.Column("daily_requests_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_request_reset_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "api_requests",
        _id(),
        sa.Column(
            "user_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("endpoint", sa.String(255), nullable=False),
        sa.Column("method", sa.String(10), nullable=False),
        sa.Column("status_code", sa.Integer, nullable=False),
        sa.Column("response_time_ms", sa.Integer, nullable=False, server_default="0"),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("referer", sa.String(500), nullable=True),
        sa.Column("request_params", sa.JSON, nullable=True),
        sa.Column("api_key_used", sa.String(16), nullable=True),
        sa.Column("is_internal", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
    )
    op.create_index("ix_api_requests_user_id", "api_requests", ["user_id"])
    op.create_index("ix_api_requests_created_at", "api_requests", ["created_at"])

    op.create_table(
        "cron_executions",
        _id(),
        sa.Column(
            "execution_time", sa.DateTime(timezone=True), nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("results", sa.JSON, nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
    )

    op.create_table(
        "economic_calendar",
        _id(),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("event", sa.String(255), nullable=False),
        sa.Column("organism", sa.String(100), nullable=False),
        sa.Column("period", sa.String(50), nullable=True),
        _created_at(),
    )
    op.create_index("ix_economic_calendar_date", "economic_calendar", ["date"])


def downgrade() -> None:
    for table in (
        "economic_calendar", "cron_executions", "api_requests", "users", "poverty_data",
        "labor_market", "uva", "cer", "embi_risk", "ipc", "emae_by_activity", "emae",
        "dollar_rates",
    ):
        op.drop_table(table)
