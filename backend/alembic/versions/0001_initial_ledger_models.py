"""Initial schema — reference data, inventory, jobs, movement ledger, billing.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-17

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    # ── Reference data ───────────────────────────────────────

    op.create_table(
        "ports",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("port_code", sa.String(10), nullable=False),
        sa.Column("port_name", sa.String(255), nullable=False),
        sa.Column("country", sa.String(100)),
    )
    op.create_index("ix_ports_port_code", "ports", ["port_code"], unique=True)

    op.create_table(
        "address_book",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("business_type", sa.String(100)),
        sa.Column("country", sa.String(100)),
    )

    # ── Container inventory ──────────────────────────────────

    op.create_table(
        "inventory",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("container_number", sa.String(50), nullable=False),
        sa.Column("container_category", sa.String(50)),
        sa.Column("container_type", sa.String(50)),
        sa.Column("container_size", sa.String(20)),
        sa.Column("container_class", sa.String(50)),
        sa.Column("container_capacity", sa.String(50)),
        sa.Column("capacity_unit", sa.String(20)),
        sa.Column("manufacturer", sa.String(255)),
        sa.Column("build_year", sa.String(10)),
        sa.Column("gross_weight", sa.String(50)),
        sa.Column("tare_weight", sa.String(50)),
        sa.Column("initial_survey_date", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_inventory_container_number", "inventory", ["container_number"], unique=True)

    op.create_table(
        "leasing_info",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("inventory_id", sa.Integer(), sa.ForeignKey("inventory.id"), nullable=False),
        sa.Column("ownership_type", sa.String(20), server_default="Lease"),
        sa.Column("leasing_ref_no", sa.String(100)),
        sa.Column("leasor_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("lease_rent_per_day", sa.String(50)),
        sa.Column("port_id", sa.Integer(), sa.ForeignKey("ports.id")),
        sa.Column("on_hire_depot_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("on_hire_date", sa.DateTime()),
        sa.Column("off_hire_date", sa.DateTime()),
        sa.Column("remarks", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_leasing_info_inventory_id", "leasing_info", ["inventory_id"])

    # ── Jobs ─────────────────────────────────────────────────

    op.create_table(
        "shipments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("job_number", sa.String(50), nullable=False),
        sa.Column("house_bl", sa.String(100), nullable=False, unique=True),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("pol_port_id", sa.Integer(), sa.ForeignKey("ports.id"), nullable=False),
        sa.Column("pod_port_id", sa.Integer(), sa.ForeignKey("ports.id"), nullable=False),
        sa.Column("transhipment_port_id", sa.Integer(), sa.ForeignKey("ports.id")),
        sa.Column("customer_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("consignee_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("shipper_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("carrier_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("empty_return_depot_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("exp_handling_agent_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("imp_handling_agent_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("quotation_ref_number", sa.String(100)),
        sa.Column("ref_number", sa.String(100)),
        sa.Column("master_bl", sa.String(100)),
        sa.Column("shipping_term", sa.String(50)),
        sa.Column("vessel_name", sa.String(255)),
        sa.Column("quantity", sa.String(20)),
        sa.Column("pol_free_days", sa.String(20)),
        sa.Column("pod_free_days", sa.String(20)),
        sa.Column("pol_detention_rate", sa.String(20)),
        sa.Column("pod_detention_rate", sa.String(20)),
        sa.Column("gs_date", sa.DateTime()),
        sa.Column("eta_to_pod", sa.DateTime()),
        sa.Column("estimate_date", sa.DateTime()),
        sa.Column("sob_date", sa.DateTime()),
        sa.Column("status", sa.String(20), server_default="ACTIVE"),
        sa.Column("remark", sa.Text()),
        sa.Column("has_cro_generated", sa.Boolean(), server_default="false"),
        sa.Column("first_cro_generation_date", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_shipments_job_number", "shipments", ["job_number"], unique=True)
    op.create_index("ix_shipments_status", "shipments", ["status"])

    op.create_table(
        "shipment_containers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("shipment_id", sa.Integer(), sa.ForeignKey("shipments.id"), nullable=False),
        sa.Column("inventory_id", sa.Integer(), sa.ForeignKey("inventory.id")),
        sa.Column("container_number", sa.String(50)),
        sa.Column("capacity", sa.String(50)),
        sa.Column("tare", sa.String(50)),
        sa.Column("port_id", sa.Integer(), sa.ForeignKey("ports.id")),
        sa.Column("depot_name", sa.String(255)),
    )
    op.create_index("ix_shipment_containers_shipment_id", "shipment_containers", ["shipment_id"])
    op.create_index("ix_shipment_containers_inventory_id", "shipment_containers", ["inventory_id"])

    op.create_table(
        "bl_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("shipment_id", sa.Integer(), sa.ForeignKey("shipments.id"), nullable=False),
        sa.Column("bl_type", sa.String(20), nullable=False),
        sa.Column("bl_index", sa.Integer(), nullable=False),
        sa.Column("container_numbers", sa.JSON(), server_default="[]"),
        sa.Column("notes", sa.Text()),
    )
    op.create_index("ix_bl_assignments_shipment_id", "bl_assignments", ["shipment_id"])

    op.create_table(
        "empty_repo_jobs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("job_number", sa.String(50), nullable=False),
        sa.Column("house_bl", sa.String(100), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("pol_port_id", sa.Integer(), sa.ForeignKey("ports.id"), nullable=False),
        sa.Column("pod_port_id", sa.Integer(), sa.ForeignKey("ports.id"), nullable=False),
        sa.Column("transhipment_port_id", sa.Integer(), sa.ForeignKey("ports.id")),
        sa.Column("carrier_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("empty_return_depot_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("exp_handling_agent_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("imp_handling_agent_address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("master_bl", sa.String(100)),
        sa.Column("shipping_term", sa.String(50)),
        sa.Column("vessel_name", sa.String(255)),
        sa.Column("quantity", sa.String(20)),
        sa.Column("gs_date", sa.DateTime()),
        sa.Column("eta_to_pod", sa.DateTime()),
        sa.Column("estimate_date", sa.DateTime()),
        sa.Column("sob_date", sa.DateTime()),
        sa.Column("status", sa.String(20), server_default="ACTIVE"),
        sa.Column("remark", sa.Text()),
        sa.Column("has_cro_generated", sa.Boolean(), server_default="false"),
        sa.Column("first_cro_generation_date", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_empty_repo_jobs_job_number", "empty_repo_jobs", ["job_number"], unique=True)
    op.create_index("ix_empty_repo_jobs_status", "empty_repo_jobs", ["status"])

    op.create_table(
        "repo_shipment_containers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("empty_repo_job_id", sa.Integer(), sa.ForeignKey("empty_repo_jobs.id"), nullable=False),
        sa.Column("inventory_id", sa.Integer(), sa.ForeignKey("inventory.id")),
        sa.Column("container_number", sa.String(50)),
        sa.Column("capacity", sa.String(50)),
        sa.Column("tare", sa.String(50)),
        sa.Column("port_id", sa.Integer(), sa.ForeignKey("ports.id")),
        sa.Column("depot_name", sa.String(255)),
    )
    op.create_index(
        "ix_repo_shipment_containers_empty_repo_job_id", "repo_shipment_containers", ["empty_repo_job_id"]
    )
    op.create_index(
        "ix_repo_shipment_containers_inventory_id", "repo_shipment_containers", ["inventory_id"]
    )

    # ── Movement ledger ──────────────────────────────────────

    op.create_table(
        "movement_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("inventory_id", sa.Integer(), sa.ForeignKey("inventory.id"), nullable=False),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("maintenance_status", sa.String(100)),
        sa.Column("port_id", sa.Integer(), sa.ForeignKey("ports.id")),
        sa.Column("address_book_id", sa.Integer(), sa.ForeignKey("address_book.id")),
        sa.Column("shipment_id", sa.Integer(), sa.ForeignKey("shipments.id", ondelete="SET NULL")),
        sa.Column(
            "empty_repo_job_id", sa.Integer(), sa.ForeignKey("empty_repo_jobs.id", ondelete="SET NULL")
        ),
        sa.Column("job_number", sa.String(50)),
        sa.Column("remarks", sa.Text()),
        sa.Column("vessel_name", sa.String(255)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint(
            "shipment_id IS NULL OR empty_repo_job_id IS NULL",
            name="ck_movement_history_single_job",
        ),
    )
    op.create_index("ix_movement_history_inventory_id", "movement_history", ["inventory_id"])
    op.create_index("ix_movement_history_status", "movement_history", ["status"])
    op.create_index("ix_movement_history_shipment_id", "movement_history", ["shipment_id"])
    op.create_index("ix_movement_history_empty_repo_job_id", "movement_history", ["empty_repo_job_id"])
    # Current-state lookups: latest (date, id) per container
    op.create_index(
        "ix_movement_history_inventory_date", "movement_history", ["inventory_id", "date", "id"]
    )

    # ── Billing & numbering ──────────────────────────────────

    op.create_table(
        "bill_management",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("invoice_no", sa.String(50), server_default=""),
        sa.Column("invoice_amount", sa.Float(), server_default="0"),
        sa.Column("paid_amount", sa.Float(), server_default="0"),
        sa.Column("due_amount", sa.Float(), server_default="0"),
        sa.Column("billing_status", sa.String(20), server_default="Pending"),
        sa.Column("payment_status", sa.String(20), server_default="Unpaid"),
        sa.Column("shipment_id", sa.Integer(), sa.ForeignKey("shipments.id", ondelete="SET NULL")),
        sa.Column("shipment_number", sa.String(50)),
        sa.Column("shipment_date", sa.DateTime()),
        sa.Column("customer_name", sa.String(255)),
        sa.Column("port_details", sa.String(255)),
        sa.Column("remarks", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_bill_management_invoice_no", "bill_management", ["invoice_no"])
    op.create_index("ix_bill_management_shipment_id", "bill_management", ["shipment_id"])

    op.create_table(
        "sequence_counters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("scope", sa.String(100), nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("kind", "scope", name="uq_sequence_counters_kind_scope"),
    )


def downgrade() -> None:
    op.drop_table("sequence_counters")
    op.drop_table("bill_management")
    op.drop_table("movement_history")
    op.drop_table("repo_shipment_containers")
    op.drop_table("empty_repo_jobs")
    op.drop_table("bl_assignments")
    op.drop_table("shipment_containers")
    op.drop_table("shipments")
    op.drop_table("leasing_info")
    op.drop_table("inventory")
    op.drop_table("address_book")
    op.drop_table("ports")
