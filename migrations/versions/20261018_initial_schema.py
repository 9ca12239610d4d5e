"""Accounts, memberships, permissions, brands and the folder/file tree"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=True),
        sa.Column(
            "current_account_id",
            sa.Integer(),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role_type", sa.String(length=50), nullable=False, server_default="OPERATOR"),
        sa.Column("user_type", sa.String(length=20), nullable=False, server_default="PUBLISHER"),
        sa.Column("allow_all_brands", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("timezone_name", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "account_id", name="uq_user_accounts_user_account"),
    )
    op.create_index("ix_user_accounts_user_id", "user_accounts", ["user_id"])
    op.create_index("ix_user_accounts_account_id", "user_accounts", ["account_id"])

    op.create_table(
        "user_permissions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("permission_type", sa.String(length=64), nullable=False),
        sa.Column("access_level", sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "account_id", "permission_type", name="uq_user_permissions_user_account_type"
        ),
    )
    op.create_index("ix_user_permissions_user_id", "user_permissions", ["user_id"])
    op.create_index("ix_user_permissions_account_id", "user_permissions", ["account_id"])

    op.create_table(
        "parent_companies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("account_id", "name", name="uq_parent_companies_account_name"),
    )
    op.create_index("ix_parent_companies_account_id", "parent_companies", ["account_id"])

    op.create_table(
        "brands",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "parent_company_id",
            sa.Integer(),
            sa.ForeignKey("parent_companies.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("asset_url", sa.String(length=1024), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("publisher_share_perc", sa.Numeric(5, 2), nullable=True),
        sa.Column("allow_all_products", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("custom_id", sa.String(length=100), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("account_id", "name", name="uq_brands_account_name"),
    )
    op.create_index("ix_brands_account_id", "brands", ["account_id"])
    op.create_index("ix_brands_parent_company_id", "brands", ["parent_company_id"])

    op.create_table(
        "user_account_brands",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_brand_access_id",
            sa.Integer(),
            sa.ForeignKey("user_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "user_brand_access_id", "brand_id", name="uq_user_account_brands_membership_brand"
        ),
    )
    op.create_index("ix_user_account_brands_user_brand_access_id", "user_account_brands", ["user_brand_access_id"])
    op.create_index("ix_user_account_brands_brand_id", "user_account_brands", ["brand_id"])

    op.create_table(
        "folders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("allow_all_brands", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_folders_account_id", "folders", ["account_id"])
    op.create_index("ix_folders_parent_id", "folders", ["parent_id"])
    op.create_index("ix_folders_owner_id", "folders", ["owner_id"])
    op.create_index("uq_folders_account_parent_name", "folders", ["account_id", "parent_id", "name"], unique=True)
    op.create_index(
        "uq_folders_account_root_name",
        "folders",
        ["account_id", "name"],
        unique=True,
        postgresql_where=sa.text("parent_id IS NULL"),
    )

    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("folder_id", sa.Integer(), sa.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("storage_key", sa.String(length=1024), nullable=False),
        sa.Column("storage_provider", sa.String(length=20), nullable=False, server_default="local"),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("content_type", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("allow_all_brands", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_files_account_id", "files", ["account_id"])
    op.create_index("ix_files_folder_id", "files", ["folder_id"])
    op.create_index("ix_files_owner_id", "files", ["owner_id"])
    op.create_index(
        "uq_files_account_folder_original", "files", ["account_id", "folder_id", "original_filename"], unique=True
    )
    op.create_index(
        "uq_files_account_root_original",
        "files",
        ["account_id", "original_filename"],
        unique=True,
        postgresql_where=sa.text("folder_id IS NULL"),
    )

    op.create_table(
        "folder_brand_access",
        sa.Column("folder_id", sa.Integer(), sa.ForeignKey("folders.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("brands.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_folder_brand_access_brand_id", "folder_brand_access", ["brand_id"])

    op.create_table(
        "file_brand_access",
        sa.Column("file_id", sa.Integer(), sa.ForeignKey("files.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("brands.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_file_brand_access_brand_id", "file_brand_access", ["brand_id"])


def downgrade() -> None:
    op.drop_table("file_brand_access")
    op.drop_table("folder_brand_access")
    op.drop_table("files")
    op.drop_table("folders")
    op.drop_table("user_account_brands")
    op.drop_table("brands")
    op.drop_table("parent_companies")
    op.drop_table("user_permissions")
    op.drop_table("user_accounts")
    op.drop_table("users")
    op.drop_table("accounts")
