"""initial schema

Revision ID: qm001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete schema:
- users, user_sessions, otps, password_reset_tokens: accounts and device sessions
- categories, menu_items, templates, tables: menu and QR tables
- orders, order_items: customer orders with price snapshots
- invoice_templates, tax_configurations, additional_charges: invoice layouts
- invoices, invoice_taxes, invoice_additional_charges: captured invoice snapshots

All linkage between tables goes through the 36-character unique_id columns.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'qm001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(with_updated=True):
    cols = [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]
    if with_updated:
        cols.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                              server_default=sa.text('CURRENT_TIMESTAMP')))
    return cols


def upgrade():
    # ============================================================================
    # Accounts and sessions
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('first_name', sa.String(length=255), nullable=False),
        sa.Column('last_name', sa.String(length=255), nullable=False),
        sa.Column('mobile', sa.String(length=15), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mobile'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_unique_id', 'users', ['unique_id'], unique=True)

    op.create_table(
        'user_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('user_agent', sa.String(length=512), nullable=False),
        sa.Column('login_type', sa.String(length=16), nullable=False),
        sa.Column('login_id', sa.String(length=255), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_user_sessions_session_id', 'user_sessions', ['session_id'], unique=True)
    op.create_index('ix_user_sessions_user_id', 'user_sessions', ['user_id'])
    op.create_index('ix_user_sessions_expires_at', 'user_sessions', ['expires_at'])
    op.create_index('ix_user_sessions_is_revoked', 'user_sessions', ['is_revoked'])
    op.create_index('ix_user_sessions_user_agent_active', 'user_sessions',
                    ['user_id', 'user_agent', 'is_revoked'])

    op.create_table(
        'otps',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(length=36), nullable=False),
        sa.Column('otp_hash', sa.String(length=64), nullable=False),
        sa.Column('login_type', sa.String(length=16), nullable=False),
        sa.Column('login_id', sa.String(length=255), nullable=False),
        sa.Column('failed_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_otps_session_id', 'otps', ['session_id'])
    op.create_index('ix_otps_expires_at', 'otps', ['expires_at'])

    op.create_table(
        'password_reset_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_password_reset_tokens_user_id', 'password_reset_tokens', ['user_id'])
    op.create_index('ix_password_reset_tokens_token_hash', 'password_reset_tokens', ['token_hash'], unique=True)

    # ============================================================================
    # Menu and tables
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_categories_user_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_categories_unique_id', 'categories', ['unique_id'], unique=True)
    op.create_index('ix_categories_user_id', 'categories', ['user_id'])

    op.create_table(
        'templates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('config', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_templates_user_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_templates_unique_id', 'templates', ['unique_id'], unique=True)
    op.create_index('ix_templates_user_id', 'templates', ['user_id'])

    op.create_table(
        'menu_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('category_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('image_url', sa.String(length=255), nullable=True),
        sa.Column('availability', sa.String(length=16), nullable=False, server_default='in_stock'),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.unique_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_menu_items_unique_id', 'menu_items', ['unique_id'], unique=True)
    op.create_index('ix_menu_items_user_id', 'menu_items', ['user_id'])
    op.create_index('ix_menu_items_user_category', 'menu_items', ['user_id', 'category_id'])

    op.create_table(
        'tables',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('template_id', sa.String(length=36), nullable=False),
        sa.Column('table_number', sa.String(length=50), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.unique_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['template_id'], ['templates.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'table_number', name='uq_tables_user_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_tables_unique_id', 'tables', ['unique_id'], unique=True)
    op.create_index('ix_tables_user_id', 'tables', ['user_id'])

    # ============================================================================
    # Orders
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('restaurant_id', sa.String(length=36), nullable=False),
        sa.Column('table_id', sa.String(length=36), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['restaurant_id'], ['users.unique_id']),
        sa.ForeignKeyConstraint(['table_id'], ['tables.unique_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_unique_id', 'orders', ['unique_id'], unique=True)
    op.create_index('ix_orders_table_id', 'orders', ['table_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_restaurant_created', 'orders', ['restaurant_id', 'created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('menu_item_id', sa.String(length=36), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('special_instructions', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.unique_id']),
        sa.ForeignKeyConstraint(['menu_item_id'], ['menu_items.unique_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_items_unique_id', 'order_items', ['unique_id'], unique=True)
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    # ============================================================================
    # Invoice templates and line items
    # ============================================================================
    op.create_table(
        'invoice_templates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('header_content', sa.Text(), nullable=True),
        sa.Column('footer_content', sa.Text(), nullable=True),
        sa.Column('logo_url', sa.String(length=255), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_invoice_templates_user_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoice_templates_unique_id', 'invoice_templates', ['unique_id'], unique=True)
    op.create_index('ix_invoice_templates_user_id', 'invoice_templates', ['user_id'])

    op.create_table(
        'tax_configurations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_template_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('rate', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('tax_type', sa.String(length=16), nullable=False, server_default='percentage'),
        sa.Column('applies_to', sa.String(length=16), nullable=False, server_default='all'),
        sa.Column('is_additional', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_compound', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['invoice_template_id'], ['invoice_templates.unique_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_tax_configurations_unique_id', 'tax_configurations', ['unique_id'], unique=True)
    op.create_index('ix_tax_configurations_invoice_template_id', 'tax_configurations', ['invoice_template_id'])

    op.create_table(
        'additional_charges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_template_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('charge_type', sa.String(length=16), nullable=False, server_default='fixed'),
        sa.Column('applies_to', sa.String(length=16), nullable=False, server_default='all'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['invoice_template_id'], ['invoice_templates.unique_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_additional_charges_unique_id', 'additional_charges', ['unique_id'], unique=True)
    op.create_index('ix_additional_charges_invoice_template_id', 'additional_charges', ['invoice_template_id'])

    # ============================================================================
    # Invoice snapshots
    # ============================================================================
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_template_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('invoice_date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('subtotal', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('additional_charges', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('discount_amount', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('header_content', sa.Text(), nullable=True),
        sa.Column('footer_content', sa.Text(), nullable=True),
        sa.Column('logo_url', sa.String(length=255), nullable=True),
        sa.Column('payment_method', sa.String(length=50), nullable=True),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoices_unique_id', 'invoices', ['unique_id'], unique=True)

    op.create_table(
        'invoice_taxes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=False),
        sa.Column('tax_name', sa.String(length=100), nullable=False),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('tax_type', sa.String(length=16), nullable=False),
        sa.Column('tax_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoice_taxes_invoice_id', 'invoice_taxes', ['invoice_id'])

    op.create_table(
        'invoice_additional_charges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=False),
        sa.Column('charge_name', sa.String(length=100), nullable=False),
        sa.Column('charge_type', sa.String(length=16), nullable=False),
        sa.Column('charge_rate', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('charge_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.unique_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoice_additional_charges_invoice_id', 'invoice_additional_charges', ['invoice_id'])


def downgrade():
    for table in (
        'invoice_additional_charges',
        'invoice_taxes',
        'invoices',
        'additional_charges',
        'tax_configurations',
        'invoice_templates',
        'order_items',
        'orders',
        'tables',
        'menu_items',
        'templates',
        'categories',
        'password_reset_tokens',
        'otps',
        'user_sessions',
        'users',
    ):
        op.drop_table(table)
