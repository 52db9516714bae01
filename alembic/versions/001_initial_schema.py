"""Initial PharmaSave schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-06-01 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _uuid_pk():
    return sa.Column('id', sa.String(length=36), primary_key=True)


def _money(name, nullable=False):
    return sa.Column(name, sa.Numeric(12, 2), nullable=nullable)


def upgrade():
    op.create_table('auth_accounts',
        _uuid_pk(),
        sa.Column('email', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('user_metadata', sa.JSON(), nullable=False),
        sa.Column('confirmation_token', sa.String(), nullable=True, index=True),
        sa.Column('email_confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('last_sign_in_at', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table('pharmacies',
        _uuid_pk(),
        sa.Column('display_id', sa.String(length=16), nullable=True, unique=True, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('addr', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('license_num', sa.String(), nullable=True),
        sa.Column('registration_number', sa.String(), nullable=True),
        sa.Column('license_expiry', sa.Date(), nullable=True),
        sa.Column('specializations', sa.Text(), nullable=True),
        sa.Column('services_offered', sa.Text(), nullable=True),
        sa.Column('operating_hours', sa.Text(), nullable=True),
        sa.Column('business_description', sa.Text(), nullable=True),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('ver_status', sa.String(length=20), nullable=False, server_default='pending', index=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('marketplace_access', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('trial_started_at', sa.DateTime(), nullable=True),
        sa.Column('trial_expires_at', sa.DateTime(), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True, index=True),
        sa.Column('archive_reason', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table('admin_users',
        _uuid_pk(),
        sa.Column('auth_id', sa.String(length=36), sa.ForeignKey('auth_accounts.id'), nullable=False, unique=True),
        sa.Column('display_id', sa.String(length=16), nullable=True, unique=True, index=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('fname', sa.String(), nullable=True),
        sa.Column('lname', sa.String(), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='admin'),
        sa.Column('department', sa.String(), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table('pharmacists',
        _uuid_pk(),
        sa.Column('auth_id', sa.String(length=36), sa.ForeignKey('auth_accounts.id'), nullable=True, unique=True, index=True),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('fname', sa.String(), nullable=False),
        sa.Column('lname', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=False, index=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('pharmacist_id_num', sa.String(), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='primary_admin'),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('can_manage_employees', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('can_access_financials', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('invited_by', sa.String(length=36), sa.ForeignKey('pharmacists.id'), nullable=True),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table('pharmacy_documents',
        _uuid_pk(),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('document_type', sa.String(length=50), nullable=False),
        sa.Column('file_name', sa.String(), nullable=False),
        sa.Column('file_url', sa.String(), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('mime_type', sa.String(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='uploaded'),
        sa.Column('uploaded_at', sa.DateTime(), nullable=True),
    )

    op.create_table('pharmacy_invitations',
        _uuid_pk(),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('email', sa.String(), nullable=False, index=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('invitation_token', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('invited_by', sa.String(length=36), sa.ForeignKey('pharmacists.id'), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table('pharmacy_wallets',
        _uuid_pk(),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, unique=True, index=True),
        _money('available_balance'),
        _money('pending_withdrawals'),
        _money('total_earned'),
        _money('total_spent'),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='EGP'),
        sa.Column('last_transaction_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table('wallet_transactions',
        _uuid_pk(),
        sa.Column('wallet_id', sa.String(length=36), sa.ForeignKey('pharmacy_wallets.id'), nullable=False, index=True),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        _money('amount'),
        _money('balance_before'),
        _money('balance_after'),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('reference', sa.String(), nullable=True, index=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='completed'),
        sa.Column('created_at', sa.DateTime(), nullable=True, index=True),
    )

    op.create_table('fund_requests',
        _uuid_pk(),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('requested_by', sa.String(length=36), sa.ForeignKey('pharmacists.id'), nullable=True),
        _money('amount'),
        sa.Column('request_type', sa.String(length=32), nullable=False, server_default='bank_transfer'),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('reference', sa.String(), nullable=True, index=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending', index=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.String(length=36), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, index=True),
    )

    op.create_table('withdrawal_requests',
        _uuid_pk(),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('requested_by', sa.String(length=36), sa.ForeignKey('pharmacists.id'), nullable=True),
        _money('amount'),
        sa.Column('bank_name', sa.String(), nullable=False),
        sa.Column('account_number', sa.String(), nullable=False),
        sa.Column('account_holder_name', sa.String(), nullable=False),
        sa.Column('reference', sa.String(), nullable=True, index=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending', index=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.String(length=36), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, index=True),
    )

    op.create_table('verification_queue',
        _uuid_pk(),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending', index=True),
        sa.Column('priority', sa.String(length=10), nullable=False, server_default='normal'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('checklist', sa.JSON(), nullable=True),
        sa.Column('assigned_to', sa.String(length=36), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('reviewed_by', sa.String(length=36), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table('archived_pharmacies',
        _uuid_pk(),
        sa.Column('original_pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('display_id', sa.String(length=16), nullable=True),
        sa.Column('original_verified', sa.Boolean(), nullable=True),
        sa.Column('original_ver_status', sa.String(length=20), nullable=True),
        sa.Column('original_marketplace_access', sa.Boolean(), nullable=True),
        sa.Column('archive_reason', sa.String(), nullable=True),
        sa.Column('archived_by', sa.String(length=36), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
    )

    op.create_table('notifications',
        _uuid_pk(),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('type', sa.String(length=32), nullable=False, server_default='system'),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, index=True),
    )

    op.create_table('listings',
        _uuid_pk(),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('medicine_name', sa.String(), nullable=False),
        sa.Column('form', sa.String(), nullable=True),
        sa.Column('strength', sa.String(), nullable=True),
        sa.Column('manufacturer', sa.String(), nullable=True),
        _money('unit_price'),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('batch_number', sa.String(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('is_trade_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=True, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table('transactions',
        _uuid_pk(),
        sa.Column('buyer_pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('seller_pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=False, index=True),
        sa.Column('lstng_id', sa.String(length=36), sa.ForeignKey('listings.id'), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _money('amount'),
        _money('buyer_fee'),
        _money('seller_fee'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='requested', index=True),
        sa.Column('transaction_type', sa.String(length=20), nullable=False, server_default='purchase'),
        sa.Column('reference', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table('financial_metrics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('monthly_recurring_revenue', sa.Numeric(14, 2), nullable=True),
        sa.Column('mrr_growth_rate', sa.Float(), nullable=True),
        sa.Column('active_subscribers', sa.Integer(), nullable=True),
        sa.Column('new_subscribers', sa.Integer(), nullable=True),
        sa.Column('churned_subscribers', sa.Integer(), nullable=True),
        sa.Column('transaction_volume', sa.Numeric(14, 2), nullable=True),
        sa.Column('transaction_count', sa.Integer(), nullable=True),
        sa.Column('average_transaction_value', sa.Numeric(14, 2), nullable=True),
        sa.Column('total_revenue', sa.Numeric(14, 2), nullable=True),
        sa.Column('total_expenses', sa.Numeric(14, 2), nullable=True),
        sa.Column('net_profit', sa.Numeric(14, 2), nullable=True),
        sa.Column('profit_margin', sa.Float(), nullable=True),
        sa.Column('cash_balance', sa.Numeric(14, 2), nullable=True),
        sa.Column('cash_runway_months', sa.Float(), nullable=True),
        sa.Column('monthly_burn_rate', sa.Numeric(14, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('year', 'month', name='uq_financial_metrics_period'),
    )
    op.create_index('ix_financial_metrics_id', 'financial_metrics', ['id'])

    op.create_table('revenue_breakdown',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('subscription_revenue', sa.Numeric(14, 2), nullable=True),
        sa.Column('transaction_fee_revenue', sa.Numeric(14, 2), nullable=True),
        sa.Column('withdrawal_fee_revenue', sa.Numeric(14, 2), nullable=True),
        sa.Column('other_revenue', sa.Numeric(14, 2), nullable=True),
        sa.UniqueConstraint('year', 'month', name='uq_revenue_breakdown_period'),
    )
    op.create_index('ix_revenue_breakdown_id', 'revenue_breakdown', ['id'])

    op.create_table('expense_breakdown',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('infrastructure_costs', sa.Numeric(14, 2), nullable=True),
        sa.Column('personnel_costs', sa.Numeric(14, 2), nullable=True),
        sa.Column('marketing_costs', sa.Numeric(14, 2), nullable=True),
        sa.Column('administrative_costs', sa.Numeric(14, 2), nullable=True),
        sa.Column('other_costs', sa.Numeric(14, 2), nullable=True),
        sa.UniqueConstraint('year', 'month', name='uq_expense_breakdown_period'),
    )
    op.create_index('ix_expense_breakdown_id', 'expense_breakdown', ['id'])

    op.create_table('transaction_history',
        _uuid_pk(),
        sa.Column('pharmacy_id', sa.String(length=36), sa.ForeignKey('pharmacies.id'), nullable=True, index=True),
        sa.Column('transaction_type', sa.String(length=32), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=True),
        _money('amount'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('reference_id', sa.String(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='completed'),
        sa.Column('created_at', sa.DateTime(), nullable=True, index=True),
    )

    op.create_table('platform_config',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('config_key', sa.String(length=64), nullable=False, unique=True, index=True),
        sa.Column('config_value', sa.Numeric(14, 4), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(length=36), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_platform_config_id', 'platform_config', ['id'])


def downgrade():
    for table in (
        'platform_config',
        'transaction_history',
        'expense_breakdown',
        'revenue_breakdown',
        'financial_metrics',
        'transactions',
        'listings',
        'notifications',
        'archived_pharmacies',
        'verification_queue',
        'withdrawal_requests',
        'fund_requests',
        'wallet_transactions',
        'pharmacy_wallets',
        'pharmacy_invitations',
        'pharmacy_documents',
        'pharmacists',
        'admin_users',
        'pharmacies',
        'auth_accounts',
    ):
        op.drop_table(table)
