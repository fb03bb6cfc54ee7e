"""Create billing tables

Revision ID: 20261017_000001
Revises: None
Create Date: 2026-10-17

Creates tenants, contacts, properties, contracts, invoices,
invoice_charges, payments and ocr_logs.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261017_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Create the billing schema."""
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column(
            'status',
            sa.Enum('active', 'paused', 'cancelled', name='tenant_status'),
            nullable=False,
        ),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.Enum('owner', 'tenant', name='contact_kind'), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], name='fk_contacts_tenant_id', ondelete='CASCADE'),
    )
    op.create_index('ix_contacts_tenant_id', 'contacts', ['tenant_id'])

    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('owner_contact_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], name='fk_properties_tenant_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['owner_contact_id'], ['contacts.id'], name='fk_properties_owner_contact_id'),
    )
    op.create_index('ix_properties_tenant_id', 'properties', ['tenant_id'])

    op.create_table(
        'contracts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('number', sa.String(length=50), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('tenant_contact_id', sa.Integer(), nullable=False),
        sa.Column('owner_contact_id', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('rent_amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('payment_day', sa.Integer(), nullable=False),
        sa.Column(
            'late_fee_type',
            sa.Enum('none', 'fixed', 'percent', name='late_fee_type'),
            nullable=False,
        ),
        sa.Column('late_fee_value', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column(
            'status',
            sa.Enum('draft', 'signed', 'active', 'expiring', 'expired', 'cancelled', name='contract_status'),
            nullable=False,
        ),
        sa.Column('invoices_generated', sa.Boolean(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'number', name='uq_contracts_tenant_number'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], name='fk_contracts_tenant_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_contracts_property_id'),
        sa.ForeignKeyConstraint(['tenant_contact_id'], ['contacts.id'], name='fk_contracts_tenant_contact_id'),
        sa.ForeignKeyConstraint(['owner_contact_id'], ['contacts.id'], name='fk_contracts_owner_contact_id'),
    )
    op.create_index('ix_contracts_tenant_id', 'contracts', ['tenant_id'])
    op.create_index('ix_contracts_property_id', 'contracts', ['property_id'])
    op.create_index('ix_contracts_status', 'contracts', ['status'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('contract_id', sa.Integer(), nullable=False),
        sa.Column('tenant_contact_id', sa.Integer(), nullable=False),
        sa.Column('number', sa.String(length=80), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('tax', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('other_charges', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('late_fee', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column(
            'status',
            sa.Enum(
                'draft', 'issued', 'partial', 'paid', 'overdue', 'cancelled',
                name='invoice_status',
                create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column('late_fee_applied_at', sa.DateTime(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'number', name='uq_invoices_tenant_number'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], name='fk_invoices_tenant_id'),
        sa.ForeignKeyConstraint(['contract_id'], ['contracts.id'], name='fk_invoices_contract_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tenant_contact_id'], ['contacts.id'], name='fk_invoices_tenant_contact_id'),
    )

    # Create indexes for common queries
    op.create_index('ix_invoices_tenant_id', 'invoices', ['tenant_id'])
    op.create_index('ix_invoices_contract_id', 'invoices', ['contract_id'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])

    op.create_table(
        'invoice_charges',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column(
            'kind',
            sa.Enum('rent', 'late_fee', 'adjustment', 'other', name='charge_kind'),
            nullable=False,
        ),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], name='fk_invoice_charges_invoice_id', ondelete='CASCADE'),
    )
    op.create_index('ix_invoice_charges_invoice_id', 'invoice_charges', ['invoice_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('method', sa.String(length=50), nullable=False),
        sa.Column('receipt_url', sa.String(length=500), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], name='fk_payments_tenant_id'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], name='fk_payments_invoice_id'),
    )
    op.create_index('ix_payments_tenant_id', 'payments', ['tenant_id'])
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'])

    op.create_table(
        'ocr_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('file_url', sa.String(length=500), nullable=False),
        sa.Column('provider', sa.String(length=50), nullable=False),
        sa.Column('confidence', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'ok', 'needs_review', 'error', name='ocr_status'),
            nullable=False,
        ),
        sa.Column('extracted_amount', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('extracted_reference', sa.String(length=255), nullable=True),
        sa.Column('extracted_period_start', sa.Date(), nullable=True),
        sa.Column('extracted_period_end', sa.Date(), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], name='fk_ocr_logs_tenant_id', ondelete='CASCADE'),
    )
    op.create_index('ix_ocr_logs_tenant_id', 'ocr_logs', ['tenant_id'])


def downgrade() -> None:
    """Drop the billing schema."""
    op.drop_index('ix_ocr_logs_tenant_id', table_name='ocr_logs')
    op.drop_table('ocr_logs')
    op.drop_index('ix_payments_invoice_id', table_name='payments')
    op.drop_index('ix_payments_tenant_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_invoice_charges_invoice_id', table_name='invoice_charges')
    op.drop_table('invoice_charges')
    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_due_date', table_name='invoices')
    op.drop_index('ix_invoices_contract_id', table_name='invoices')
    op.drop_index('ix_invoices_tenant_id', table_name='invoices')
    op.drop_table('invoices')
    op.drop_index('ix_contracts_status', table_name='contracts')
    op.drop_index('ix_contracts_property_id', table_name='contracts')
    op.drop_index('ix_contracts_tenant_id', table_name='contracts')
    op.drop_table('contracts')
    op.drop_index('ix_properties_tenant_id', table_name='properties')
    op.drop_table('properties')
    op.drop_index('ix_contacts_tenant_id', table_name='contacts')
    op.drop_table('contacts')
    op.drop_table('tenants')
