"""Initial migration - partners, pipeline activity, documents, CRM, catalog and blog

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Partners
    op.create_table(
        'partners',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('partner_id', sa.String(length=32), nullable=True),
        sa.Column('partner_type', sa.String(length=32), nullable=False),
        sa.Column('pipeline_stage', sa.String(length=50), nullable=False),
        sa.Column('stage_entered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('skip_reason', sa.Text(), nullable=True),
        sa.Column('skipped_stages', sa.Text(), nullable=True),
        sa.Column('initial_review_status', sa.String(length=32), nullable=False),
        sa.Column('initial_reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('post_call_review_status', sa.String(length=32), nullable=False),
        sa.Column('post_call_reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('loi_status', sa.String(length=32), nullable=False),
        sa.Column('loi_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('loi_signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('loi_docuseal_id', sa.String(length=64), nullable=True),
        sa.Column('contract_status', sa.String(length=32), nullable=False),
        sa.Column('contract_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('contract_signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('contract_docuseal_id', sa.String(length=64), nullable=True),
        sa.Column('nda_status', sa.String(length=32), nullable=False),
        sa.Column('nda_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('nda_signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('nda_docuseal_id', sa.String(length=64), nullable=True),
        sa.Column('trial_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('trial_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tipalti_payee_id', sa.String(length=64), nullable=True),
        sa.Column('tipalti_status', sa.String(length=32), nullable=True),
        sa.Column('contact_first_name', sa.String(length=128), nullable=True),
        sa.Column('contact_last_name', sa.String(length=128), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=64), nullable=True),
        sa.Column('contact_title', sa.String(length=128), nullable=True),
        sa.Column('company_legal_name', sa.String(length=256), nullable=True),
        sa.Column('dba_name', sa.String(length=256), nullable=True),
        sa.Column('address_line_1', sa.String(length=256), nullable=True),
        sa.Column('address_line_2', sa.String(length=256), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('state', sa.String(length=64), nullable=True),
        sa.Column('zip', sa.String(length=20), nullable=True),
        sa.Column('source', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_partners_partner_id'), 'partners', ['partner_id'], unique=True)
    op.create_index(op.f('ix_partners_pipeline_stage'), 'partners', ['pipeline_stage'], unique=False)
    op.create_index(op.f('ix_partners_contact_email'), 'partners', ['contact_email'], unique=False)

    op.create_table(
        'partner_activities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('partner_id', sa.Integer(), nullable=False),
        sa.Column('activity_type', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('performed_by', sa.String(length=128), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_partner_activities_partner_id'), 'partner_activities', ['partner_id'], unique=False)

    # Venues, devices, earnings
    op.create_table(
        'venues',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('partner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=256), nullable=False),
        sa.Column('venue_type', sa.String(length=64), nullable=True),
        sa.Column('address_line_1', sa.String(length=256), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('state', sa.String(length=64), nullable=True),
        sa.Column('zip', sa.String(length=20), nullable=True),
        sa.Column('square_footage', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('trial_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('trial_end_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_venues_partner_id'), 'venues', ['partner_id'], unique=False)

    op.create_table(
        'devices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('venue_id', sa.Integer(), nullable=True),
        sa.Column('partner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=True),
        sa.Column('device_type', sa.String(length=64), nullable=True),
        sa.Column('mac_address', sa.String(length=32), nullable=True),
        sa.Column('serial_number', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('data_usage_gb', sa.Float(), nullable=False),
        sa.Column('monthly_earnings', sa.Numeric(12, 2), nullable=False),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_devices_venue_id'), 'devices', ['venue_id'], unique=False)
    op.create_index(op.f('ix_devices_partner_id'), 'devices', ['partner_id'], unique=False)

    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('partner_id', sa.Integer(), nullable=False),
        sa.Column('period_month', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_commissions_partner_id'), 'commissions', ['partner_id'], unique=False)

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('partner_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('reference', sa.String(length=128), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_payments_partner_id'), 'payments', ['partner_id'], unique=False)

    # E-signature
    op.create_table(
        'document_templates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('template_type', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=256), nullable=False),
        sa.Column('slug', sa.String(length=128), nullable=True),
        sa.Column('docuseal_template_id', sa.String(length=64), nullable=True),
        sa.Column('html', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('template_type'),
    )

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('partner_id', sa.Integer(), nullable=True),
        sa.Column('document_type', sa.String(length=50), nullable=False),
        sa.Column('template_type', sa.String(length=50), nullable=False),
        sa.Column('docuseal_submission_id', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('recipient_email', sa.String(length=255), nullable=False),
        sa.Column('recipient_name', sa.String(length=256), nullable=True),
        sa.Column('sent_by', sa.String(length=128), nullable=True),
        sa.Column('document_url', sa.String(length=1024), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('viewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('declined_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_documents_partner_id'), 'documents', ['partner_id'], unique=False)
    op.create_index(
        op.f('ix_documents_docuseal_submission_id'), 'documents', ['docuseal_submission_id'], unique=False
    )

    # CRM
    op.create_table(
        'prospects',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('prospect_type', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('first_name', sa.String(length=128), nullable=False),
        sa.Column('last_name', sa.String(length=128), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('company_name', sa.String(length=256), nullable=True),
        sa.Column('title', sa.String(length=128), nullable=True),
        sa.Column('source', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('last_contact_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('next_follow_up', sa.DateTime(timezone=True), nullable=True),
        sa.Column('follow_up_count', sa.Integer(), nullable=False),
        sa.Column('converted_partner_id', sa.Integer(), nullable=True),
        sa.Column('converted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['converted_partner_id'], ['partners.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_prospects_email'), 'prospects', ['email'], unique=False)

    op.create_table(
        'prospect_activities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('prospect_id', sa.Integer(), nullable=False),
        sa.Column('activity_type', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('performed_by', sa.String(length=128), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['prospect_id'], ['prospects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_prospect_activities_prospect_id'), 'prospect_activities', ['prospect_id'], unique=False)

    # Store catalog
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=256), nullable=False),
        sa.Column('sku', sa.String(length=128), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('manufacturer', sa.String(length=128), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('product_url', sa.String(length=1024), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('specs', sa.JSON(), nullable=True),
        sa.Column('msrp', sa.Numeric(12, 2), nullable=False),
        sa.Column('markup', sa.Numeric(6, 4), nullable=False),
        sa.Column('store_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_products_sku'), 'products', ['sku'], unique=True)
    op.create_index(op.f('ix_products_category'), 'products', ['category'], unique=False)

    # Blog
    op.create_table(
        'articles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=512), nullable=False),
        sa.Column('slug', sa.String(length=256), nullable=False),
        sa.Column('excerpt', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('featured_image', sa.String(length=1024), nullable=True),
        sa.Column('author_name', sa.String(length=256), nullable=True),
        sa.Column('author_email', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_by', sa.String(length=128), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_articles_slug'), 'articles', ['slug'], unique=True)
    op.create_index(op.f('ix_articles_category'), 'articles', ['category'], unique=False)


def downgrade() -> None:
    op.drop_table('articles')
    op.drop_table('products')
    op.drop_table('prospect_activities')
    op.drop_table('prospects')
    op.drop_table('documents')
    op.drop_table('document_templates')
    op.drop_table('payments')
    op.drop_table('commissions')
    op.drop_table('devices')
    op.drop_table('venues')
    op.drop_table('partner_activities')
    op.drop_table('partners')
