"""create abfi core tables

Revision ID: b7e2c41f9a06
Revises:
Create Date: 2026-10-12 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'b7e2c41f9a06'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'feedstockcategory': ('oilseed', 'UCO', 'tallow', 'lignocellulosic', 'waste', 'algae', 'bamboo', 'other'),
    'australianstate': ('NSW', 'VIC', 'QLD', 'SA', 'WA', 'TAS', 'NT', 'ACT'),
    'productionmethod': ('crop', 'waste', 'residue', 'processing_byproduct'),
    'feedstockstatus': ('draft', 'pending_review', 'active', 'suspended'),
    'verificationlevel': ('self_declared', 'document_verified', 'third_party_audited', 'abfi_certified'),
    'certificatetype': ('ISCC_EU', 'ISCC_PLUS', 'RSB', 'RED_II', 'GO', 'ABFI', 'OTHER'),
    'certificatestatus': ('active', 'expired', 'revoked'),
    'agreementtier': ('tier1', 'tier2', 'option', 'rofr'),
    'pricingmechanism': ('fixed', 'fixed_with_escalation', 'index_linked', 'index_with_floor_ceiling', 'spot_reference'),
    'agreementstatus': ('draft', 'negotiation', 'executed', 'active', 'suspended', 'terminated'),
    'bankabilityrating': ('AAA', 'AA', 'A', 'BBB', 'BB', 'B', 'CCC'),
    'assessmentstatus': ('draft', 'submitted', 'under_review', 'approved', 'rejected'),
    'covenantseverity': ('info', 'warning', 'breach', 'critical'),
    'lenderreportstatus': ('draft', 'finalized', 'sent'),
    'cireportstatus': ('draft', 'submitted', 'under_review', 'verified', 'rejected'),
    'cimethodology': ('RED_II', 'RFS', 'ISO_14064', 'GHG_PROTOCOL', 'ABFI_DEFAULT'),
    'auditeventtype': (
        'ENTITY_CREATED', 'VERSION_CREATED',
        'BREACH_RECORDED', 'BREACH_RESOLVED', 'LENDER_NOTIFIED',
        'REPORT_GENERATED', 'REPORT_FINALIZED', 'REPORT_SENT',
        'CI_REPORT_CREATED', 'CI_REPORT_UPDATED', 'CI_REPORT_SUBMITTED',
        'CI_REVIEW_STARTED', 'CI_REPORT_APPROVED', 'CI_REPORT_REJECTED', 'CI_REVISION_REQUESTED',
    ),
}


def enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def uuid_col(name: str, *args, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), *args, **kwargs)


def base_columns():
    return [
        uuid_col('id', primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def versioned_columns(table: str):
    return [
        uuid_col('lineage_id', nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('valid_from', sa.DateTime(), nullable=False),
        sa.Column('valid_to', sa.DateTime(), nullable=True),
        sa.Column('is_current', sa.Boolean(), nullable=False),
        uuid_col('superseded_by_id', sa.ForeignKey(f'{table}.id'), nullable=True),
        sa.UniqueConstraint('lineage_id', 'version_number', name=f'uq_{table}_lineage_version'),
    ]


def create_versioned_indexes(table: str) -> None:
    op.create_index(f'ix_{table}_lineage_id', table, ['lineage_id'])
    # At most one current row per lineage
    op.create_index(
        f'uq_{table}_lineage_current', table, ['lineage_id'],
        unique=True, postgresql_where=sa.text('is_current'),
    )


def upgrade() -> None:
    # Create enum types up front; several tables share them
    for name, values in ENUMS.items():
        enum_values = ", ".join(f"'{v}'" for v in values)
        op.execute(f"DO $$ BEGIN IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{name}') THEN CREATE TYPE {name} AS ENUM ({enum_values}); END IF; END $$;")

    op.create_table(
        'projects',
        *base_columns(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('developer_name', sa.String(255), nullable=True),
        sa.Column('state', enum('australianstate'), nullable=True),
        sa.Column('nameplate_capacity_tonnes', sa.Integer(), nullable=True),
    )

    op.create_table(
        'feedstocks',
        *base_columns(),
        *versioned_columns('feedstocks'),
        sa.Column('abfi_id', sa.String(50), nullable=False),
        uuid_col('supplier_id', nullable=False),
        sa.Column('category', enum('feedstockcategory'), nullable=False),
        sa.Column('type', sa.String(100), nullable=False),
        sa.Column('state', enum('australianstate'), nullable=False),
        sa.Column('latitude', sa.String(20), nullable=False),
        sa.Column('longitude', sa.String(20), nullable=False),
        sa.Column('production_method', enum('productionmethod'), nullable=False),
        sa.Column('annual_capacity_tonnes', sa.Integer(), nullable=False),
        sa.Column('available_volume_current', sa.Integer(), nullable=False),
        sa.Column('abfi_score', sa.Integer(), nullable=True),
        sa.Column('carbon_intensity_value', sa.Integer(), nullable=True),
        sa.Column('quality_parameters', postgresql.JSONB(), nullable=True),
        sa.Column('price_per_tonne', sa.Integer(), nullable=True),
        sa.Column('status', enum('feedstockstatus'), nullable=False),
        sa.Column('verification_level', enum('verificationlevel'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('version_reason', sa.Text(), nullable=True),
    )
    create_versioned_indexes('feedstocks')
    op.create_index('ix_feedstocks_abfi_id', 'feedstocks', ['abfi_id'])
    op.create_index('ix_feedstocks_supplier_id', 'feedstocks', ['supplier_id'])

    op.create_table(
        'certificates',
        *base_columns(),
        *versioned_columns('certificates'),
        uuid_col('feedstock_id', sa.ForeignKey('feedstocks.id'), nullable=False),
        sa.Column('type', enum('certificatetype'), nullable=False),
        sa.Column('certificate_number', sa.String(100), nullable=True),
        sa.Column('issued_date', sa.DateTime(), nullable=True),
        sa.Column('expiry_date', sa.DateTime(), nullable=True),
        sa.Column('status', enum('certificatestatus'), nullable=False),
        sa.Column('rating_grade', sa.String(10), nullable=True),
        sa.Column('renewal_date', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version_reason', sa.Text(), nullable=True),
    )
    create_versioned_indexes('certificates')
    op.create_index('ix_certificates_feedstock_id', 'certificates', ['feedstock_id'])
    op.create_index('ix_certificates_expiry_date', 'certificates', ['expiry_date'])

    op.create_table(
        'supply_agreements',
        *base_columns(),
        *versioned_columns('supply_agreements'),
        uuid_col('project_id', sa.ForeignKey('projects.id'), nullable=False),
        uuid_col('supplier_id', nullable=False),
        sa.Column('supplier_name', sa.String(255), nullable=True),
        sa.Column('tier', enum('agreementtier'), nullable=False),
        sa.Column('annual_volume', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('term_years', sa.Integer(), nullable=False),
        sa.Column('pricing_mechanism', enum('pricingmechanism'), nullable=False),
        sa.Column('base_price', sa.Integer(), nullable=True),
        sa.Column('take_or_pay_percent', sa.Integer(), nullable=True),
        sa.Column('quality_specs', postgresql.JSONB(), nullable=True),
        sa.Column('status', enum('agreementstatus'), nullable=False),
        sa.Column('amendment_reason', sa.Text(), nullable=True),
    )
    create_versioned_indexes('supply_agreements')
    op.create_index('ix_supply_agreements_project_id', 'supply_agreements', ['project_id'])
    op.create_index('ix_supply_agreements_supplier_id', 'supply_agreements', ['supplier_id'])

    op.create_table(
        'bankability_assessments',
        *base_columns(),
        *versioned_columns('bankability_assessments'),
        uuid_col('project_id', sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('assessment_number', sa.String(50), nullable=False),
        sa.Column('assessment_date', sa.DateTime(), nullable=False),
        sa.Column('volume_security_score', sa.Integer(), nullable=False),
        sa.Column('counterparty_quality_score', sa.Integer(), nullable=False),
        sa.Column('contract_structure_score', sa.Integer(), nullable=False),
        sa.Column('concentration_risk_score', sa.Integer(), nullable=False),
        sa.Column('operational_readiness_score', sa.Integer(), nullable=False),
        sa.Column('composite_score', sa.Integer(), nullable=False),
        sa.Column('rating', enum('bankabilityrating'), nullable=False),
        sa.Column('tier1_percent', sa.Integer(), nullable=True),
        sa.Column('tier2_percent', sa.Integer(), nullable=True),
        sa.Column('supplier_hhi', sa.Integer(), nullable=True),
        sa.Column('strengths', postgresql.JSONB(), nullable=True),
        sa.Column('monitoring_items', postgresql.JSONB(), nullable=True),
        sa.Column('status', enum('assessmentstatus'), nullable=False),
        sa.Column('reassessment_reason', sa.Text(), nullable=True),
    )
    create_versioned_indexes('bankability_assessments')
    op.create_index('ix_bankability_assessments_project_id', 'bankability_assessments', ['project_id'])
    op.create_index('ix_bankability_assessments_assessment_number', 'bankability_assessments', ['assessment_number'])

    op.create_table(
        'covenant_breach_events',
        *base_columns(),
        uuid_col('project_id', sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('covenant_type', sa.String(100), nullable=False),
        sa.Column('breach_date', sa.DateTime(), nullable=False),
        sa.Column('detected_date', sa.DateTime(), nullable=False),
        sa.Column('severity', enum('covenantseverity'), nullable=False),
        sa.Column('actual_value', sa.Float(), nullable=False),
        sa.Column('threshold_value', sa.Float(), nullable=False),
        sa.Column('variance_percent', sa.Integer(), nullable=False),
        sa.Column('narrative_explanation', sa.Text(), nullable=True),
        sa.Column('impact_assessment', sa.Text(), nullable=True),
        sa.Column('resolved', sa.Boolean(), nullable=False),
        sa.Column('resolved_date', sa.DateTime(), nullable=True),
        sa.Column('resolution_notes', sa.Text(), nullable=True),
        uuid_col('resolved_by', nullable=True),
        sa.Column('lender_notified', sa.Boolean(), nullable=False),
        sa.Column('notified_date', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_covenant_breach_events_project_id', 'covenant_breach_events', ['project_id'])
    op.create_index('ix_covenant_breach_events_breach_date', 'covenant_breach_events', ['breach_date'])
    op.create_index('ix_covenant_breach_events_severity', 'covenant_breach_events', ['severity'])
    op.create_index('ix_covenant_breach_events_resolved', 'covenant_breach_events', ['resolved'])

    op.create_table(
        'lender_reports',
        *base_columns(),
        uuid_col('project_id', sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('report_month', sa.String(7), nullable=False),
        sa.Column('report_year', sa.Integer(), nullable=False),
        sa.Column('report_quarter', sa.Integer(), nullable=True),
        sa.Column('generated_date', sa.DateTime(), nullable=False),
        uuid_col('generated_by', nullable=True),
        sa.Column('report_pdf_url', sa.String(500), nullable=True),
        sa.Column('evidence_pack_url', sa.String(500), nullable=True),
        sa.Column('executive_summary', sa.Text(), nullable=True),
        sa.Column('score_changes_narrative', sa.Text(), nullable=True),
        sa.Column('covenant_compliance_status', postgresql.JSONB(), nullable=True),
        sa.Column('supply_position_summary', postgresql.JSONB(), nullable=True),
        sa.Column('evidence_count', sa.Integer(), nullable=False),
        sa.Column('evidence_types', postgresql.JSONB(), nullable=True),
        sa.Column('status', enum('lenderreportstatus'), nullable=False),
        sa.Column('finalized_date', sa.DateTime(), nullable=True),
        sa.Column('sent_date', sa.DateTime(), nullable=True),
        sa.Column('recipient_emails', postgresql.JSONB(), nullable=True),
    )
    op.create_index('ix_lender_reports_project_id', 'lender_reports', ['project_id'])
    op.create_index('ix_lender_reports_report_month', 'lender_reports', ['report_month'])
    op.create_index('ix_lender_reports_status', 'lender_reports', ['status'])

    op.create_table(
        'carbon_intensity_reports',
        *base_columns(),
        uuid_col('supplier_id', nullable=False),
        uuid_col('feedstock_id', sa.ForeignKey('feedstocks.id'), nullable=True),
        sa.Column('reporting_period_start', sa.Date(), nullable=True),
        sa.Column('reporting_period_end', sa.Date(), nullable=True),
        sa.Column('methodology', enum('cimethodology'), nullable=False),
        sa.Column('calculation_notes', sa.Text(), nullable=True),
        *[
            sa.Column(name, sa.Float(), nullable=False)
            for name in (
                'scope1_cultivation', 'scope1_processing', 'scope1_transport',
                'scope2_electricity', 'scope2_steam_heat',
                'scope3_upstream_inputs', 'scope3_land_use_change',
                'scope3_distribution', 'scope3_end_of_life',
                'total_emissions',
            )
        ],
        sa.Column('status', enum('cireportstatus'), nullable=False),
        sa.Column('verification_level', enum('verificationlevel'), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        uuid_col('assigned_auditor_id', nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        uuid_col('verified_by', nullable=True),
        sa.Column('auditor_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
    )
    op.create_index('ix_carbon_intensity_reports_supplier_id', 'carbon_intensity_reports', ['supplier_id'])
    op.create_index('ix_carbon_intensity_reports_feedstock_id', 'carbon_intensity_reports', ['feedstock_id'])
    op.create_index('ix_carbon_intensity_reports_status', 'carbon_intensity_reports', ['status'])

    op.create_table(
        'audit_events',
        *base_columns(),
        sa.Column('entity_type', sa.String(50), nullable=False),
        uuid_col('entity_id', nullable=False),
        sa.Column('event_type', enum('auditeventtype'), nullable=False),
        uuid_col('actor_id', nullable=True),
        sa.Column('previous_status', sa.String(50), nullable=True),
        sa.Column('new_status', sa.String(50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('detail', postgresql.JSONB(), nullable=True),
    )
    op.create_index('ix_audit_events_entity_type', 'audit_events', ['entity_type'])
    op.create_index('ix_audit_events_entity_id', 'audit_events', ['entity_id'])


def downgrade() -> None:
    for table in (
        'audit_events',
        'carbon_intensity_reports',
        'lender_reports',
        'covenant_breach_events',
        'bankability_assessments',
        'supply_agreements',
        'certificates',
        'feedstocks',
        'projects',
    ):
        op.drop_table(table)
    for name in ENUMS:
        op.execute(f"DROP TYPE IF EXISTS {name}")
