"""Initial schema with eligibility rules, thresholds, history and customers

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create rule_category enum
    rule_category_enum = postgresql.ENUM(
        'Financial', 'Employment', 'Personal', 'Family',
        name='rulecategory',
        create_type=False
    )
    rule_category_enum.create(op.get_bind(), checkfirst=True)

    # Create rule_label enum
    rule_label_enum = postgresql.ENUM(
        'Weak', 'Fair', 'Good', 'Strong',
        name='rulelabel',
        create_type=False
    )
    rule_label_enum.create(op.get_bind(), checkfirst=True)

    # Create eligibility_rules table
    op.create_table(
        'eligibility_rules',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('category', rule_category_enum, nullable=False, index=True),
        sa.Column('rule_name', sa.String(100), nullable=False, index=True),
        sa.Column('label', rule_label_enum, nullable=False),
        sa.Column('min_value', sa.Numeric(15, 2), nullable=True),
        sa.Column('max_value', sa.Numeric(15, 2), nullable=True),
        sa.Column('weight_pct', sa.Numeric(6, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.CheckConstraint(
            'min_value IS NOT NULL OR max_value IS NOT NULL',
            name='ck_eligibility_rules_bounded',
        ),
        sa.CheckConstraint('weight_pct >= 0', name='ck_eligibility_rules_weight'),
    )

    # Create score_thresholds table
    op.create_table(
        'score_thresholds',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('min_value', sa.Numeric(6, 2), nullable=False),
        sa.Column('color_code', sa.String(20), nullable=False),
        sa.Column('label', sa.String(50), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create rules_history table
    op.create_table(
        'rules_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        sa.Column('editor_name', sa.String(255), nullable=False),
        sa.Column('editor_email', sa.String(255), nullable=False),
        sa.Column('editor_avatar_url', sa.String(1024), nullable=True),
        sa.Column('rules_snapshot', postgresql.JSONB(), nullable=False),
        sa.Column('thresholds_snapshot', postgresql.JSONB(), nullable=False),
    )

    # Create customers table
    op.create_table(
        'customers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False, index=True),
        sa.Column('national_id', sa.String(50), nullable=True, index=True),
        sa.Column('account_number', sa.String(50), nullable=True),
        sa.Column('branch', sa.String(255), nullable=True),
        sa.Column('attributes', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('final_score', sa.Numeric(8, 2), nullable=True),
        sa.Column('eligibility_status', sa.String(50), nullable=True, index=True),
        sa.Column('scored_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), onupdate=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table('customers')
    op.drop_table('rules_history')
    op.drop_table('score_thresholds')
    op.drop_table('eligibility_rules')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS rulelabel')
    op.execute('DROP TYPE IF EXISTS rulecategory')
