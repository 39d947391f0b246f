"""add crm tables

Revision ID: b4e1c9d2a7f3
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b4e1c9d2a7f3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Properties
    op.create_table('properties',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('street', sa.String(255), nullable=False, server_default=''),
        sa.Column('city', sa.String(100), nullable=False, server_default=''),
        sa.Column('state', sa.String(50), nullable=False, server_default=''),
        sa.Column('zip', sa.String(20), nullable=False, server_default=''),
        sa.Column('energy_provider', sa.String(255), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_properties_user_id', 'properties', ['user_id'])
    op.create_index('ix_properties_name', 'properties', ['name'])

    # Units
    op.create_table('units',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=True),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('unit_number', sa.String(50), nullable=False),
        sa.Column('base_rent', sa.String(50), nullable=True),
        sa.Column('status', sa.String(30), nullable=False, server_default='Vacant'),
        sa.Column('bedrooms', sa.Integer(), nullable=True),
        sa.Column('bathrooms', sa.Float(), nullable=True),
        sa.Column('square_feet', sa.Integer(), nullable=True),
        sa.Column('floor', sa.Integer(), nullable=True),
        sa.Column('available_on', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'unit_number', name='uq_units_property_unit_number')
    )
    op.create_index('ix_units_user_id', 'units', ['user_id'])
    op.create_index('ix_units_property_id', 'units', ['property_id'])

    # Persons
    op.create_table('persons',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('status', sa.String(30), nullable=False, server_default='Prospect'),
        sa.Column('became_applicant', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_persons_user_id', 'persons', ['user_id'])
    op.create_index('ix_persons_email', 'persons', ['email'])

    # Applications
    op.create_table('applications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=True),
        sa.Column('status', sa.String(30), nullable=False, server_default='New'),
        sa.Column('move_in_date', sa.String(10), nullable=True),
        sa.Column('applicant', sa.String(255), nullable=False, server_default=''),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('property', sa.String(255), nullable=True),
        sa.Column('unit_number', sa.String(50), nullable=True),
        sa.Column('deposit', sa.String(50), nullable=True),
        sa.Column('rent', sa.String(50), nullable=True),
        sa.Column('pet_fee', sa.String(50), nullable=True),
        sa.Column('pet_rent', sa.String(50), nullable=True),
        sa.Column('renters_insurance', sa.String(50), nullable=True),
        sa.Column('admin_fee', sa.String(50), nullable=True),
        sa.Column('initial_payment', sa.String(50), nullable=True),
        sa.Column('unit_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_applications_user_id', 'applications', ['user_id'])
    op.create_index('ix_applications_unit_id', 'applications', ['unit_id'])
    op.create_index('ix_applications_created_at', 'applications', ['created_at'])

    # Application <-> Person links
    op.create_table('application_persons',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('person_id', sa.Integer(), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['person_id'], ['persons.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('application_id', 'person_id', name='uq_application_persons_pair')
    )
    op.create_index('ix_application_persons_application_id', 'application_persons', ['application_id'])
    op.create_index('ix_application_persons_person_id', 'application_persons', ['person_id'])

    # Tasks
    op.create_table('tasks',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('type', sa.String(20), nullable=False, server_default='APPLICANT'),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('application_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tasks_application_id', 'tasks', ['application_id'])
    op.create_index('ix_tasks_application_id_order', 'tasks', ['application_id', 'order'])
    op.create_index('ix_tasks_user_id', 'tasks', ['user_id'])


def downgrade():
    op.drop_table('tasks')
    op.drop_table('application_persons')
    op.drop_table('applications')
    op.drop_table('persons')
    op.drop_table('units')
    op.drop_table('properties')
