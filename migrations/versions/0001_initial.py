"""initial tables

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)
    op.create_index('ix_user_role', 'user', ['role'])

    op.create_table('subject',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('standard', sa.Integer(), nullable=False),
        sa.Column('subjectname', sa.String(length=255), nullable=False),
        sa.Column('board', sa.String(length=100), nullable=False),
    )
    op.create_index('ix_subject_triple', 'subject', ['subjectname', 'standard', 'board'])

    op.create_table('faculty_subject',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('faculty_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subject.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('faculty_id', 'subject_id', name='uq_faculty_subject_pair'),
    )
    op.create_index('ix_faculty_subject_faculty_id', 'faculty_subject', ['faculty_id'])
    op.create_index('ix_faculty_subject_subject_id', 'faculty_subject', ['subject_id'])

    op.create_table('subjectmap',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subject.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('user_id', 'subject_id', name='uq_subjectmap_user_subject'),
    )
    op.create_index('ix_subjectmap_user_id', 'subjectmap', ['user_id'])
    op.create_index('ix_subjectmap_subject_id', 'subjectmap', ['subject_id'])


def downgrade():
    op.drop_index('ix_subjectmap_subject_id', table_name='subjectmap')
    op.drop_index('ix_subjectmap_user_id', table_name='subjectmap')
    op.drop_table('subjectmap')
    op.drop_index('ix_faculty_subject_subject_id', table_name='faculty_subject')
    op.drop_index('ix_faculty_subject_faculty_id', table_name='faculty_subject')
    op.drop_table('faculty_subject')
    op.drop_index('ix_subject_triple', table_name='subject')
    op.drop_table('subject')
    op.drop_index('ix_user_role', table_name='user')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_table('user')
