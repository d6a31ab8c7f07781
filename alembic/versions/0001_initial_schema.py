"""create profiles, jobs, applications, interviews and email_logs

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _status(name, *values):
    return sa.Enum(*values, name=name, native_enum=False, length=32)


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', _status('profile_role', 'student', 'employer', 'admin'), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verification_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('email_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)

    op.create_table(
        'jobs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('employer_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(512), nullable=False),
        sa.Column('company', sa.String(512), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(512), nullable=False),
        sa.Column('salary', sa.String(128), nullable=False),
        sa.Column('type', sa.String(64), nullable=False),
        sa.Column('deadline', sa.Date(), nullable=False),
        sa.Column('status', _status('job_status', 'pending', 'approved', 'rejected', 'closed'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_jobs_employer_id', 'jobs', ['employer_id'])
    op.create_index('ix_jobs_deadline', 'jobs', ['deadline'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])

    op.create_table(
        'applications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('job_id', sa.String(36), sa.ForeignKey('jobs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'status',
            _status('application_status', 'submitted', 'under_review', 'accepted', 'rejected', 'withdrawn'),
            nullable=False,
        ),
        sa.Column(
            'interview_status',
            _status('application_interview_status', 'none', 'requested', 'scheduled', 'completed', 'declined'),
            nullable=False,
        ),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        sa.Column('resume_url', sa.String(2048), nullable=True),
        sa.Column('applicant_name', sa.String(255), nullable=True),
        sa.Column('applicant_email', sa.String(320), nullable=True),
        sa.Column('additional_comments', sa.Text(), nullable=True),
        sa.Column('employer_message', sa.Text(), nullable=True),
        sa.Column('applied_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('job_id', 'student_id', name='uq_applications_job_student'),
    )
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_student_id', 'applications', ['student_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])

    op.create_table(
        'interviews',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'application_id', sa.String(36), sa.ForeignKey('applications.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('employer_message', sa.Text(), nullable=False),
        sa.Column(
            'status', _status('interview_status', 'proposed', 'confirmed', 'completed', 'cancelled'), nullable=False
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_interviews_application_id', 'interviews', ['application_id'], unique=True)

    op.create_table(
        'email_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'application_id', sa.String(36), sa.ForeignKey('applications.id', ondelete='CASCADE'), nullable=True
        ),
        sa.Column('recipient_email', sa.String(320), nullable=False),
        sa.Column(
            'email_type',
            _status(
                'email_type',
                'application_submitted',
                'application_under_review',
                'application_accepted',
                'application_rejected',
                'interview_requested',
                'interview_scheduled',
                'verification_approved',
            ),
            nullable=False,
        ),
        sa.Column('subject', sa.String(512), nullable=False),
        sa.Column('status', _status('email_status', 'queued', 'sending', 'sent', 'failed'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_email_logs_application_id', 'email_logs', ['application_id'])
    op.create_index('ix_email_logs_email_type', 'email_logs', ['email_type'])
    op.create_index('ix_email_logs_status', 'email_logs', ['status'])


def downgrade() -> None:
    op.drop_table('email_logs')
    op.drop_table('interviews')
    op.drop_table('applications')
    op.drop_table('jobs')
    op.drop_table('profiles')
