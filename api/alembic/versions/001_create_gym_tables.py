"""Create gym tables

Revision ID: 001_create_gym_tables
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_create_gym_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Create vocabulary, card_state, practice_session and practice_result tables.
    """
    op.create_table(
        'vocabulary',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('learning_space_id', sa.Integer(), nullable=False),
        sa.Column('word', sa.String(), nullable=False),
        sa.Column('lemma', sa.String(), nullable=False),
        sa.Column('translation', sa.String(), nullable=False),
        sa.Column('definition', sa.String(), nullable=True),
        sa.Column('word_kind', sa.String(), nullable=False),
        sa.Column('sex', sa.String(), nullable=True),
        sa.Column('example_sentence', sa.String(), nullable=True),
        sa.Column('example_sentence_translation', sa.String(), nullable=True),
        sa.Column('example_audio_key', sa.String(), nullable=True),
        sa.Column('image_key', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='vocabulary_pkey'),
    )
    op.create_index(op.f('ix_vocabulary_learning_space_id'), 'vocabulary', ['learning_space_id'], unique=False)

    op.create_table(
        'card_state',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('learning_space_id', sa.Integer(), nullable=False),
        sa.Column('vocab_id', sa.Integer(), nullable=False),
        sa.Column('difficulty', sa.Float(), nullable=False, server_default='5.0'),
        sa.Column('stability', sa.Float(), nullable=False, server_default='0'),
        sa.Column('state', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('step', sa.Integer(), nullable=True),
        sa.Column('elapsed_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('scheduled_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lapses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_review', sa.DateTime(), nullable=True),
        sa.Column('due', sa.DateTime(), nullable=False),
        sa.Column('xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_practice_type', sa.String(), nullable=True),
        sa.Column('unlocked_practice_types', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['vocab_id'], ['vocabulary.id'], name='card_state_vocab_id_fkey'),
        sa.PrimaryKeyConstraint('id', name='card_state_pkey'),
        sa.UniqueConstraint('user_id', 'vocab_id', 'learning_space_id', name='uq_card_state_user_vocab_space'),
        sa.CheckConstraint('state IN (0, 1, 2, 3)', name='card_state_state_check'),
    )
    op.create_index(op.f('ix_card_state_user_id'), 'card_state', ['user_id'], unique=False)
    op.create_index(op.f('ix_card_state_learning_space_id'), 'card_state', ['learning_space_id'], unique=False)
    op.create_index(op.f('ix_card_state_due'), 'card_state', ['due'], unique=False)

    op.create_table(
        'practice_session',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('learning_space_id', sa.Integer(), nullable=False),
        sa.Column('target_count', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('completed_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_xp_gained', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id', name='practice_session_pkey'),
    )
    op.create_index(op.f('ix_practice_session_user_id'), 'practice_session', ['user_id'], unique=False)
    op.create_index(op.f('ix_practice_session_learning_space_id'), 'practice_session', ['learning_space_id'], unique=False)

    op.create_table(
        'practice_result',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('vocab_id', sa.Integer(), nullable=False),
        sa.Column('exercise_order', sa.Integer(), nullable=False),
        sa.Column('practice_type', sa.String(), nullable=False),
        sa.Column('grade', sa.Integer(), nullable=False),
        sa.Column('user_answer', sa.String(), nullable=True),
        sa.Column('correct_answer', sa.String(), nullable=True),
        sa.Column('prompt_text', sa.String(), nullable=True),
        sa.Column('response_time_ms', sa.Integer(), nullable=False),
        sa.Column('xp_gained', sa.Integer(), nullable=False),
        sa.Column('stability_before', sa.Float(), nullable=False),
        sa.Column('stability_after', sa.Float(), nullable=False),
        sa.Column('difficulty_before', sa.Float(), nullable=False),
        sa.Column('difficulty_after', sa.Float(), nullable=False),
        sa.Column('next_review_at', sa.DateTime(), nullable=False),
        sa.Column('unlocked_practice_types', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['practice_session.id'], name='practice_result_session_id_fkey'),
        sa.ForeignKeyConstraint(['vocab_id'], ['vocabulary.id'], name='practice_result_vocab_id_fkey'),
        sa.PrimaryKeyConstraint('id', name='practice_result_pkey'),
        sa.UniqueConstraint('session_id', 'vocab_id', 'exercise_order', name='uq_practice_result_exercise'),
        sa.CheckConstraint('grade BETWEEN 1 AND 4', name='practice_result_grade_check'),
    )
    op.create_index(op.f('ix_practice_result_session_id'), 'practice_result', ['session_id'], unique=False)


def downgrade() -> None:
    """
    Drop gym tables.
    """
    op.drop_index(op.f('ix_practice_result_session_id'), table_name='practice_result')
    op.drop_table('practice_result')
    op.drop_index(op.f('ix_practice_session_learning_space_id'), table_name='practice_session')
    op.drop_index(op.f('ix_practice_session_user_id'), table_name='practice_session')
    op.drop_table('practice_session')
    op.drop_index(op.f('ix_card_state_due'), table_name='card_state')
    op.drop_index(op.f('ix_card_state_learning_space_id'), table_name='card_state')
    op.drop_index(op.f('ix_card_state_user_id'), table_name='card_state')
    op.drop_table('card_state')
    op.drop_index(op.f('ix_vocabulary_learning_space_id'), table_name='vocabulary')
    op.drop_table('vocabulary')
