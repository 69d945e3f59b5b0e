"""Initial schema - all VolleyQueue tables

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates all tables for the VolleyQueue session manager:
- players: Registered players and their positions
- matches: Archived match history with player snapshots
- game_settings: Default game mode and team formation priority
- stored_values: JSON snapshots of the queue, current match and presence
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ### Players table ###
    op.create_table(
        'players',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('positions', sa.JSON(), nullable=False),
        sa.Column('priority', sa.Enum('MEMBER', 'VISITOR', name='priority'), nullable=False),
        sa.Column('gender', sa.Enum('MALE', 'FEMALE', name='gender'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
    )

    # ### Matches table ###
    op.create_table(
        'matches',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('match_id', sa.BigInteger(), nullable=False, unique=True),
        sa.Column('game_mode', sa.Enum('FOUR_VS_FOUR', 'SIX_VS_SIX', name='gamemode'), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('winner', sa.Enum('A', 'B', name='teamside'), nullable=True),
        sa.Column('team_a_name', sa.String(100), nullable=False),
        sa.Column('team_b_name', sa.String(100), nullable=False),
        sa.Column('team_a_players', sa.JSON(), nullable=False),
        sa.Column('team_b_players', sa.JSON(), nullable=False),
    )

    # ### Game settings table ###
    op.create_table(
        'game_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('default_game_mode', sa.Enum('FOUR_VS_FOUR', 'SIX_VS_SIX', name='gamemode')),
        sa.Column('team_formation_priority', sa.JSON(), nullable=False),
    )

    # ### Stored values table ###
    op.create_table(
        'stored_values',
        sa.Column('key', sa.String(64), primary_key=True),
        sa.Column('value', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime()),
    )

    # ### Indexes ###
    op.create_index('ix_players_name', 'players', ['name'])
    op.create_index('ix_matches_game_mode', 'matches', ['game_mode'])


def downgrade() -> None:
    op.drop_index('ix_matches_game_mode', 'matches')
    op.drop_index('ix_players_name', 'players')

    # Drop tables in reverse order of creation
    op.drop_table('stored_values')
    op.drop_table('game_settings')
    op.drop_table('matches')
    op.drop_table('players')
