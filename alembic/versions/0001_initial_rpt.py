"""initial rpt trainer schema

Revision ID: 0001_initial_rpt
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial_rpt"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "exercises",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("primary_muscle_groups", sa.JSON(), nullable=False),
        sa.Column("secondary_muscle_groups", sa.JSON(), nullable=False),
        sa.Column("instructions", sa.Text(), nullable=False),
        sa.Column("is_custom", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_exercises_name", "exercises", ["name"], unique=True)

    op.create_table(
        "workouts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("duration", sa.Float(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("started_from_template", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_workouts_date", "workouts", ["date"])
    op.create_index("ix_workouts_is_completed", "workouts", ["is_completed"])

    op.create_table(
        "exercise_sets",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "workout_id",
            sa.String(length=36),
            sa.ForeignKey("workouts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "exercise_id",
            sa.String(length=36),
            sa.ForeignKey("exercises.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("reps", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=False),
        sa.Column("is_warmup", sa.Boolean(), nullable=False),
        sa.Column("rpe", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False),
    )
    op.create_index("ix_exercise_sets_workout_id", "exercise_sets", ["workout_id"])
    op.create_index("ix_exercise_sets_exercise_id", "exercise_sets", ["exercise_id"])

    op.create_table(
        "workout_templates",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("exercises", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
    )
    op.create_index("ix_workout_templates_name", "workout_templates", ["name"], unique=True)

    op.create_table(
        "user_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("rest_timer_duration", sa.Integer(), nullable=False),
        sa.Column("default_rpt_percentage_drops", sa.JSON(), nullable=False),
        sa.Column("show_rpe", sa.Boolean(), nullable=False),
        sa.Column("dark_mode_preference", sa.String(length=16), nullable=False),
    )

    op.create_table(
        "app_state",
        sa.Column("key", sa.String(length=128), primary_key=True),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("app_state")
    op.drop_table("user_settings")
    op.drop_index("ix_workout_templates_name", table_name="workout_templates")
    op.drop_table("workout_templates")
    op.drop_index("ix_exercise_sets_exercise_id", table_name="exercise_sets")
    op.drop_index("ix_exercise_sets_workout_id", table_name="exercise_sets")
    op.drop_table("exercise_sets")
    op.drop_index("ix_workouts_is_completed", table_name="workouts")
    op.drop_index("ix_workouts_date", table_name="workouts")
    op.drop_table("workouts")
    op.drop_index("ix_exercises_name", table_name="exercises")
    op.drop_table("exercises")
