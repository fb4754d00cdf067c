from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .database import Base
from .schemas.workout import utcnow


class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    category = Column(String(32), nullable=False, default="other")
    primary_muscle_groups = Column(JSON, nullable=False, default=list)
    secondary_muscle_groups = Column(JSON, nullable=False, default=list)
    instructions = Column(Text, nullable=False, default="")
    is_custom = Column(Boolean, nullable=False, default=False)

    sets = relationship("ExerciseSet", back_populates="exercise", passive_deletes=True)

    def __repr__(self):
        return f"<Exercise(id={self.id}, name='{self.name}', custom={self.is_custom})>"


class Workout(Base):
    __tablename__ = "workouts"

    id = Column(String(36), primary_key=True)
    date = Column(DateTime, nullable=False, default=utcnow, index=True)
    name = Column(String(255), nullable=False, default="Workout")
    notes = Column(Text, nullable=False, default="")
    duration = Column(Float, nullable=False, default=0.0)
    is_completed = Column(Boolean, nullable=False, default=False, index=True)
    started_from_template = Column(String(255), nullable=True)

    sets = relationship(
        "ExerciseSet",
        back_populates="workout",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ExerciseSet.position",
    )

    def __repr__(self):
        return f"<Workout(id={self.id}, name='{self.name}', completed={self.is_completed})>"


class ExerciseSet(Base):
    __tablename__ = "exercise_sets"

    id = Column(String(36), primary_key=True)
    workout_id = Column(String(36), ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_id = Column(String(36), ForeignKey("exercises.id", ondelete="SET NULL"), nullable=True, index=True)
    # Insertion order within the workout
    position = Column(Integer, nullable=False, default=0)
    weight = Column(Float, nullable=False, default=0.0)
    reps = Column(Integer, nullable=False, default=0)
    completed_at = Column(DateTime, nullable=False, default=utcnow)
    is_warmup = Column(Boolean, nullable=False, default=False)
    rpe = Column(Integer, nullable=True)
    notes = Column(Text, nullable=False, default="")

    workout = relationship("Workout", back_populates="sets")
    exercise = relationship("Exercise", back_populates="sets", lazy="joined")

    def __repr__(self):
        return "<ExerciseSet(id=%s, workout_id=%s, exercise_id=%s, weight=%s, reps=%s)>" % (
            self.id,
            self.workout_id,
            self.exercise_id,
            self.weight,
            self.reps,
        )


class WorkoutTemplate(Base):
    __tablename__ = "workout_templates"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    # Serialized TemplateExercise list, rep ranges included
    exercises = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=False, default="")

    def __repr__(self):
        return f"<WorkoutTemplate(id={self.id}, name='{self.name}')>"


class UserSettings(Base):
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True)
    rest_timer_duration = Column(Integer, nullable=False, default=90)
    default_rpt_percentage_drops = Column(JSON, nullable=False, default=list)
    show_rpe = Column(Boolean, nullable=False, default=True)
    dark_mode_preference = Column(String(16), nullable=False, default="system")


class AppState(Base):
    __tablename__ = "app_state"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
