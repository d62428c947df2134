"""
Database models for the application.
"""
import enum
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, Text, ForeignKey, Enum as SAEnum,
    UniqueConstraint, Index, true, false
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from db_config import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- ENUM Types (mirroring PostgreSQL ENUMs) ---
class UserRoleEnum(enum.Enum):
    USER = "USER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"

class SmellCategoryEnum(enum.Enum):
    CODE_SMELL = "CODE_SMELL"
    DESIGN_PATTERN = "DESIGN_PATTERN"
    REFACTORING = "REFACTORING"
    PERFORMANCE = "PERFORMANCE"
    SECURITY = "SECURITY"
    MAINTAINABILITY = "MAINTAINABILITY"
    READABILITY = "READABILITY"
    TESTING = "TESTING"
    ARCHITECTURE = "ARCHITECTURE"
    BEST_PRACTICE = "BEST_PRACTICE"

class DifficultyLevelEnum(enum.Enum):
    BEGINNER = "BEGINNER"
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    EXPERT = "EXPERT"

class ProfileVisibilityEnum(enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"

class ThemeEnum(enum.Enum):
    LIGHT = "LIGHT"
    DARK = "DARK"
    AUTO = "AUTO"


# Rank used when ordering by difficulty; lexical order would put EXPERT before HARD
DIFFICULTY_ORDER = {level: rank for rank, level in enumerate(DifficultyLevelEnum)}


# --- Model Definitions ---

class User(Base):
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    image = Column(String(500), nullable=True)
    bio = Column(String(500), nullable=True)
    location = Column(String(100), nullable=True)
    website = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)  # written only by the GitHub sync
    linkedin_url = Column(String(500), nullable=True)
    twitter_url = Column(String(500), nullable=True)
    role = Column(SAEnum(UserRoleEnum, name="user_role_enum"), nullable=False, default=UserRoleEnum.USER, server_default=UserRoleEnum.USER.value)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now, server_default=func.now())

    # Owned rows are removed by ON DELETE CASCADE in the database
    favorites = relationship("Favorite", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    progress = relationship("Progress", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    preferences = relationship("UserPreferences", back_populates="user", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    activities = relationship("UserActivity", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


class Smell(Base):
    __tablename__ = "smell"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(100), nullable=False, unique=True, index=True)
    category = Column(SAEnum(SmellCategoryEnum, name="smell_category_enum"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    bad_code = Column(Text, nullable=False)
    good_code = Column(Text, nullable=False)
    test_hint = Column(Text, nullable=False, default="", server_default="")
    difficulty = Column(SAEnum(DifficultyLevelEnum, name="difficulty_level_enum"), nullable=False, default=DifficultyLevelEnum.BEGINNER, server_default=DifficultyLevelEnum.BEGINNER.value)
    tags = Column(Text, nullable=False, default="", server_default="")  # comma separated
    is_published = Column(Boolean, nullable=False, default=False, server_default=false())

    problem = Column(Text, nullable=True)
    solution = Column(Text, nullable=True)
    testing = Column(Text, nullable=True)
    examples = Column(Text, nullable=True)
    references = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now, server_default=func.now())

    favorites = relationship("Favorite", back_populates="smell", cascade="all, delete-orphan", passive_deletes=True)
    progress = relationship("Progress", back_populates="smell", cascade="all, delete-orphan", passive_deletes=True)


class Favorite(Base):
    __tablename__ = "user_smell"
    __table_args__ = (
        UniqueConstraint("user_id", "smell_id", name="uq_user_smell_user_smell"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    smell_id = Column(Integer, ForeignKey("smell.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())

    user = relationship("User", back_populates="favorites")
    smell = relationship("Smell", back_populates="favorites")


class Progress(Base):
    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "smell_id", name="uq_user_progress_user_smell"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    smell_id = Column(Integer, ForeignKey("smell.id", ondelete="CASCADE"), nullable=False, index=True)
    completed = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())

    user = relationship("User", back_populates="progress")
    smell = relationship("Smell", back_populates="progress")


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, unique=True)
    theme = Column(SAEnum(ThemeEnum, name="theme_enum"), nullable=False, default=ThemeEnum.AUTO, server_default=ThemeEnum.AUTO.value)
    default_difficulty = Column(SAEnum(DifficultyLevelEnum, name="difficulty_level_enum"), nullable=True, default=DifficultyLevelEnum.BEGINNER)
    email_updates = Column(Boolean, nullable=False, default=True, server_default=true())
    progress_reminders = Column(Boolean, nullable=False, default=False, server_default=false())
    new_smells = Column(Boolean, nullable=False, default=True, server_default=true())
    weekly_digest = Column(Boolean, nullable=False, default=True, server_default=true())
    profile_visibility = Column(SAEnum(ProfileVisibilityEnum, name="profile_visibility_enum"), nullable=False, default=ProfileVisibilityEnum.PUBLIC, server_default=ProfileVisibilityEnum.PUBLIC.value)
    show_progress = Column(Boolean, nullable=False, default=True, server_default=true())
    allow_analytics = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now, server_default=func.now())

    user = relationship("User", back_populates="preferences")


class UserActivity(Base):
    """Append-only activity log, read only by analytics."""
    __tablename__ = "user_activity"
    __table_args__ = (
        Index("ix_user_activity_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)
    resource_id = Column(String(100), nullable=True)
    resource_type = Column(String(50), nullable=True)
    metadata_json = Column("metadata", Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now(), index=True)

    user = relationship("User", back_populates="activities")


class Setting(Base):
    """Flat key/value store; keys are ``section.field`` and values JSON text."""
    __tablename__ = "setting"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True, index=True)
    value = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now, server_default=func.now())


__all__ = [
    "User", "Smell", "Favorite", "Progress", "UserPreferences", "UserActivity", "Setting",
    "UserRoleEnum", "SmellCategoryEnum", "DifficultyLevelEnum", "ProfileVisibilityEnum", "ThemeEnum",
    "DIFFICULTY_ORDER", "utc_now",
]
