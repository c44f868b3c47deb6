# app/models/volunteer.py
from sqlmodel import SQLModel, Field, Relationship, Column, Text, UniqueConstraint
from typing import Optional, List
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Naive UTC timestamp, matching what the store returns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Volunteer(SQLModel, table=True):
    __tablename__ = "volunteers"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, index=True)
    email: str = Field(max_length=255, unique=True, index=True)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    is_active: bool = Field(default=True, index=True)

    # Document attributes, stored as JSON text (see app.core.documents)
    skills: Optional[str] = Field(default=None, sa_column=Column(Text))
    interests: Optional[str] = Field(default=None, sa_column=Column(Text))
    availability: Optional[str] = Field(default=None, sa_column=Column(Text))
    drives_applied: Optional[str] = Field(default=None, sa_column=Column(Text))
    drives_completed: Optional[str] = Field(default=None, sa_column=Column(Text))

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Relationships
    skill_assignments: List["VolunteerSkill"] = Relationship(
        back_populates="volunteer",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Skill(SQLModel, table=True):
    __tablename__ = "skills"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[str] = Field(default=None, max_length=50, index=True)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Relationships
    skill_assignments: List["VolunteerSkill"] = Relationship(back_populates="skill")


class VolunteerSkill(SQLModel, table=True):
    __tablename__ = "volunteer_skills"
    __table_args__ = (UniqueConstraint("volunteer_id", "skill_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    volunteer_id: int = Field(foreign_key="volunteers.id", index=True)
    skill_id: int = Field(foreign_key="skills.id", index=True)
    proficiency_level: int = Field(default=1, ge=1, le=5, index=True)
    experience_years: Optional[int] = Field(default=None, ge=0)
    certified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Relationships
    volunteer: Volunteer = Relationship(back_populates="skill_assignments")
    skill: Skill = Relationship(back_populates="skill_assignments")
