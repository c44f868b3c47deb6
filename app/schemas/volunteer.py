# app/schemas/volunteer.py
from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Union, Literal, Annotated
from datetime import datetime, time
from enum import Enum, IntEnum

# Enums
class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_weekday(cls, weekday: int) -> "DayOfWeek":
        """Map datetime.weekday() (Monday == 0) to a DayOfWeek."""
        return list(cls)[weekday]

class ProficiencyLevel(IntEnum):
    BEGINNER = 1
    NOVICE = 2
    INTERMEDIATE = 3
    ADVANCED = 4
    EXPERT = 5

    @property
    def description(self) -> str:
        return self.name.capitalize()

# Availability Schemas
class RecurringAvailability(BaseModel):
    """Weekly window, e.g. every Monday 09:00-12:00."""
    kind: Literal["recurring"] = "recurring"
    day_of_week: DayOfWeek
    start_time: time
    end_time: time

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def validate_window(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

    def is_available_at(self, moment: datetime) -> bool:
        current = moment.time()
        return (
            DayOfWeek.from_weekday(moment.weekday()) == self.day_of_week
            and self.start_time < current < self.end_time
        )

class DateRangeAvailability(BaseModel):
    """One-off absolute range."""
    kind: Literal["date_range"] = "date_range"
    start_date: datetime
    end_date: datetime

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def validate_range(self):
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self

    def is_available_at(self, moment: datetime) -> bool:
        return self.start_date < moment < self.end_date

Availability = Annotated[
    Union[RecurringAvailability, DateRangeAvailability],
    Field(discriminator="kind"),
]

def _validate_coordinate_pair(latitude: Optional[float], longitude: Optional[float]) -> None:
    if (latitude is None) != (longitude is None):
        raise ValueError("latitude and longitude must be provided together")

# Volunteer Schemas
class VolunteerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None
    availability: Optional[Availability] = None
    drives_applied: Optional[List[str]] = None
    drives_completed: Optional[List[str]] = None

    @field_validator("name")
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name must not be blank")
        return v

    @field_validator("email")
    def validate_email_address(cls, v):
        # Stored exactly as sent; email is case-sensitive at the store level
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email address: {e}")
        return v

    @model_validator(mode="after")
    def validate_coordinates(self):
        _validate_coordinate_pair(self.latitude, self.longitude)
        return self

class VolunteerUpdate(BaseModel):
    """
    Partial update.

    Only fields present in the request are applied (see model_fields_set).
    Sending null explicitly clears a nullable field; omitting it leaves the
    stored value untouched.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None
    availability: Optional[Availability] = None
    drives_applied: Optional[List[str]] = None
    drives_completed: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def validate_required_fields(self):
        for field in ("name", "is_active"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be cleared")
        if self.name is not None and not self.name.strip():
            raise ValueError("Name must not be blank")
        return self

class VolunteerResponse(BaseModel):
    """Read-only projection of a volunteer record with decoded documents."""
    id: int
    name: str
    email: str
    phone_number: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    skills: List[str] = []
    interests: List[str] = []
    availability: Optional[Availability] = None
    drives_applied: List[str] = []
    drives_completed: List[str] = []
    is_active: bool
    created_at: datetime
    updated_at: datetime

class NearbyVolunteer(VolunteerResponse):
    distance_km: float

# Skill Schemas
class SkillCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=50)

    @field_validator("name")
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Skill name is required")
        return v

class Skill(BaseModel):
    id: int
    name: str
    description: Optional[str]
    category: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Volunteer Skill Assignment Schemas
class VolunteerSkillAssignmentCreate(BaseModel):
    skill_id: int
    proficiency_level: ProficiencyLevel = ProficiencyLevel.BEGINNER
    experience_years: Optional[int] = Field(None, ge=0)
    certified: bool = False

class VolunteerSkillAssignment(BaseModel):
    id: int
    volunteer_id: int
    skill_id: int
    skill_name: str
    proficiency_level: ProficiencyLevel
    proficiency_description: str
    experience_years: Optional[int]
    certified: bool
    created_at: datetime
