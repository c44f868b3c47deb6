# app/services/__init__.py
"""
Service layer: volunteer lifecycle, proximity search and the skill catalog.
"""

from app.services.volunteer_service import VolunteerService, get_volunteer_service
from app.services.skill_service import SkillService, get_skill_service

__all__ = [
    "VolunteerService",
    "get_volunteer_service",
    "SkillService",
    "get_skill_service",
]
