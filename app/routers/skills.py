# skills.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import List

from app.database.engine import get_db
from app.schemas.common import ApiResponse, api_response
from app.schemas.volunteer import ProficiencyLevel, Skill, SkillCreate, VolunteerResponse
from app.services.skill_service import SkillService, get_skill_service

router = APIRouter(
    prefix="/api/v1/skills",
    tags=["skills"],
    responses={404: {"description": "Not found"}},
)

@router.post("/", response_model=ApiResponse[Skill], status_code=status.HTTP_201_CREATED)
def create_skill(
    skill_data: SkillCreate,
    db: Session = Depends(get_db),
    service: SkillService = Depends(get_skill_service)
):
    """Add a skill to the catalog."""
    return api_response(service.create_skill(db, skill_data), "Skill created successfully")

@router.get("/", response_model=ApiResponse[List[Skill]])
def get_skills(
    db: Session = Depends(get_db),
    service: SkillService = Depends(get_skill_service)
):
    """Get all active skills ordered by name."""
    return api_response(service.list_active_skills(db))

@router.get("/search", response_model=ApiResponse[List[Skill]])
def search_skills(
    q: str = Query(..., description="Fragment of name or description"),
    db: Session = Depends(get_db),
    service: SkillService = Depends(get_skill_service)
):
    return api_response(service.search_skills(db, q))

@router.get("/categories", response_model=ApiResponse[List[str]])
def get_categories(
    db: Session = Depends(get_db),
    service: SkillService = Depends(get_skill_service)
):
    return api_response(service.list_categories(db))

@router.get("/by-name/{skill_name}/volunteers", response_model=ApiResponse[List[VolunteerResponse]])
def get_volunteers_with_skill(
    skill_name: str,
    min_proficiency: ProficiencyLevel = Query(ProficiencyLevel.BEGINNER),
    db: Session = Depends(get_db),
    service: SkillService = Depends(get_skill_service)
):
    """Active volunteers holding a skill at or above a proficiency level."""
    return api_response(service.find_volunteers_by_skill(db, skill_name, min_proficiency))

@router.get("/{skill_id}", response_model=ApiResponse[Skill])
def get_skill(
    skill_id: int,
    db: Session = Depends(get_db),
    service: SkillService = Depends(get_skill_service)
):
    return api_response(service.get_skill(db, skill_id))
