# volunteers.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import List, Optional
from datetime import datetime

from app.core.config import settings
from app.database.engine import get_db
from app.schemas.common import ApiResponse, PaginatedResponse, api_response
from app.schemas.volunteer import (
    NearbyVolunteer, VolunteerCreate, VolunteerResponse, VolunteerUpdate,
    VolunteerSkillAssignment, VolunteerSkillAssignmentCreate,
)
from app.services.skill_service import SkillService, get_skill_service
from app.services.volunteer_service import VolunteerService, get_volunteer_service

router = APIRouter(
    prefix="/api/v1/volunteers",
    tags=["volunteers"],
    responses={404: {"description": "Not found"}},
)

# ========================================
# VOLUNTEER PROFILE ENDPOINTS
# ========================================

@router.post("/", response_model=ApiResponse[VolunteerResponse], status_code=status.HTTP_201_CREATED)
def create_volunteer(
    volunteer_data: VolunteerCreate,
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Create a new volunteer."""
    volunteer = service.create_volunteer(db, volunteer_data)
    return api_response(volunteer, "Volunteer created successfully")

@router.get("/", response_model=ApiResponse[PaginatedResponse[VolunteerResponse]])
def get_volunteers(
    active: Optional[bool] = None,
    page: int = Query(1, description="1-indexed page number"),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, description="Items per page"),
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Get volunteers page by page, optionally filtered by active status."""
    return api_response(service.list_volunteers(db, is_active=active, page=page, page_size=page_size))

@router.get("/active", response_model=ApiResponse[List[VolunteerResponse]])
def get_active_volunteers(
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Get all active volunteers."""
    return api_response(service.list_active_volunteers(db))

@router.get("/active/count", response_model=ApiResponse[int])
def count_active_volunteers(
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    return api_response(service.count_active_volunteers(db))

@router.get("/search", response_model=ApiResponse[List[VolunteerResponse]])
def search_volunteers(
    q: str = Query(..., description="Name fragment, case-insensitive"),
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Search volunteers by name."""
    return api_response(service.search_by_name(db, q))

@router.get("/nearby", response_model=ApiResponse[List[NearbyVolunteer]])
def find_volunteers_nearby(
    latitude: float,
    longitude: float,
    radius: float = Query(settings.DEFAULT_NEARBY_RADIUS_KM, description="Radius in kilometres"),
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Find active volunteers within a radius, nearest first."""
    return api_response(service.find_nearby(db, latitude, longitude, radius))

@router.get("/email/{email}", response_model=ApiResponse[VolunteerResponse])
def get_volunteer_by_email(
    email: str,
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Get volunteer by email."""
    return api_response(service.get_volunteer_by_email(db, email))

@router.get("/{volunteer_id}", response_model=ApiResponse[VolunteerResponse])
def get_volunteer(
    volunteer_id: int,
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Get volunteer by ID."""
    return api_response(service.get_volunteer(db, volunteer_id))

@router.put("/{volunteer_id}", response_model=ApiResponse[VolunteerResponse])
def update_volunteer(
    volunteer_id: int,
    volunteer_data: VolunteerUpdate,
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Update volunteer information. Only fields present in the body change."""
    volunteer = service.update_volunteer(db, volunteer_id, volunteer_data)
    return api_response(volunteer, "Volunteer updated successfully")

@router.delete("/{volunteer_id}", response_model=ApiResponse[None])
def delete_volunteer(
    volunteer_id: int,
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Delete volunteer permanently."""
    service.delete_volunteer(db, volunteer_id)
    return api_response(message="Volunteer deleted successfully")

@router.get("/{volunteer_id}/available", response_model=ApiResponse[bool])
def check_availability(
    volunteer_id: int,
    at: Optional[datetime] = Query(None, description="Moment to check, defaults to now (UTC)"),
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    """Whether the volunteer's availability covers the given moment."""
    return api_response(service.is_available(db, volunteer_id, at))

# ========================================
# DRIVE HISTORY ENDPOINTS
# ========================================

@router.get("/{volunteer_id}/drives/completed", response_model=ApiResponse[List[str]])
def get_drives_completed(
    volunteer_id: int,
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    return api_response(service.get_drives_completed(db, volunteer_id))

@router.get("/{volunteer_id}/drives/scheduled", response_model=ApiResponse[List[str]])
def get_drives_scheduled(
    volunteer_id: int,
    db: Session = Depends(get_db),
    service: VolunteerService = Depends(get_volunteer_service)
):
    return api_response(service.get_drives_scheduled(db, volunteer_id))

# ========================================
# SKILL ASSIGNMENT ENDPOINTS
# ========================================

@router.get("/{volunteer_id}/skills", response_model=ApiResponse[List[VolunteerSkillAssignment]])
def get_volunteer_skills(
    volunteer_id: int,
    db: Session = Depends(get_db),
    service: SkillService = Depends(get_skill_service)
):
    """Get catalog skills linked to a volunteer."""
    return api_response(service.get_volunteer_skills(db, volunteer_id))

@router.post(
    "/{volunteer_id}/skills",
    response_model=ApiResponse[VolunteerSkillAssignment],
    status_code=status.HTTP_201_CREATED
)
def assign_skill(
    volunteer_id: int,
    assignment_data: VolunteerSkillAssignmentCreate,
    db: Session = Depends(get_db),
    service: SkillService = Depends(get_skill_service)
):
    """Link a catalog skill to a volunteer."""
    assignment = service.assign_skill(db, volunteer_id, assignment_data)
    return api_response(assignment, "Skill assigned successfully")

@router.delete("/{volunteer_id}/skills/{skill_id}", response_model=ApiResponse[None])
def remove_skill(
    volunteer_id: int,
    skill_id: int,
    db: Session = Depends(get_db),
    service: SkillService = Depends(get_skill_service)
):
    service.remove_skill(db, volunteer_id, skill_id)
    return api_response(message="Skill removed successfully")
