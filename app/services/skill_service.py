# app/services/skill_service.py
"""
Skill catalog and volunteer proficiency links.
"""
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.exceptions import DuplicateKeyError, NotFoundError
from app.crud.skill import SkillCRUD, VolunteerSkillCRUD, skill_crud, volunteer_skill_crud
from app.crud.volunteer import VolunteerCRUD, volunteer_crud
from app.models.volunteer import Skill, VolunteerSkill, utc_now
from app.schemas.volunteer import (
    ProficiencyLevel, Skill as SkillSchema, SkillCreate, VolunteerResponse,
    VolunteerSkillAssignment, VolunteerSkillAssignmentCreate,
)
from app.services.volunteer_service import to_volunteer_response

logger = logging.getLogger(__name__)


def to_assignment_response(assignment: VolunteerSkill, skill: Skill) -> VolunteerSkillAssignment:
    level = ProficiencyLevel(assignment.proficiency_level)
    return VolunteerSkillAssignment(
        id=assignment.id,
        volunteer_id=assignment.volunteer_id,
        skill_id=skill.id,
        skill_name=skill.name,
        proficiency_level=level,
        proficiency_description=level.description,
        experience_years=assignment.experience_years,
        certified=assignment.certified,
        created_at=assignment.created_at,
    )


class SkillService:
    """Service for the normalized skill catalog."""

    def __init__(
        self,
        skills: SkillCRUD = skill_crud,
        assignments: VolunteerSkillCRUD = volunteer_skill_crud,
        volunteers: VolunteerCRUD = volunteer_crud,
    ):
        self.skills = skills
        self.assignments = assignments
        self.volunteers = volunteers

    def _duplicate_skill(self, name: str) -> DuplicateKeyError:
        return DuplicateKeyError(f"Skill already exists with name: {name}", {"name": name})

    def create_skill(self, db: Session, data: SkillCreate) -> SkillSchema:
        """Create a catalog skill; names are unique ignoring case."""
        if self.skills.get_skill_by_name(db, data.name):
            raise self._duplicate_skill(data.name)

        now = utc_now()
        skill = Skill(
            name=data.name,
            description=data.description,
            category=data.category,
            created_at=now,
            updated_at=now,
        )
        try:
            skill = self.skills.create_skill(db, skill)
        except IntegrityError:
            db.rollback()
            raise self._duplicate_skill(data.name)

        logger.info(f"Created skill {skill.id} ({skill.name})")
        return SkillSchema.model_validate(skill)

    def get_skill(self, db: Session, skill_id: int) -> SkillSchema:
        skill = self.skills.get_skill(db, skill_id)
        if skill is None:
            raise NotFoundError.skill(skill_id)
        return SkillSchema.model_validate(skill)

    def list_active_skills(self, db: Session) -> List[SkillSchema]:
        return [SkillSchema.model_validate(s) for s in self.skills.get_active_skills(db)]

    def search_skills(self, db: Session, term: str) -> List[SkillSchema]:
        if term is None or not term.strip():
            return []
        return [SkillSchema.model_validate(s) for s in self.skills.search_skills(db, term.strip())]

    def list_categories(self, db: Session) -> List[str]:
        return self.skills.get_categories(db)

    def assign_skill(
        self, db: Session, volunteer_id: int, data: VolunteerSkillAssignmentCreate
    ) -> VolunteerSkillAssignment:
        """
        Link a catalog skill to a volunteer with a proficiency level.

        Raises:
            NotFoundError: If the volunteer or the skill does not exist
            DuplicateKeyError: If the volunteer already has the skill
        """
        if self.volunteers.get_volunteer(db, volunteer_id) is None:
            raise NotFoundError.volunteer(volunteer_id)
        skill = self.skills.get_skill(db, data.skill_id)
        if skill is None:
            raise NotFoundError.skill(data.skill_id)
        if self.assignments.get_assignment(db, volunteer_id, data.skill_id):
            raise DuplicateKeyError(
                f"Volunteer {volunteer_id} already has skill {data.skill_id}",
                {"volunteer_id": volunteer_id, "skill_id": data.skill_id}
            )

        now = utc_now()
        assignment = VolunteerSkill(
            volunteer_id=volunteer_id,
            skill_id=data.skill_id,
            proficiency_level=int(data.proficiency_level),
            experience_years=data.experience_years,
            certified=data.certified,
            created_at=now,
            updated_at=now,
        )
        try:
            assignment = self.assignments.create_assignment(db, assignment)
        except IntegrityError:
            db.rollback()
            raise DuplicateKeyError(
                f"Volunteer {volunteer_id} already has skill {data.skill_id}",
                {"volunteer_id": volunteer_id, "skill_id": data.skill_id}
            )

        return to_assignment_response(assignment, skill)

    def get_volunteer_skills(self, db: Session, volunteer_id: int) -> List[VolunteerSkillAssignment]:
        if self.volunteers.get_volunteer(db, volunteer_id) is None:
            raise NotFoundError.volunteer(volunteer_id)
        return [
            to_assignment_response(assignment, skill)
            for assignment, skill in self.assignments.get_volunteer_skills(db, volunteer_id)
        ]

    def remove_skill(self, db: Session, volunteer_id: int, skill_id: int) -> None:
        assignment = self.assignments.get_assignment(db, volunteer_id, skill_id)
        if assignment is None:
            raise NotFoundError(
                f"Volunteer {volunteer_id} has no skill {skill_id}",
                {"volunteer_id": volunteer_id, "skill_id": skill_id}
            )
        self.assignments.delete_assignment(db, assignment)

    def find_volunteers_by_skill(
        self,
        db: Session,
        skill_name: str,
        min_proficiency: ProficiencyLevel = ProficiencyLevel.BEGINNER
    ) -> List[VolunteerResponse]:
        volunteers = self.assignments.get_volunteers_by_skill(db, skill_name, int(min_proficiency))
        return [to_volunteer_response(v) for v in volunteers]


skill_service = SkillService()


def get_skill_service() -> SkillService:
    return skill_service
