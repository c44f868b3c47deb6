# app/crud/skill.py
from sqlmodel import Session, select, func, col, or_, and_
from typing import List, Optional

from app.models.volunteer import Skill, Volunteer, VolunteerSkill


class SkillCRUD:

    def get_skill(self, db: Session, skill_id: int) -> Optional[Skill]:
        """Get skill by ID."""
        return db.get(Skill, skill_id)

    def get_skill_by_name(self, db: Session, name: str) -> Optional[Skill]:
        """Get skill by name (case-insensitive)."""
        return db.exec(
            select(Skill).where(func.lower(Skill.name) == name.lower())
        ).first()

    def create_skill(self, db: Session, skill: Skill) -> Skill:
        db.add(skill)
        db.commit()
        db.refresh(skill)
        return skill

    def get_active_skills(self, db: Session) -> List[Skill]:
        """Get all active skills ordered by name."""
        query = select(Skill).where(Skill.is_active == True).order_by(Skill.name)
        return list(db.exec(query).all())

    def search_skills(self, db: Session, term: str) -> List[Skill]:
        """Search active skills by name or description."""
        pattern = term.lower()
        query = (
            select(Skill)
            .where(
                and_(
                    Skill.is_active == True,
                    or_(
                        func.lower(col(Skill.name)).contains(pattern, autoescape=True),
                        func.lower(col(Skill.description)).contains(pattern, autoescape=True),
                    )
                )
            )
            .order_by(Skill.name)
        )
        return list(db.exec(query).all())

    def get_categories(self, db: Session) -> List[str]:
        """Distinct categories of active skills."""
        query = (
            select(Skill.category)
            .where(Skill.is_active == True, col(Skill.category).is_not(None))
            .distinct()
            .order_by(Skill.category)
        )
        return list(db.exec(query).all())


class VolunteerSkillCRUD:

    def get_assignment(
        self, db: Session, volunteer_id: int, skill_id: int
    ) -> Optional[VolunteerSkill]:
        return db.exec(
            select(VolunteerSkill).where(
                and_(
                    VolunteerSkill.volunteer_id == volunteer_id,
                    VolunteerSkill.skill_id == skill_id
                )
            )
        ).first()

    def create_assignment(self, db: Session, assignment: VolunteerSkill) -> VolunteerSkill:
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
        return assignment

    def delete_assignment(self, db: Session, assignment: VolunteerSkill) -> None:
        db.delete(assignment)
        db.commit()

    def get_volunteer_skills(self, db: Session, volunteer_id: int) -> List[tuple]:
        """Get (assignment, skill) pairs for a volunteer, strongest first."""
        query = (
            select(VolunteerSkill, Skill)
            .join(Skill, VolunteerSkill.skill_id == Skill.id)
            .where(VolunteerSkill.volunteer_id == volunteer_id)
            .order_by(col(VolunteerSkill.proficiency_level).desc(), Skill.name)
        )
        return list(db.exec(query).all())

    def get_volunteers_by_skill(
        self, db: Session, skill_name: str, min_proficiency: int = 1
    ) -> List[Volunteer]:
        """Active volunteers holding the named skill at or above a proficiency level."""
        query = (
            select(Volunteer)
            .join(VolunteerSkill, VolunteerSkill.volunteer_id == Volunteer.id)
            .join(Skill, VolunteerSkill.skill_id == Skill.id)
            .where(
                func.lower(Skill.name) == skill_name.lower(),
                VolunteerSkill.proficiency_level >= min_proficiency,
                Volunteer.is_active == True,
            )
            .distinct()
            .order_by(Volunteer.id)
        )
        return list(db.exec(query).all())


# Create instances
skill_crud = SkillCRUD()
volunteer_skill_crud = VolunteerSkillCRUD()
