# app/crud/volunteer.py
from sqlmodel import Session, select, func, col
from typing import List, Optional, Tuple

from app.core.geo import within_radius
from app.models.volunteer import Volunteer


class VolunteerCRUD:
    """
    Data access for volunteer rows.

    Document attributes are returned exactly as stored (JSON text); decoding
    is the service layer's job.
    """

    def get_volunteer(self, db: Session, volunteer_id: int) -> Optional[Volunteer]:
        """Get volunteer by ID."""
        return db.get(Volunteer, volunteer_id)

    def get_volunteer_by_email(self, db: Session, email: str) -> Optional[Volunteer]:
        """Get volunteer by exact email."""
        return db.exec(select(Volunteer).where(Volunteer.email == email)).first()

    def email_exists(self, db: Session, email: str) -> bool:
        """Check email among active and inactive volunteers alike."""
        count = db.exec(
            select(func.count(Volunteer.id)).where(Volunteer.email == email)
        ).one()
        return count > 0

    def save_volunteer(self, db: Session, volunteer: Volunteer) -> Volunteer:
        """Insert or update depending on whether the row has an id."""
        db.add(volunteer)
        db.commit()
        db.refresh(volunteer)
        return volunteer

    def delete_volunteer(self, db: Session, volunteer: Volunteer) -> None:
        """Hard delete; skill assignments go with it."""
        db.delete(volunteer)
        db.commit()

    def get_active_volunteers(self, db: Session) -> List[Volunteer]:
        """Get every active volunteer ordered by id."""
        query = select(Volunteer).where(Volunteer.is_active == True).order_by(Volunteer.id)
        return list(db.exec(query).all())

    def count_active_volunteers(self, db: Session) -> int:
        return db.exec(
            select(func.count(Volunteer.id)).where(Volunteer.is_active == True)
        ).one()

    def get_volunteers_page(
        self,
        db: Session,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Volunteer], int]:
        """Get one page of volunteers ordered by id, plus the total count."""
        query = select(Volunteer)
        count_query = select(func.count(Volunteer.id))

        if is_active is not None:
            query = query.where(Volunteer.is_active == is_active)
            count_query = count_query.where(Volunteer.is_active == is_active)

        total = db.exec(count_query).one()
        items = db.exec(query.order_by(Volunteer.id).offset(skip).limit(limit)).all()
        return list(items), total

    def search_by_name(self, db: Session, term: str) -> List[Volunteer]:
        """Case-insensitive substring match on name; wildcards in term are literal."""
        query = (
            select(Volunteer)
            .where(func.lower(col(Volunteer.name)).contains(term.lower(), autoescape=True))
            .order_by(Volunteer.id)
        )
        return list(db.exec(query).all())

    def get_active_located_volunteers(self, db: Session) -> List[Volunteer]:
        """Active volunteers that carry both coordinates."""
        query = (
            select(Volunteer)
            .where(
                Volunteer.is_active == True,
                col(Volunteer.latitude).is_not(None),
                col(Volunteer.longitude).is_not(None),
            )
            .order_by(Volunteer.id)
        )
        return list(db.exec(query).all())

    def get_volunteers_within_radius(
        self, db: Session, latitude: float, longitude: float, radius_km: float
    ) -> List[Tuple[Volunteer, float]]:
        """
        Active volunteers within radius_km of the point, nearest first.

        The store only narrows candidates to active, located rows; the
        haversine filter runs in process so every backend behaves the same.
        """
        candidates = self.get_active_located_volunteers(db)
        return within_radius(candidates, latitude, longitude, radius_km)


# Create instances
volunteer_crud = VolunteerCRUD()
