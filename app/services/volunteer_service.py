# app/services/volunteer_service.py
"""
Volunteer record lifecycle.

Reads go through the cache (read-through on id, email, the active listing
and the drive lists). Writes commit to the store first and only then evict
every cache key that can hold a view of the record; create clears the
whole namespace because listing keys are not keyed by id.
"""
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core import documents
from app.core.cache import (
    ACTIVE_LIST_KEY, VolunteerCache, completed_key, email_key, get_cache,
    id_key, scheduled_key,
)
from app.core.config import settings
from app.core.exceptions import DuplicateKeyError, InvalidArgumentError, NotFoundError
from app.core.geo import is_valid_latitude, is_valid_longitude
from app.crud.volunteer import VolunteerCRUD, volunteer_crud
from app.models.volunteer import Volunteer, utc_now
from app.schemas.common import PaginatedResponse, create_pagination_metadata
from app.schemas.volunteer import (
    NearbyVolunteer, VolunteerCreate, VolunteerResponse, VolunteerUpdate,
)

logger = logging.getLogger(__name__)

TAG_FIELDS = {"skills", "interests"}
ID_FIELDS = {"drives_applied", "drives_completed"}


def to_volunteer_response(volunteer: Volunteer) -> VolunteerResponse:
    """Project a row into its API view, decoding every document attribute."""
    return VolunteerResponse(
        id=volunteer.id,
        name=volunteer.name,
        email=volunteer.email,
        phone_number=volunteer.phone_number,
        location=volunteer.location,
        latitude=volunteer.latitude,
        longitude=volunteer.longitude,
        skills=documents.decode_tags(volunteer.skills),
        interests=documents.decode_tags(volunteer.interests),
        availability=documents.decode_availability(volunteer.availability),
        drives_applied=documents.decode_ids(volunteer.drives_applied),
        drives_completed=documents.decode_ids(volunteer.drives_completed),
        is_active=volunteer.is_active,
        created_at=volunteer.created_at,
        updated_at=volunteer.updated_at,
    )


def _payload(volunteer: Optional[Volunteer]) -> Optional[dict]:
    if volunteer is None:
        return None
    return to_volunteer_response(volunteer).model_dump(mode="json")


class VolunteerService:
    """Service for the volunteer record lifecycle and lookups."""

    def __init__(self, cache: Optional[VolunteerCache] = None, crud: VolunteerCRUD = volunteer_crud):
        self._cache = cache
        self.crud = crud

    @property
    def cache(self) -> VolunteerCache:
        # Resolved lazily so a Redis cache installed at startup is picked up
        return self._cache if self._cache is not None else get_cache()

    @property
    def ttl(self) -> int:
        return settings.CACHE_TTL_SECONDS

    def _evict_record(self, volunteer_id: int, email: str) -> None:
        cache = self.cache
        for key in (
            id_key(volunteer_id),
            email_key(email),
            ACTIVE_LIST_KEY,
            completed_key(volunteer_id),
            scheduled_key(volunteer_id),
        ):
            cache.evict(key)

    def _require(self, db: Session, volunteer_id: int) -> Volunteer:
        volunteer = self.crud.get_volunteer(db, volunteer_id)
        if volunteer is None:
            raise NotFoundError.volunteer(volunteer_id)
        return volunteer

    # ========================================
    # WRITES
    # ========================================

    def create_volunteer(self, db: Session, data: VolunteerCreate) -> VolunteerResponse:
        """
        Create a volunteer.

        Raises:
            DuplicateKeyError: If the email is already registered, whether the
                pre-check or the store's unique constraint catches it
        """
        if self.crud.email_exists(db, data.email):
            raise DuplicateKeyError(
                f"Volunteer already exists with email: {data.email}",
                {"email": data.email}
            )

        now = utc_now()
        volunteer = Volunteer(
            name=data.name,
            email=data.email,
            phone_number=data.phone_number,
            location=data.location,
            latitude=data.latitude,
            longitude=data.longitude,
            skills=documents.encode_tags(data.skills),
            interests=documents.encode_tags(data.interests),
            availability=documents.encode_availability(data.availability),
            drives_applied=documents.encode_ids(data.drives_applied),
            drives_completed=documents.encode_ids(data.drives_completed),
            is_active=True,
            created_at=now,
            updated_at=now,
        )

        try:
            volunteer = self.crud.save_volunteer(db, volunteer)
        except IntegrityError:
            db.rollback()
            logger.info(f"Concurrent create lost the race for {data.email}")
            raise DuplicateKeyError(
                f"Volunteer already exists with email: {data.email}",
                {"email": data.email}
            )

        self.cache.evict_all()
        logger.info(f"Created volunteer {volunteer.id}")
        return to_volunteer_response(volunteer)

    def update_volunteer(
        self, db: Session, volunteer_id: int, data: VolunteerUpdate
    ) -> VolunteerResponse:
        """
        Merge the fields the caller sent into the stored record.

        Omitted fields are left untouched; explicit nulls clear the field.
        """
        volunteer = self._require(db, volunteer_id)
        provided = data.model_fields_set

        latitude = data.latitude if "latitude" in provided else volunteer.latitude
        longitude = data.longitude if "longitude" in provided else volunteer.longitude
        if (latitude is None) != (longitude is None):
            raise InvalidArgumentError(
                "latitude and longitude must both be set or both be empty",
                {"latitude": latitude, "longitude": longitude}
            )

        for field in provided:
            value = getattr(data, field)
            if field in TAG_FIELDS:
                value = documents.encode_tags(value)
            elif field in ID_FIELDS:
                value = documents.encode_ids(value)
            elif field == "availability":
                value = documents.encode_availability(value)
            setattr(volunteer, field, value)

        volunteer.updated_at = max(utc_now(), volunteer.created_at)
        volunteer = self.crud.save_volunteer(db, volunteer)

        self._evict_record(volunteer.id, volunteer.email)
        logger.info(f"Updated volunteer {volunteer.id}: {sorted(provided)}")
        return to_volunteer_response(volunteer)

    def delete_volunteer(self, db: Session, volunteer_id: int) -> None:
        """Hard delete the volunteer and its skill links."""
        volunteer = self._require(db, volunteer_id)
        email = volunteer.email

        self.crud.delete_volunteer(db, volunteer)

        self._evict_record(volunteer_id, email)
        logger.info(f"Deleted volunteer {volunteer_id}")

    # ========================================
    # READS
    # ========================================

    def get_volunteer(self, db: Session, volunteer_id: int) -> VolunteerResponse:
        payload = self.cache.get_or_load(
            id_key(volunteer_id),
            lambda: _payload(self.crud.get_volunteer(db, volunteer_id)),
            self.ttl,
        )
        if payload is None:
            raise NotFoundError.volunteer(volunteer_id)
        return VolunteerResponse.model_validate(payload)

    def get_volunteer_by_email(self, db: Session, email: str) -> VolunteerResponse:
        payload = self.cache.get_or_load(
            email_key(email),
            lambda: _payload(self.crud.get_volunteer_by_email(db, email)),
            self.ttl,
        )
        if payload is None:
            raise NotFoundError.volunteer_by_email(email)
        return VolunteerResponse.model_validate(payload)

    def list_active_volunteers(self, db: Session) -> List[VolunteerResponse]:
        payload = self.cache.get_or_load(
            ACTIVE_LIST_KEY,
            lambda: [_payload(v) for v in self.crud.get_active_volunteers(db)],
            self.ttl,
        )
        return [VolunteerResponse.model_validate(item) for item in payload]

    def count_active_volunteers(self, db: Session) -> int:
        return self.crud.count_active_volunteers(db)

    def list_volunteers(
        self,
        db: Session,
        is_active: Optional[bool] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> PaginatedResponse[VolunteerResponse]:
        """
        One page of volunteers ordered by id.

        Args:
            is_active: True/False filters by status, None returns everyone
            page: 1-indexed page number
            page_size: Items per page, at most MAX_PAGE_SIZE
        """
        if page_size is None:
            page_size = settings.DEFAULT_PAGE_SIZE
        if page < 1:
            raise InvalidArgumentError("page must be >= 1", {"page": page})
        if page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
            raise InvalidArgumentError(
                f"page_size must be between 1 and {settings.MAX_PAGE_SIZE}",
                {"page_size": page_size}
            )

        items, total = self.crud.get_volunteers_page(
            db, is_active=is_active, skip=(page - 1) * page_size, limit=page_size
        )
        return PaginatedResponse[VolunteerResponse](
            data=[to_volunteer_response(v) for v in items],
            metadata=create_pagination_metadata(total, page, page_size),
        )

    def search_by_name(self, db: Session, term: Optional[str]) -> List[VolunteerResponse]:
        """Case-insensitive substring search; a blank term matches nothing."""
        if term is None or not term.strip():
            return []
        return [to_volunteer_response(v) for v in self.crud.search_by_name(db, term.strip())]

    def find_nearby(
        self, db: Session, latitude: float, longitude: float, radius_km: float
    ) -> List[NearbyVolunteer]:
        """
        Active volunteers within radius_km (inclusive) of the point, nearest first.

        Raises:
            InvalidArgumentError: If the coordinates are out of range or the
                radius is negative
        """
        if not is_valid_latitude(latitude):
            raise InvalidArgumentError(f"latitude must be between -90 and 90, got {latitude}")
        if not is_valid_longitude(longitude):
            raise InvalidArgumentError(f"longitude must be between -180 and 180, got {longitude}")
        if not math.isfinite(radius_km) or radius_km < 0:
            raise InvalidArgumentError(f"radius must be a non-negative number, got {radius_km}")

        matches = self.crud.get_volunteers_within_radius(db, latitude, longitude, radius_km)
        return [
            NearbyVolunteer(**to_volunteer_response(volunteer).model_dump(), distance_km=distance)
            for volunteer, distance in matches
        ]

    def is_available(
        self, db: Session, volunteer_id: int, moment: Optional[datetime] = None
    ) -> bool:
        """
        Whether the volunteer's availability covers moment (default: now, UTC).

        Volunteers without an availability descriptor are never available.
        """
        volunteer = self.get_volunteer(db, volunteer_id)
        if volunteer.availability is None:
            return False
        if moment is None:
            moment = utc_now()
        elif moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
        return volunteer.availability.is_available_at(moment)

    def get_drives_completed(self, db: Session, volunteer_id: int) -> List[str]:
        return self._get_drives(db, volunteer_id, completed_key(volunteer_id), "drives_completed")

    def get_drives_scheduled(self, db: Session, volunteer_id: int) -> List[str]:
        """Drives the volunteer has applied for."""
        return self._get_drives(db, volunteer_id, scheduled_key(volunteer_id), "drives_applied")

    def _get_drives(self, db: Session, volunteer_id: int, key: str, column: str) -> List[str]:
        def load():
            volunteer = self.crud.get_volunteer(db, volunteer_id)
            if volunteer is None:
                return None
            return documents.decode_ids(getattr(volunteer, column))

        drives = self.cache.get_or_load(key, load, self.ttl)
        if drives is None:
            raise NotFoundError.volunteer(volunteer_id)
        return drives


volunteer_service = VolunteerService()


def get_volunteer_service() -> VolunteerService:
    return volunteer_service
