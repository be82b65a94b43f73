"""
Supabase-backed booking repository.
Handles all database interactions for bookings, audit entries and venue
reference data.

Schema Notes:
=============
Bookings and audit entries must be written in one transaction, which
PostgREST cannot do across two table calls. Mutations therefore go through
a single Postgres function, and double booking is additionally prevented by
an exclusion constraint on active bookings:

-- Requires: CREATE EXTENSION btree_gist;
ALTER TABLE bookings ADD CONSTRAINT bookings_no_overlap
EXCLUDE USING gist (
    venue_id WITH =,
    coalesce(staff_member_id, 0) WITH =,
    booking_date WITH =,
    tsrange(booking_date + start_time, booking_date + end_time) WITH &&
) WHERE (status IN ('pending', 'confirmed'));

ALTER TABLE booking_audit_log
    ADD CONSTRAINT booking_audit_log_booking_fk
    FOREIGN KEY (booking_id) REFERENCES bookings(id) ON DELETE CASCADE;

CREATE FUNCTION commit_booking_mutation(mode text, booking jsonb, audit jsonb)
RETURNS jsonb LANGUAGE plpgsql AS $$
DECLARE row bookings;
BEGIN
    IF mode = 'insert' THEN
        INSERT INTO bookings SELECT * FROM jsonb_populate_record(NULL::bookings, booking - 'id')
        RETURNING * INTO row;
    ELSE
        UPDATE bookings b SET (status, booking_date, start_time, end_time, staff_member_id,
                               special_requests, cancellation_reason, cancelled_at, updated_at)
            = (r.status, r.booking_date, r.start_time, r.end_time, r.staff_member_id,
               r.special_requests, r.cancellation_reason, r.cancelled_at, r.updated_at)
        FROM jsonb_populate_record(NULL::bookings, booking) r
        WHERE b.id = r.id RETURNING b.* INTO row;
    END IF;
    INSERT INTO booking_audit_log (booking_id, venue_id, action, old_status, new_status,
                                   actor_type, actor_label, reason, created_at)
    VALUES (row.id, row.venue_id, audit->>'action', audit->>'old_status', audit->>'new_status',
            audit->>'actor_type', audit->>'actor_label', audit->>'reason',
            (audit->>'created_at')::timestamp);
    RETURN to_jsonb(row);
END $$;
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import Client as SupabaseClientType
from supabase import create_client

from config import settings
from models.audit import AuditLogEntry
from models.availability import AvailabilityRule
from models.booking import ACTIVE_STATUSES, Booking, BookingStatus, ResourceKey
from models.venue import Service, VenuePolicy
from utils.datetime_utils import to_venue_local, utc_now
from utils.exceptions import DatabaseError, SlotConflict
from utils.logging_config import get_logger

from .base import BookingRepository

logger = get_logger(__name__)

# SQLSTATE raised by the bookings_no_overlap exclusion constraint
EXCLUSION_VIOLATION = "23P01"

_TIMESTAMP_FIELDS = ("created_at", "updated_at", "cancelled_at")


class SupabaseRepository(BookingRepository):
    """
    Supabase implementation of ``BookingRepository``.

    Uses the service_role key, which bypasses RLS; access control is the
    calling layer's job. Venue policies and services are cached briefly
    because every availability query reads them.
    """

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        self.client: SupabaseClientType = create_client(
            url or settings.supabase_url, key or settings.supabase_key
        )

        # Format: {cache_key: (data, expiry_time)}
        self._cache: Dict[str, Tuple[Any, datetime]] = {}
        self._cache_ttl = timedelta(minutes=5)

    # ========== Cache Helpers ==========

    def _get_from_cache(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired."""
        if key not in self._cache:
            return None

        data, expiry = self._cache[key]
        if utc_now() > expiry:
            del self._cache[key]
            return None

        return data

    def _set_cache(self, key: str, value: Any) -> None:
        expiry = utc_now() + self._cache_ttl
        self._cache[key] = (value, expiry)

    def clear_cache(self) -> None:
        self._cache.clear()

    # ========== Reference Data ==========

    async def get_venue_policy(self, venue_id: int) -> Optional[VenuePolicy]:
        cache_key = f"venue_policy:{venue_id}"
        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        try:
            response = (
                self.client.table("venues")
                .select("id, booking_advance_days, booking_advance_hours, cancellation_hours, auto_confirm")
                .eq("id", venue_id)
                .eq("is_active", True)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get venue policy: {e}") from e

        if not response.data:
            return None

        row = response.data[0]
        policy = VenuePolicy(
            venue_id=row["id"],
            booking_advance_days=row.get("booking_advance_days") or 0,
            booking_advance_hours=row.get("booking_advance_hours") or 0,
            cancellation_hours=row.get("cancellation_hours") or 0,
            auto_confirm=bool(row.get("auto_confirm")),
        )
        self._set_cache(cache_key, policy)
        return policy

    async def get_service(self, service_id: int) -> Optional[Service]:
        cache_key = f"service:{service_id}"
        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        try:
            response = (
                self.client.table("services").select("*").eq("id", service_id).execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get service: {e}") from e

        if not response.data:
            return None

        service = Service(**response.data[0])
        self._set_cache(cache_key, service)
        return service

    async def list_availability_rules(
        self, venue_id: int, day_of_week: Optional[int] = None
    ) -> List[AvailabilityRule]:
        try:
            query = (
                self.client.table("availability_rules")
                .select("*")
                .eq("venue_id", venue_id)
                .eq("is_active", True)
            )
            if day_of_week is not None:
                query = query.eq("day_of_week", day_of_week)
            response = query.execute()
        except Exception as e:
            raise DatabaseError(f"Failed to get availability rules: {e}") from e

        return [AvailabilityRule(**item) for item in response.data]

    async def can_staff_perform_service(self, staff_member_id: int, service_id: int) -> bool:
        try:
            response = (
                self.client.table("staff_services")
                .select("id, staff_members!inner(is_active)")
                .eq("staff_member_id", staff_member_id)
                .eq("service_id", service_id)
                .eq("staff_members.is_active", True)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to check staff services: {e}") from e

        return bool(response.data)

    # ========== Booking Reads ==========

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        return await self._get_booking_by("id", booking_id)

    async def get_booking_by_token(self, token: str) -> Optional[Booking]:
        return await self._get_booking_by("booking_token", token)

    async def _get_booking_by(self, column: str, value: Any) -> Optional[Booking]:
        try:
            response = self.client.table("bookings").select("*").eq(column, value).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to get booking: {e}") from e

        if response.data:
            return self._parse_booking(response.data[0])
        return None

    async def list_resource_bookings(
        self,
        resource: ResourceKey,
        day: date,
        statuses: Iterable[BookingStatus] = ACTIVE_STATUSES,
    ) -> List[Booking]:
        try:
            query = (
                self.client.table("bookings")
                .select("*")
                .eq("venue_id", resource.venue_id)
                .eq("booking_date", day.isoformat())
                .in_("status", [s.value for s in statuses])
            )
            if resource.staff_member_id is None:
                query = query.is_("staff_member_id", "null")
            else:
                query = query.eq("staff_member_id", resource.staff_member_id)

            response = query.order("start_time", desc=False).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to get resource bookings: {e}") from e

        return [self._parse_booking(item) for item in response.data]

    async def list_venue_bookings(
        self,
        venue_id: int,
        day: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        try:
            query = self.client.table("bookings").select("*").eq("venue_id", venue_id)

            if day:
                query = query.eq("booking_date", day.isoformat())
            if start_date:
                query = query.gte("booking_date", start_date.isoformat())
            if end_date:
                query = query.lte("booking_date", end_date.isoformat())
            if status:
                query = query.eq("status", status.value)

            response = (
                query.order("booking_date", desc=True)
                .order("start_time", desc=True)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get venue bookings: {e}") from e

        return [self._parse_booking(item) for item in response.data]

    async def list_customer_bookings(
        self, customer_email: str, from_date: Optional[date] = None
    ) -> List[Booking]:
        # Addresses are stored lowercased, so match exactly
        try:
            query = (
                self.client.table("bookings")
                .select("*")
                .eq("customer_email", customer_email.strip().lower())
            )
            if from_date:
                query = query.gte("booking_date", from_date.isoformat())

            response = (
                query.order("booking_date", desc=True)
                .order("start_time", desc=True)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get customer bookings: {e}") from e

        return [self._parse_booking(item) for item in response.data]

    # ========== Mutations ==========

    async def insert_booking(self, booking: Booking, audit_entry: AuditLogEntry) -> Booking:
        return await self._commit("insert", booking, audit_entry)

    async def update_booking(self, booking: Booking, audit_entry: AuditLogEntry) -> Booking:
        if booking.id is None:
            raise DatabaseError("Cannot update a booking without id")
        return await self._commit("update", booking, audit_entry)

    async def _commit(self, mode: str, booking: Booking, audit_entry: AuditLogEntry) -> Booking:
        payload = {
            "mode": mode,
            "booking": booking.model_dump(mode="json", exclude_none=(mode == "insert")),
            "audit": audit_entry.model_dump(mode="json", exclude={"id", "booking_id"}),
        }
        try:
            response = self.client.rpc("commit_booking_mutation", payload).execute()
        except APIError as e:
            if e.code == EXCLUSION_VIOLATION:
                logger.warning(f"Exclusion constraint rejected booking on {booking.resource}")
                raise SlotConflict("Time slot already booked") from e
            raise DatabaseError(f"Failed to {mode} booking: {e}") from e
        except Exception as e:
            raise DatabaseError(f"Failed to {mode} booking: {e}") from e

        if not response.data:
            raise DatabaseError(f"Failed to {mode} booking: no data returned")

        return self._parse_booking(response.data)

    async def append_audit_entry(self, entry: AuditLogEntry) -> AuditLogEntry:
        data = entry.model_dump(mode="json", exclude={"id"})
        try:
            booking = await self.get_booking(entry.booking_id)
            if booking is None:
                raise DatabaseError(f"Cannot audit unknown booking {entry.booking_id}")
            data["venue_id"] = booking.venue_id
            response = self.client.table("booking_audit_log").insert(data).execute()
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to append audit entry: {e}") from e

        if not response.data:
            raise DatabaseError("Failed to append audit entry: no data returned")
        return self._parse_audit_entry(response.data[0])

    async def list_audit_entries(self, booking_id: int) -> List[AuditLogEntry]:
        try:
            response = (
                self.client.table("booking_audit_log")
                .select("*")
                .eq("booking_id", booking_id)
                .order("created_at", desc=False)
                .order("id", desc=False)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get audit entries: {e}") from e

        return [self._parse_audit_entry(item) for item in response.data]

    async def erase_booking(self, booking_id: int) -> bool:
        """Audit rows go with the booking through ON DELETE CASCADE."""
        try:
            response = self.client.table("bookings").delete().eq("id", booking_id).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to erase booking: {e}") from e
        return len(response.data) > 0

    # ========== Helper Methods ==========

    def _parse_booking(self, item: dict) -> Booking:
        """
        Parse booking data from database response.

        Timestamps come back as timestamptz and are normalized to the
        engine's naive venue-local clock.
        """
        item = item.copy()
        for field in _TIMESTAMP_FIELDS:
            if item.get(field):
                item[field] = to_venue_local(datetime.fromisoformat(item[field].replace("Z", "+00:00")))
        return Booking(**item)

    def _parse_audit_entry(self, item: dict) -> AuditLogEntry:
        item = {k: v for k, v in item.items() if k in AuditLogEntry.model_fields}
        item["created_at"] = to_venue_local(
            datetime.fromisoformat(str(item["created_at"]).replace("Z", "+00:00"))
        )
        return AuditLogEntry(**item)
