"""
Booking service: the single entry point for booking reads and mutations.

Every mutation follows the same sequence: validate input, evaluate venue
policy, then take the relevant locks, re-check the slot, and commit the
booking together with its audit entry. Domain events are published only
after the commit.
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from config import settings
from db.base import BookingRepository
from models.actor import SYSTEM, AdminActor, CustomerActor, is_admin
from models.audit import AuditAction, AuditLogEntry
from models.availability import DayAvailability, SlotCandidate, TimeInterval
from models.booking import Booking, BookingCreate, BookingStatus, ResourceKey
from models.events import BookingEvent, BookingEventType
from models.venue import Service, VenuePolicy
from utils.constants import DAYS_IN_WEEK
from utils.datetime_utils import (
    MINUTES_PER_DAY,
    combine,
    day_of_week,
    format_hhmm,
    minutes_to_time,
    time_to_minutes,
    to_venue_local,
    venue_now,
)
from utils.exceptions import (
    IllegalTransition,
    NotFoundError,
    PermissionDeniedError,
    SlotConflict,
    ValidationError,
)
from utils.logging_config import get_logger
from utils.validation import (
    normalize_reason,
    sanitize_text,
    validate_email,
    validate_party_size,
    validate_phone,
)

from .audit_log import AuditLog, build_entry
from .conflicts import ConflictChecker
from .events import EventBus
from .locks import KeyedLock, booking_lock_key, resource_lock_key
from .opening_hours import OpeningHoursResolver
from .policy import PolicyEngine, PolicyOperation
from .state_machine import BookingStateMachine, parse_status
from .tokens import TokenOperation, generate_booking_token, resolve_capability, token_prefix

logger = get_logger(__name__)

_KEEP_STAFF = object()

_STATUS_EVENTS = {
    BookingStatus.CANCELLED: BookingEventType.CANCELLED,
    BookingStatus.COMPLETED: BookingEventType.COMPLETED,
}


class BookingService:
    """
    Booking lifecycle and slot allocation.

    Every time-dependent operation accepts an optional ``now`` (venue-local
    or timezone-aware); the current venue time is used when omitted.
    """

    def __init__(
        self,
        repository: BookingRepository,
        event_bus: Optional[EventBus] = None,
        locks: Optional[KeyedLock] = None,
        policy_engine: Optional[PolicyEngine] = None,
        granularity_minutes: Optional[int] = None,
        lock_timeout: Optional[float] = None,
    ):
        self.repository = repository
        self.events = event_bus or EventBus()
        self.locks = locks or KeyedLock()
        self.policy = policy_engine or PolicyEngine(
            admin_bypass=settings.admin_bypass_temporal_policy
        )
        self.resolver = OpeningHoursResolver(repository)
        self.conflicts = ConflictChecker(repository, self.resolver)
        self.state_machine = BookingStateMachine()
        self.audit_log = AuditLog(repository)
        self.granularity_minutes = granularity_minutes or settings.slot_granularity_minutes
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.lock_timeout_seconds

    # ========== Helpers ==========

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return to_venue_local(now) if now is not None else venue_now()

    def _timeout(self, lock_timeout: Optional[float]) -> float:
        return self.lock_timeout if lock_timeout is None else lock_timeout

    async def _require_booking(self, booking_id: int) -> Booking:
        booking = await self.repository.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(
                f"Booking {booking_id} not found",
                code="booking_not_found",
                details={"booking_id": booking_id},
            )
        return booking

    async def _require_policy(self, venue_id: int) -> VenuePolicy:
        policy = await self.repository.get_venue_policy(venue_id)
        if policy is None:
            raise NotFoundError(
                f"Venue {venue_id} not found",
                code="venue_not_found",
                details={"venue_id": venue_id},
            )
        return policy

    async def _require_service(self, service_id: int, venue_id: int) -> Service:
        service = await self.repository.get_service(service_id)
        if service is None or not service.is_active or service.venue_id != venue_id:
            raise NotFoundError(
                f"Service {service_id} not found or inactive at venue {venue_id}",
                code="service_not_found",
                details={"service_id": service_id, "venue_id": venue_id},
            )
        return service

    async def _check_staff(self, service: Service, staff_member_id: Optional[int]) -> None:
        if staff_member_id is None:
            if service.requires_staff:
                raise ValidationError(
                    f"Service {service.name} needs a staff member",
                    code="staff_required",
                    details={"service_id": service.id},
                )
            return
        if not await self.repository.can_staff_perform_service(staff_member_id, service.id):
            logger.warning(
                f"Staff member {staff_member_id} cannot perform service {service.id}"
            )
            raise ValidationError(
                "Selected staff member cannot perform this service",
                code="staff_cannot_perform_service",
                details={"staff_member_id": staff_member_id, "service_id": service.id},
            )

    @staticmethod
    def _check_capacity(service: Service, party_size: int) -> None:
        if party_size > service.capacity:
            raise ValidationError(
                f"Party size exceeds capacity (max: {service.capacity})",
                code="exceeds_capacity",
                details={"party_size": party_size, "capacity": service.capacity},
            )

    @staticmethod
    def _interval(start_time: time, duration_minutes: int) -> TimeInterval:
        """Interval of a booking starting at ``start_time``; must end by midnight."""
        start = time_to_minutes(start_time)
        end = start + duration_minutes
        if end >= MINUTES_PER_DAY:
            raise ValidationError(
                f"A {duration_minutes} minute booking starting at "
                f"{format_hhmm(start_time)} would end after midnight",
                code="invalid_interval",
                details={"start_time": format_hhmm(start_time), "duration_minutes": duration_minutes},
            )
        return TimeInterval(start=start, end=end)

    async def _check_opening_hours(
        self, resource: ResourceKey, day: date, interval: TimeInterval
    ) -> None:
        intervals = await self.resolver.resolve(resource, day)
        if not intervals:
            raise ValidationError(
                f"{resource} is closed on {day.isoformat()}",
                code="venue_closed",
                details={"date": day.isoformat(), "day_of_week": day_of_week(day)},
            )
        if not any(open_interval.contains(interval) for open_interval in intervals):
            raise ValidationError(
                f"{interval} is outside opening hours on {day.isoformat()}",
                code="outside_opening_hours",
                details={
                    "requested": str(interval),
                    "open": [str(i) for i in intervals],
                },
            )

    async def _ensure_slot_free(
        self,
        resource: ResourceKey,
        day: date,
        interval: TimeInterval,
        exclude_booking_id: Optional[int] = None,
    ) -> None:
        conflict = await self.conflicts.find_conflicting_booking(
            resource, day, interval, exclude_booking_id
        )
        if conflict is not None:
            logger.warning(
                f"Slot {interval} on {day.isoformat()} for {resource} "
                f"taken by booking {conflict.id}"
            )
            raise SlotConflict(
                "Time slot already booked",
                details={
                    "conflicting_booking_id": conflict.id,
                    "date": day.isoformat(),
                    "requested": str(interval),
                },
            )

    async def _publish(
        self,
        event_type: BookingEventType,
        booking: Booking,
        actor,
        now: datetime,
        old_status: Optional[BookingStatus] = None,
        reason: Optional[str] = None,
    ) -> None:
        event = BookingEvent(
            type=event_type,
            booking=booking,
            old_status=old_status,
            actor_label=actor.label,
            reason=reason,
            occurred_at=now,
        )
        await self.events.publish(event)

    @staticmethod
    def _token_actor(booking: Booking) -> CustomerActor:
        return CustomerActor(customer_id=booking.customer_id, identifier=booking.customer_email)

    def _validate_request(self, request: BookingCreate) -> None:
        if not validate_party_size(request.party_size, settings.max_party_size):
            raise ValidationError(
                f"Party size must be between 1 and {settings.max_party_size}",
                code="invalid_party_size",
                details={"party_size": request.party_size},
            )
        if not sanitize_text(request.customer_name):
            raise ValidationError(
                "Customer name is required", details={"field": "customer_name"}
            )
        if not validate_email(request.customer_email):
            raise ValidationError(
                "Invalid e-mail address", details={"field": "customer_email"}
            )
        if request.customer_phone and not validate_phone(request.customer_phone):
            raise ValidationError(
                "Invalid phone number", details={"field": "customer_phone"}
            )

    # ========== Creation ==========

    async def create_booking(
        self,
        request: BookingCreate,
        actor=None,
        now: Optional[datetime] = None,
        lock_timeout: Optional[float] = None,
    ) -> Booking:
        """
        Create a booking for the requested service and slot.

        Args:
            request: Booking request
            actor: Who is booking, defaults to the customer of the request
            now: Evaluation instant
            lock_timeout: Seconds to wait for the resource lock

        Returns:
            The committed booking, with id and token

        Raises:
            ValidationError: Bad request fields, party above service capacity,
                staff member not assigned to the service, or slot outside opening hours
            NotFoundError: Unknown venue or service
            TemporalPolicyViolation: Too soon or too far out
            SlotConflict: The slot is taken
            ContentionError: The resource lock could not be acquired
        """
        now = self._now(now)
        if actor is None:
            actor = CustomerActor(
                customer_id=request.customer_id, identifier=request.customer_email
            )

        self._validate_request(request)
        policy = await self._require_policy(request.venue_id)
        service = await self._require_service(request.service_id, request.venue_id)
        self._check_capacity(service, request.party_size)
        await self._check_staff(service, request.staff_member_id)
        interval = self._interval(request.start_time, service.duration_minutes)
        resource = request.resource

        self.policy.check_eligibility(
            PolicyOperation.CREATE,
            policy,
            now,
            requested_start=combine(request.booking_date, request.start_time),
            actor=actor,
        )
        await self._check_opening_hours(resource, request.booking_date, interval)

        status = BookingStatus.CONFIRMED if policy.auto_confirm else BookingStatus.PENDING
        try:
            booking = Booking(
                booking_token=generate_booking_token(),
                venue_id=request.venue_id,
                staff_member_id=request.staff_member_id,
                service_id=service.id,
                booking_date=request.booking_date,
                start_time=request.start_time,
                end_time=minutes_to_time(interval.end),
                party_size=request.party_size,
                customer_id=request.customer_id,
                customer_name=sanitize_text(request.customer_name, max_length=255),
                customer_email=request.customer_email.strip().lower(),
                customer_phone=request.customer_phone,
                special_requests=sanitize_text(
                    request.special_requests, max_length=settings.max_special_requests_length
                )
                or None,
                status=status,
                created_at=now,
                updated_at=now,
            )
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid booking request",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e

        entry = build_entry(None, AuditAction.STATUS_CHANGE, actor, now, None, status)

        async with self.locks.hold(
            resource_lock_key(resource, request.booking_date), timeout=self._timeout(lock_timeout)
        ):
            await self._ensure_slot_free(resource, request.booking_date, interval)
            created = await self.repository.insert_booking(booking, entry)

        logger.info(
            f"Booking {created.id} created for {resource} on {created.booking_date} "
            f"{interval} ({status.value}, token {token_prefix(created.booking_token)})"
        )
        await self._publish(BookingEventType.CREATED, created, actor, now)
        return created

    # ========== Queries ==========

    async def get_booking(self, booking_id: int) -> Booking:
        return await self._require_booking(booking_id)

    async def get_booking_by_token(self, token: str) -> Booking:
        return await resolve_capability(self.repository, token, TokenOperation.READ)

    async def list_bookings_for_venue(
        self,
        venue_id: int,
        day: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[Union[str, BookingStatus]] = None,
    ) -> List[Booking]:
        """Bookings of a venue, newest first, optionally filtered by date, range and status."""
        wanted = parse_status(status) if status is not None else None
        return await self.repository.list_venue_bookings(
            venue_id, day=day, start_date=start_date, end_date=end_date, status=wanted
        )

    async def list_bookings_for_customer(
        self, customer_email: str, only_future: bool = False, now: Optional[datetime] = None
    ) -> List[Booking]:
        if not validate_email(customer_email):
            raise ValidationError("Invalid e-mail address", details={"field": "customer_email"})
        from_date = self._now(now).date() if only_future else None
        return await self.repository.list_customer_bookings(customer_email, from_date)

    async def get_audit_log(self, booking_id: int) -> List[AuditLogEntry]:
        """Full audit trail of a booking, oldest first."""
        await self._require_booking(booking_id)
        return await self.audit_log.list_for_booking(booking_id)

    # ========== Availability ==========

    async def is_available(
        self,
        venue_id: int,
        day: date,
        start_time: time,
        end_time: time,
        staff_member_id: Optional[int] = None,
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        """True iff no active booking of the resource overlaps ``[start_time, end_time)``."""
        if start_time >= end_time:
            raise ValidationError(
                "start_time must be before end_time",
                code="invalid_interval",
                details={"start_time": format_hhmm(start_time), "end_time": format_hhmm(end_time)},
            )
        resource = ResourceKey(venue_id=venue_id, staff_member_id=staff_member_id)
        return await self.conflicts.is_available(
            resource, day, TimeInterval.from_times(start_time, end_time), exclude_booking_id
        )

    async def list_available_slots(
        self,
        venue_id: int,
        day: date,
        duration_minutes: int,
        staff_member_id: Optional[int] = None,
        granularity_minutes: Optional[int] = None,
        exclude_booking_id: Optional[int] = None,
    ) -> List[SlotCandidate]:
        """Grid candidates of one day for one resource, each flagged available or taken."""
        if duration_minutes <= 0:
            raise ValidationError(
                "Duration must be positive",
                code="invalid_interval",
                details={"duration_minutes": duration_minutes},
            )
        resource = ResourceKey(venue_id=venue_id, staff_member_id=staff_member_id)
        return await self.conflicts.list_available_slots(
            resource,
            day,
            duration_minutes,
            granularity_minutes or self.granularity_minutes,
            exclude_booking_id,
        )

    async def get_day_availability(
        self,
        venue_id: int,
        service_id: int,
        day: date,
        staff_member_id: Optional[int] = None,
        now: Optional[datetime] = None,
        actor=None,
        window_start: Optional[time] = None,
        window_end: Optional[time] = None,
        exclude_booking_id: Optional[int] = None,
    ) -> DayAvailability:
        """
        Slots of one day for a service, restricted to starts the venue policy allows.

        ``window_start`` / ``window_end`` keep only slots starting inside that
        inclusive window (e.g. mornings only).
        """
        now = self._now(now)
        policy = await self._require_policy(venue_id)
        service = await self._require_service(service_id, venue_id)
        slots = await self.list_available_slots(
            venue_id,
            day,
            service.duration_minutes,
            staff_member_id=staff_member_id,
            exclude_booking_id=exclude_booking_id,
        )

        kept = []
        for slot in slots:
            if window_start is not None and slot.start_time < window_start:
                continue
            if window_end is not None and slot.start_time > window_end:
                continue
            if not self.policy.is_bookable(policy, combine(day, slot.start_time), now, actor):
                continue
            kept.append(slot)

        return DayAvailability(day=day, day_of_week=day_of_week(day), time_slots=kept)

    async def get_week_availability(
        self,
        venue_id: int,
        service_id: int,
        start_date: date,
        staff_member_id: Optional[int] = None,
        now: Optional[datetime] = None,
        actor=None,
    ) -> List[DayAvailability]:
        now = self._now(now)
        return [
            await self.get_day_availability(
                venue_id,
                service_id,
                start_date + timedelta(days=offset),
                staff_member_id=staff_member_id,
                now=now,
                actor=actor,
            )
            for offset in range(DAYS_IN_WEEK)
        ]

    # ========== Status Transitions ==========

    async def change_status(
        self,
        booking_id: int,
        status: Union[str, BookingStatus],
        actor=SYSTEM,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
        lock_timeout: Optional[float] = None,
    ) -> Booking:
        """
        Move a booking to ``status``.

        Raises:
            ValidationError: Unknown status or missing reason
            IllegalTransition: Transition not allowed from the current status
            TemporalPolicyViolation: Cancellation cutoff passed, or outcome recorded too early
            SlotConflict: Reopening a booking whose slot has been taken
            NotFoundError: Unknown booking
            ContentionError: A lock could not be acquired
        """
        now = self._now(now)
        target = parse_status(status)
        timeout = self._timeout(lock_timeout)

        async with self.locks.hold(booking_lock_key(booking_id), timeout=timeout):
            booking = await self._require_booking(booking_id)
            plan = self.state_machine.plan(booking, target, actor, reason, now)

            if target == BookingStatus.CANCELLED:
                policy = await self._require_policy(booking.venue_id)
                self.policy.check_eligibility(
                    PolicyOperation.CANCEL, policy, now, booking=booking, actor=actor
                )

            if plan.reactivates:
                key = resource_lock_key(booking.resource, booking.booking_date)
                async with self.locks.hold(key, timeout=timeout):
                    await self._ensure_slot_free(
                        booking.resource,
                        booking.booking_date,
                        TimeInterval.from_times(booking.start_time, booking.end_time),
                        exclude_booking_id=booking.id,
                    )
                    saved = await self.repository.update_booking(plan.booking, plan.audit_entry)
            else:
                saved = await self.repository.update_booking(plan.booking, plan.audit_entry)

        logger.info(
            f"Booking {saved.id}: {plan.old_status.value} -> {plan.new_status.value} "
            f"by {actor.label}"
        )
        await self._publish(
            BookingEventType.STATUS_CHANGED, saved, actor, now, plan.old_status, plan.reason
        )
        if target in _STATUS_EVENTS:
            await self._publish(
                _STATUS_EVENTS[target], saved, actor, now, plan.old_status, plan.reason
            )
        return saved

    async def confirm_booking(
        self, booking_id: int, actor=SYSTEM, reason: Optional[str] = None, now: Optional[datetime] = None
    ) -> Booking:
        return await self.change_status(booking_id, BookingStatus.CONFIRMED, actor, reason, now)

    async def cancel_booking(
        self, booking_id: int, actor, reason: str, now: Optional[datetime] = None
    ) -> Booking:
        return await self.change_status(booking_id, BookingStatus.CANCELLED, actor, reason, now)

    async def complete_booking(
        self, booking_id: int, actor, reason: str, now: Optional[datetime] = None
    ) -> Booking:
        return await self.change_status(booking_id, BookingStatus.COMPLETED, actor, reason, now)

    async def mark_no_show(
        self, booking_id: int, actor, reason: str, now: Optional[datetime] = None
    ) -> Booking:
        return await self.change_status(booking_id, BookingStatus.NO_SHOW, actor, reason, now)

    async def reopen_booking(
        self,
        booking_id: int,
        actor: AdminActor,
        reason: str,
        status: Union[str, BookingStatus] = BookingStatus.PENDING,
        now: Optional[datetime] = None,
    ) -> Booking:
        """Move a cancelled booking back to pending (or confirmed). Admins only."""
        return await self.change_status(booking_id, status, actor, reason, now)

    # ========== Modifications ==========

    async def reschedule_booking(
        self,
        booking_id: int,
        new_date: date,
        new_start_time: time,
        actor,
        staff_member_id=_KEEP_STAFF,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
        lock_timeout: Optional[float] = None,
    ) -> Booking:
        """
        Move an active booking to a new date/time, optionally to another staff member.

        The booking's own current interval never blocks the move.

        Raises:
            IllegalTransition: The booking is not pending or confirmed
            TemporalPolicyViolation: Cutoff passed for the old slot, or new slot too soon/far
            ValidationError: New slot outside opening hours or unfit staff member
            SlotConflict: New slot taken by another booking
        """
        now = self._now(now)
        timeout = self._timeout(lock_timeout)

        async with self.locks.hold(booking_lock_key(booking_id), timeout=timeout):
            booking = await self._require_booking(booking_id)
            if not booking.is_active:
                raise IllegalTransition(
                    f"A {booking.status.value} booking cannot be rescheduled",
                    code="not_modifiable",
                    details={"status": booking.status.value},
                )

            policy = await self._require_policy(booking.venue_id)
            service = await self._require_service(booking.service_id, booking.venue_id)
            staff = booking.staff_member_id if staff_member_id is _KEEP_STAFF else staff_member_id
            new_resource = ResourceKey(venue_id=booking.venue_id, staff_member_id=staff)
            if staff != booking.staff_member_id:
                await self._check_staff(service, staff)
            interval = self._interval(new_start_time, service.duration_minutes)

            self.policy.check_eligibility(
                PolicyOperation.RESCHEDULE,
                policy,
                now,
                booking=booking,
                requested_start=combine(new_date, new_start_time),
                actor=actor,
            )
            await self._check_opening_hours(new_resource, new_date, interval)

            moved = booking.model_copy(
                update={
                    "booking_date": new_date,
                    "start_time": new_start_time,
                    "end_time": minutes_to_time(interval.end),
                    "staff_member_id": staff,
                    "updated_at": now,
                }
            )
            description = normalize_reason(reason) or (
                f"Rescheduled from {booking.booking_date.isoformat()} "
                f"{format_hhmm(booking.start_time)} to {new_date.isoformat()} "
                f"{format_hhmm(new_start_time)}"
            )
            entry = build_entry(
                booking.id, AuditAction.UPDATE, actor, now, booking.status, booking.status, description
            )

            async with self.locks.hold(
                resource_lock_key(booking.resource, booking.booking_date),
                resource_lock_key(new_resource, new_date),
                timeout=timeout,
            ):
                await self._ensure_slot_free(
                    new_resource, new_date, interval, exclude_booking_id=booking.id
                )
                saved = await self.repository.update_booking(moved, entry)

        logger.info(f"Booking {saved.id} rescheduled: {description} by {actor.label}")
        await self._publish(
            BookingEventType.RESCHEDULED, saved, actor, now, booking.status, description
        )
        return saved

    async def update_note(
        self,
        booking_id: int,
        special_requests: Optional[str],
        actor,
        now: Optional[datetime] = None,
        lock_timeout: Optional[float] = None,
    ) -> Booking:
        """Replace the special requests of an active booking."""
        now = self._now(now)

        async with self.locks.hold(
            booking_lock_key(booking_id), timeout=self._timeout(lock_timeout)
        ):
            booking = await self._require_booking(booking_id)
            if not booking.is_active:
                raise IllegalTransition(
                    f"A {booking.status.value} booking cannot be modified",
                    code="not_modifiable",
                    details={"status": booking.status.value},
                )

            note = sanitize_text(special_requests, max_length=settings.max_special_requests_length)
            updated = booking.model_copy(
                update={"special_requests": note or None, "updated_at": now}
            )
            entry = build_entry(
                booking.id,
                AuditAction.UPDATE,
                actor,
                now,
                booking.status,
                booking.status,
                "Special requests updated",
            )
            saved = await self.repository.update_booking(updated, entry)

        logger.info(f"Booking {saved.id} special requests updated by {actor.label}")
        return saved

    # ========== Token Access ==========

    async def cancel_by_token(
        self, token: str, reason: str, now: Optional[datetime] = None
    ) -> Booking:
        booking = await resolve_capability(self.repository, token, TokenOperation.CANCEL)
        return await self.cancel_booking(booking.id, self._token_actor(booking), reason, now)

    async def reschedule_by_token(
        self,
        token: str,
        new_date: date,
        new_start_time: time,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        booking = await resolve_capability(self.repository, token, TokenOperation.RESCHEDULE)
        return await self.reschedule_booking(
            booking.id, new_date, new_start_time, self._token_actor(booking), reason=reason, now=now
        )

    async def update_note_by_token(
        self, token: str, special_requests: Optional[str], now: Optional[datetime] = None
    ) -> Booking:
        booking = await resolve_capability(self.repository, token, TokenOperation.UPDATE_NOTE)
        return await self.update_note(booking.id, special_requests, self._token_actor(booking), now)

    # ========== Privileged ==========

    async def erase_booking(
        self,
        booking_id: int,
        actor,
        reason: Optional[str] = None,
        lock_timeout: Optional[float] = None,
    ) -> None:
        """
        Physically remove a booking and its audit trail (data erasure requests).

        Not a lifecycle transition: nothing is audited because nothing remains.

        Raises:
            PermissionDeniedError: ``actor`` is not an admin
            NotFoundError: Unknown booking
        """
        if not is_admin(actor):
            logger.warning(f"Erasure of booking {booking_id} refused for {actor.label}")
            raise PermissionDeniedError(
                "Only administrators can erase bookings",
                details={"booking_id": booking_id},
            )

        async with self.locks.hold(
            booking_lock_key(booking_id), timeout=self._timeout(lock_timeout)
        ):
            await self._require_booking(booking_id)
            await self.repository.erase_booking(booking_id)

        logger.warning(
            f"Booking {booking_id} erased by {actor.label} "
            f"(reason: {normalize_reason(reason) or 'not given'})"
        )
