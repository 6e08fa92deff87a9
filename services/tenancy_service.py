"""
Tenancy saga coordinator: onboarding and offboarding across stores.

There is no transaction spanning the tenancies collection, the profiles
collection and the inventory CMS. Each saga is a fixed sequence:

onboard
  1. insert the Active tenancy                      (primary, aborts on failure)
  2. mirror it into the profile (is_boarded, staying_*)  (primary)
  3. decrement the tier's bed count in the CMS      (best-effort)

offboard
  1. delete the Active tenancy if there is one      (primary, absent is fine)
     a tenancyId that no longer resolves is refused while the user still
     holds another Active tenancy (ConflictError, nothing written)
  2. reset the profile to the off-boarded shape     (primary)
  -  inventory is left alone (BedReleasePolicy.RETAIN)

A failure between the primary steps leaves a cross-store inconsistency.
It is logged at error level with an ``inconsistency`` field and every id an
operator needs; nothing is rolled back automatically.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pymongo.errors import DuplicateKeyError

from errors import ConflictError, NotFoundError, ValidationError
from infrastructure.inventory.protocol import InventoryStore
from repositories.profile_repository import ProfileRepository
from repositories.tenancy_repository import TenancyRepository
from schemas.models.profile import (
    ProfileDoc,
    boarded_profile_fields,
    offboarded_profile_fields,
)
from schemas.models.tenancy import TENANCY_STATUS_ACTIVE, TenancyDoc
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger, log_with_context
from shared.validators import normalize_month_name

log = get_logger(__name__)


class BedReleasePolicy(str, Enum):
    """What offboarding does to the bed count onboarding consumed.

    RETAIN: beds stay consumed; offboarding never increments bedsLeft.
    Availability is restored by hand in the CMS. This is the only policy
    implemented.
    """

    RETAIN = "retain"


BED_RELEASE_POLICY = BedReleasePolicy.RETAIN


@dataclass(frozen=True)
class OnboardCommand:
    user_id: str
    profile_id: str
    property_id: str
    property_name: str
    tier_key: str
    tier_name: str
    occupancy_name: str
    rent_amount: float
    currency: str = "INR"


@dataclass(frozen=True)
class OnboardResult:
    tenancy: TenancyDoc
    created: bool
    inventory_decremented: bool


@dataclass(frozen=True)
class OffboardResult:
    profile_id: str
    deleted_tenancy_id: Optional[str]


class TenancySagaCoordinator:
    def __init__(
        self,
        tenancies: TenancyRepository,
        profiles: ProfileRepository,
        inventory: InventoryStore,
        clock: Clock = utc_now,
        bed_release_policy: BedReleasePolicy = BED_RELEASE_POLICY,
    ) -> None:
        self._tenancies = tenancies
        self._profiles = profiles
        self._inventory = inventory
        self._clock = clock
        self._bed_release_policy = bed_release_policy

    async def _load_profile(self, profile_id: str, user_id: Optional[str]) -> ProfileDoc:
        profile = await self._profiles.get(profile_id)
        if profile is None:
            raise NotFoundError("Profile not found", field="profileId")
        if user_id and profile.user_id and profile.user_id != user_id:
            raise ValidationError(
                "Profile does not belong to this user", field="profileId"
            )
        return profile

    # ── Onboarding ───────────────────────────────────────────────────────────

    async def onboard(self, request: OnboardCommand) -> OnboardResult:
        rent = int(round(request.rent_amount))
        if rent <= 0:
            raise ValidationError("rentAmount must be positive", field="rentAmount")
        slog = log_with_context(
            log,
            user_id=request.user_id,
            profile_id=request.profile_id,
            property_id=request.property_id,
            tier_key=request.tier_key,
        )
        # Nothing is written until the profile is known to exist
        await self._load_profile(request.profile_id, request.user_id)

        existing = await self._tenancies.find_active_by_user(request.user_id)
        if existing is not None:
            return await self._resume_onboarding(existing, request, slog)

        tenancy = TenancyDoc(
            user_id=request.user_id,
            profile_id=request.profile_id,
            property_id=request.property_id,
            property_name=request.property_name,
            occupancy_name=request.occupancy_name,
            tier_key=request.tier_key,
            tier_name=request.tier_name,
            rent_amount=rent,
            currency=(request.currency or "INR").upper(),
            onboarded_at=self._clock(),
            status=TENANCY_STATUS_ACTIVE,
        )

        # Step 1: primary
        try:
            tenancy = await self._tenancies.insert(tenancy)
        except DuplicateKeyError:
            winner = await self._tenancies.find_active_by_user(request.user_id)
            if winner is None:
                raise
            return await self._resume_onboarding(winner, request, slog)
        slog.info("tenancy_created", tenancy_id=str(tenancy.id), rent_amount=rent)

        # Step 2: primary
        await self._mirror_into_profile(tenancy, slog)

        # Step 3: best-effort
        decremented = await self._decrement_inventory(tenancy, slog)
        return OnboardResult(
            tenancy=tenancy, created=True, inventory_decremented=decremented
        )

    async def _resume_onboarding(
        self, existing: TenancyDoc, request: OnboardCommand, slog
    ) -> OnboardResult:
        """Treat an Active tenancy for the same room as an idempotent success.

        The profile mirror is re-applied so a retry after a step-2 failure
        converges. The bed was already counted, so inventory is not touched.
        """
        if (
            existing.property_id != request.property_id
            or existing.tier_key != request.tier_key
        ):
            raise ConflictError(
                "User already has an active tenancy",
                details={"tenancyId": str(existing.id)},
            )
        slog.info("onboard_already_active", tenancy_id=str(existing.id))
        await self._mirror_into_profile(existing, slog)
        return OnboardResult(tenancy=existing, created=False, inventory_decremented=False)

    async def _mirror_into_profile(self, tenancy: TenancyDoc, slog) -> None:
        fields = boarded_profile_fields(
            tenancy.property_name,
            tenancy.occupancy_name,
            tenancy.tier_name,
            tenancy.rent_amount,
        )
        try:
            updated = await self._profiles.update_fields(tenancy.profile_id, fields)
        except Exception as e:
            slog.error(
                "saga_inconsistency",
                inconsistency="orphaned_tenancy",
                tenancy_id=str(tenancy.id),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        if not updated:
            slog.error(
                "saga_inconsistency",
                inconsistency="orphaned_tenancy",
                tenancy_id=str(tenancy.id),
                error="profile disappeared before update",
            )
            raise NotFoundError("Profile not found", field="profileId")
        slog.info("profile_marked_boarded", tenancy_id=str(tenancy.id))

    async def _decrement_inventory(self, tenancy: TenancyDoc, slog) -> bool:
        try:
            await self._inventory.decrement_beds(tenancy.property_id, tenancy.tier_key)
        except Exception as e:
            slog.warning(
                "inventory_decrement_failed",
                tenancy_id=str(tenancy.id),
                reconcile="decrement bedsLeft by 1 manually",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        return True

    # ── Offboarding ──────────────────────────────────────────────────────────

    async def offboard(
        self,
        profile_id: str,
        user_id: Optional[str] = None,
        tenancy_id: Optional[str] = None,
    ) -> OffboardResult:
        profile = await self._load_profile(profile_id, user_id)
        # Profile ids are bound to the identity user id
        owner_id = user_id or profile.user_id or profile_id
        slog = log_with_context(log, user_id=owner_id, profile_id=profile_id)

        if tenancy_id is not None:
            tenancy = await self._tenancies.get(tenancy_id)
            if tenancy is not None and tenancy.user_id != owner_id:
                raise ValidationError(
                    "Tenancy does not belong to this profile", field="tenancyId"
                )
            if tenancy is None or tenancy.status != TENANCY_STATUS_ACTIVE:
                await self._ensure_no_other_active(owner_id, tenancy_id, slog)
        else:
            tenancy = await self._tenancies.find_active_by_user(owner_id)

        # Step 1: primary; an absent tenancy means already off-boarded
        deleted_id: Optional[str] = None
        if tenancy is None:
            slog.info("offboard_no_active_tenancy", tenancy_id=tenancy_id)
        else:
            if await self._tenancies.delete(str(tenancy.id)):
                deleted_id = str(tenancy.id)
                slog.info("tenancy_deleted", tenancy_id=deleted_id)
            else:
                slog.info("tenancy_already_deleted", tenancy_id=str(tenancy.id))

        # Step 2: primary
        try:
            updated = await self._profiles.update_fields(
                profile_id, offboarded_profile_fields()
            )
        except Exception as e:
            slog.error(
                "saga_inconsistency",
                inconsistency="stale_boarded_flag",
                deleted_tenancy_id=deleted_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        if not updated:
            slog.error(
                "saga_inconsistency",
                inconsistency="stale_boarded_flag",
                deleted_tenancy_id=deleted_id,
                error="profile disappeared before reset",
            )
            raise NotFoundError("Profile not found", field="profileId")
        slog.info("profile_marked_offboarded")

        if tenancy is not None:
            slog.info(
                "inventory_not_restored",
                policy=self._bed_release_policy.value,
                property_id=tenancy.property_id,
                tier_key=tenancy.tier_key,
            )
        return OffboardResult(profile_id=profile_id, deleted_tenancy_id=deleted_id)

    async def _ensure_no_other_active(self, owner_id: str, tenancy_id: str, slog) -> None:
        """Refuse a stale offboard while the user is boarded elsewhere.

        The requested tenancy is gone (or no longer Active). Resetting the
        profile now would strand whatever Active tenancy the user holds.
        """
        active = await self._tenancies.find_active_by_user(owner_id)
        if active is None:
            return
        slog.warning(
            "offboard_stale_tenancy_id",
            tenancy_id=tenancy_id,
            active_tenancy_id=str(active.id),
        )
        raise ConflictError(
            "Tenancy is no longer active; the user holds a different active tenancy",
            field="tenancyId",
            details={"activeTenancyId": str(active.id)},
        )

    # ── Rent ledger ──────────────────────────────────────────────────────────

    async def record_rent_payment(
        self, tenancy_id: str, payment_year: int, paid_months: list[str]
    ) -> TenancyDoc:
        months: list[str] = []
        for raw in paid_months:
            month = normalize_month_name(raw)
            if month is None:
                raise ValidationError(f"Unknown month: {raw!r}", field="paidMonths")
            if month not in months:
                months.append(month)

        tenancy = await self._tenancies.update_rent_payment(
            tenancy_id, payment_year, months
        )
        if tenancy is None:
            raise NotFoundError("Tenancy not found", field="tenancyId")
        log.info(
            "rent_payment_recorded",
            tenancy_id=tenancy_id,
            payment_year=payment_year,
            paid_months=months,
        )
        return tenancy
