"""
InviteService - brand invite validation, acceptance and display.

Pure rules (check_invite_usable, record_use, ...) form the functional core;
InviteService wraps them in store reads and one store transaction per
acceptance attempt.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime

from src.domain.entities import (
    ACTIVE,
    CONSUMED,
    AcceptanceResult,
    Brand,
    Invite,
    InviteMetadata,
    InviteStatus,
    User,
    UserProfile,
)
from src.domain.errors import (
    BrandConflictError,
    BrandNotFoundError,
    InviteAlreadyUsedError,
    InviteExpiredError,
    InviteInvalidStateError,
    InviteNotFoundError,
    TransactionConflict,
    TransientError,
)
from src.domain.timeutil import to_iso, to_utc_instant
from src.rules.models import InviteRules, RetryRules

from .ports import ClockPort, InviteStorePort

logger = logging.getLogger(__name__)

# --- Validation ---


def check_invite_usable(
    invite: Invite | None,
    now: datetime,
    default_max_uses: int = 1,
) -> Invite:
    """
    Check, in order: exists, active, not expired, not exhausted.

    Returns the invite unchanged, or raises the error for the first rule
    that fails. `now` must be an aware UTC datetime. A consumed invite that
    is at its cap reports AlreadyUsed rather than InvalidState.
    """
    if invite is None:
        raise InviteNotFoundError()

    if invite.status != ACTIVE:
        # A consumed invite that really is at its cap is reported as used up.
        if invite.status == CONSUMED and invite.used_count >= invite.cap(default_max_uses):
            raise InviteAlreadyUsedError()
        raise InviteInvalidStateError()

    try:
        expires_at = to_utc_instant(invite.expires_at)
    except ValueError as e:
        raise InviteInvalidStateError("Invite has an unreadable expiry") from e

    if expires_at is not None and expires_at < now:
        raise InviteExpiredError()

    if invite.used_count >= invite.cap(default_max_uses):
        raise InviteAlreadyUsedError()

    return invite


# --- Transitions ---


def next_status(used_count: int, max_uses: int) -> InviteStatus:
    return CONSUMED if used_count >= max_uses else ACTIVE


def record_use(
    invite: Invite, user_id: str, now: datetime, default_max_uses: int = 1
) -> Invite:
    """Add `user_id` to the invite's users, consuming it when the cap is hit."""
    used_by = invite.used_by | {user_id}
    return invite.model_copy(
        update={
            "used_by": used_by,
            "status": next_status(len(used_by), invite.cap(default_max_uses)),
            "updated_at": now,
        }
    )


def add_member(brand: Brand, user_id: str, now: datetime) -> Brand:
    return brand.model_copy(
        update={"user_ids": brand.user_ids | {user_id}, "updated_at": now}
    )


def link_user(
    existing: User | None,
    user_id: str,
    brand_id: str,
    profile: UserProfile,
    now: datetime,
) -> User:
    """
    Point the user at `brand_id` and merge supplied profile fields.

    Fields the profile leaves as None keep their stored values.
    """
    base = existing or User(id=user_id, created_at=now)
    updates: dict[str, object] = dict(profile.supplied_fields())
    updates["brand_id"] = brand_id
    updates["updated_at"] = now
    return base.model_copy(update=updates)


# --- Projection ---


def project_metadata(
    invite: Invite, brand: Brand | None, default_max_uses: int = 1
) -> InviteMetadata:
    return InviteMetadata(
        token=invite.token,
        brand_id=invite.brand_id,
        brand_name=(brand.name or None) if brand else None,
        status=invite.status,
        expires_at=to_iso(invite.expires_at),
        max_uses=invite.cap(default_max_uses),
        used_count=invite.used_count,
    )


# --- Service ---


def backoff_delay(attempt: int, retry: RetryRules) -> float:
    """Delay before retry number `attempt` (1-based), doubling each time."""
    return min(retry.base_delay_seconds * (2 ** (attempt - 1)), retry.max_delay_seconds)


class InviteService:
    """
    Validates, accepts and describes brand invites.

    All durable state lives in the injected store; acceptance is one store
    transaction over the invite, the brand and the user, retried as a whole
    when the store reports a write conflict.
    """

    def __init__(
        self,
        store: InviteStorePort,
        clock: ClockPort,
        rules: InviteRules | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.clock = clock
        self.rules = rules or InviteRules()
        self._sleep = sleep

    def validate_invite(self, token: str) -> Invite:
        """Pre-flight check. Advisory only: acceptance re-checks inside its transaction."""
        invite = self.store.get_invite(token)
        return check_invite_usable(invite, self.clock.now_utc(), self.rules.default_max_uses)

    def accept_invite(
        self, token: str, user_id: str, profile: UserProfile | None = None
    ) -> AcceptanceResult:
        profile = profile or UserProfile()
        retry = self.rules.retry

        logger.info("Accepting invite %s for user %s", token, user_id)
        for attempt in range(1, retry.max_attempts + 1):
            try:
                brand_id = self._accept_once(token, user_id, profile)
            except TransactionConflict as e:
                if attempt == retry.max_attempts:
                    logger.error(
                        "Invite %s: giving up after %d conflicting attempts: %s",
                        token, attempt, e,
                    )
                    raise TransientError() from e
                delay = backoff_delay(attempt, retry)
                logger.warning(
                    "Invite %s: write conflict on attempt %d/%d, retrying in %.3fs",
                    token, attempt, retry.max_attempts, delay,
                )
                self._sleep(delay)
                continue

            self._log_persisted_membership(user_id, brand_id)
            return AcceptanceResult(success=True, brand_id=brand_id)

        # max_attempts >= 1, so the loop always returns or raises.
        raise TransientError()

    def _accept_once(self, token: str, user_id: str, profile: UserProfile) -> str:
        default_max_uses = self.rules.default_max_uses

        with self.store.transaction() as tx:
            invite = check_invite_usable(
                tx.get_invite(token), self.clock.now_utc(), default_max_uses
            )

            brand = tx.get_brand(invite.brand_id)
            if brand is None:
                raise BrandNotFoundError()

            user = tx.get_user(user_id)
            if user is not None and user.brand_id and user.brand_id != brand.id:
                raise BrandConflictError()

            now = self.clock.now_utc()
            tx.put_user(link_user(user, user_id, brand.id, profile, now))
            tx.put_brand(add_member(brand, user_id, now))
            updated = record_use(invite, user_id, now, default_max_uses)
            tx.put_invite(updated)

        logger.info(
            "Invite %s accepted by %s: brand=%s used=%d/%d status=%s",
            token, user_id, brand.id, updated.used_count,
            updated.cap(default_max_uses), updated.status,
        )
        return brand.id

    def _log_persisted_membership(self, user_id: str, brand_id: str) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        try:
            user = self.store.get_user(user_id)
            brand = self.store.get_brand(brand_id)
        except Exception:
            # The acceptance is already committed; the read-back only feeds a log line.
            logger.warning("Post-commit check failed for user %s", user_id, exc_info=True)
            return
        logger.debug(
            "Post-commit check: user.brand_id=%s brand.user_ids=%s",
            user.brand_id if user else None,
            sorted(brand.user_ids) if brand else None,
        )

    def get_invite_metadata(self, token: str) -> InviteMetadata:
        """Display projection. A deleted brand yields brand_name=None, not an error."""
        invite = self.store.get_invite(token)
        if invite is None:
            raise InviteNotFoundError()
        brand = self.store.get_brand(invite.brand_id)
        if brand is None:
            logger.info("Invite %s points at missing brand %s", token, invite.brand_id)
        return project_metadata(invite, brand, self.rules.default_max_uses)
