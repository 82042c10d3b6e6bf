# app/core/permissions.py
"""
Declarative authorization policies.

A policy grants access when the principal holds one of its roles, or when
its ownership predicate holds for the resource being acted on. Each guarded
operation names its policy and calls ``authorize`` once, before doing work.
"""
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Optional

from app.core.exceptions import AuthorizationError

ROLE_CUSTOMER = "customer"
ROLE_PROVIDER = "provider"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    id: int
    roles: FrozenSet[str]

    def has_role(self, *roles: str) -> bool:
        return bool(self.roles.intersection(roles))


@dataclass(frozen=True)
class Policy:
    message: str
    roles: FrozenSet[str] = frozenset()
    owner: Optional[Callable[[Principal, Any], bool]] = None

    def allows(self, principal: Principal, resource: Any = None) -> bool:
        if principal.has_role(*self.roles):
            return True
        if self.owner is not None and resource is not None:
            return bool(self.owner(principal, resource))
        return False


def authorize(policy: Policy, principal: Principal, resource: Any = None) -> None:
    if not policy.allows(principal, resource):
        raise AuthorizationError(policy.message)


# Ownership predicates

def owns_service(principal: Principal, service) -> bool:
    return service.provider_id == principal.id


def owns_booking(principal: Principal, booking) -> bool:
    return booking.user_id == principal.id


def provides_booking(principal: Principal, booking) -> bool:
    return booking.service.provider_id == principal.id


def takes_part_in_booking(principal: Principal, booking) -> bool:
    return owns_booking(principal, booking) or provides_booking(principal, booking)


def wrote_review(principal: Principal, review) -> bool:
    return review.user_id == principal.id


def is_same_user(principal: Principal, user) -> bool:
    return user.id == principal.id


def owns_reviewed_service(principal: Principal, review) -> bool:
    return review.service.provider_id == principal.id


_ADMIN = frozenset({ROLE_ADMIN})

ADMIN_ONLY = Policy("Admin only", roles=_ADMIN)
PROVIDER_OR_ADMIN = Policy(
    "Only providers can perform this action",
    roles=frozenset({ROLE_PROVIDER, ROLE_ADMIN}),
)

MANAGE_USER = Policy("You don't have permission to manage this user", roles=_ADMIN, owner=is_same_user)

MANAGE_SERVICE = Policy("You can only manage your own services", roles=_ADMIN, owner=owns_service)
MANAGE_AVAILABILITY = Policy(
    "You can only manage availabilities for your own services", roles=_ADMIN, owner=owns_service
)

VIEW_BOOKING = Policy(
    "You don't have permission to view this booking", roles=_ADMIN, owner=takes_part_in_booking
)
BOOKING_OWNER = Policy("Only the booking owner can perform this action", roles=_ADMIN, owner=owns_booking)
BOOKING_PROVIDER = Policy(
    "Only the service provider can perform this action", roles=_ADMIN, owner=provides_booking
)

REVIEW_BOOKING = Policy("You can only review your own bookings", owner=owns_booking)
EDIT_REVIEW = Policy("You can only update your own reviews", owner=wrote_review)
REPLY_TO_REVIEW = Policy("Only the service owner can reply to reviews", owner=owns_reviewed_service)
MODERATE_REVIEWS = Policy("You don't have permission to moderate reviews", roles=_ADMIN)
