"""
Plan catalog.

Single source of truth for plan pricing, listing priority, commission
rate and the display surfaces a plan may occupy. Listing, lifecycle and
ledger code read from here; nothing else hardcodes plan values.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.conf import settings
from django.db import models


class PlanType(models.TextChoices):
    BASIC = 'BASIC', 'Basic Plan'
    PREMIUM = 'PREMIUM', 'Premium Plan'
    FEATURED = 'FEATURED', 'Featured Plan'
    LEFT_BAR = 'LEFT_BAR', 'Left Bar Plan'
    RIGHT_BAR = 'RIGHT_BAR', 'Right Bar Plan'
    BANNER = 'BANNER', 'Banner Plan'
    HERO = 'HERO', 'Hero Plan'


class Slot(models.TextChoices):
    HOME_BANNER = 'HOME_BANNER', 'Home page banner'
    TOP_SLIDER = 'TOP_SLIDER', 'Top slider'
    LEFT_RAIL = 'LEFT_RAIL', 'Left rail'
    RIGHT_RAIL = 'RIGHT_RAIL', 'Right rail'
    HERO = 'HERO', 'Hero section'


@dataclass(frozen=True)
class Plan:
    code: str
    price: int
    priority_rank: int
    eligible_slots: frozenset = field(default_factory=frozenset)
    # None means "use SHOP_DEFAULT_COMMISSION_RATE"
    commission_rate: Optional[Decimal] = None

    @property
    def name(self):
        return PlanType(self.code).label

    def can_occupy(self, slot):
        return slot in self.eligible_slots

    def slot_flags(self):
        """Boolean display flags as stored on admin-store shop rows."""
        return {
            'is_home_page_banner': Slot.HOME_BANNER in self.eligible_slots,
            'is_top_slider': Slot.TOP_SLIDER in self.eligible_slots,
            'is_left_bar': Slot.LEFT_RAIL in self.eligible_slots,
            'is_right_bar': Slot.RIGHT_RAIL in self.eligible_slots,
            'is_hero': Slot.HERO in self.eligible_slots,
        }


PLAN_CATALOG = {
    PlanType.BASIC: Plan(
        code=PlanType.BASIC,
        price=100,
        priority_rank=0,
    ),
    PlanType.PREMIUM: Plan(
        code=PlanType.PREMIUM,
        price=2999,
        priority_rank=10,
    ),
    PlanType.FEATURED: Plan(
        code=PlanType.FEATURED,
        price=2388,
        priority_rank=100,
        eligible_slots=frozenset({Slot.HOME_BANNER, Slot.TOP_SLIDER}),
    ),
    PlanType.LEFT_BAR: Plan(
        code=PlanType.LEFT_BAR,
        price=3588,
        priority_rank=30,
        eligible_slots=frozenset({Slot.LEFT_RAIL}),
    ),
    PlanType.RIGHT_BAR: Plan(
        code=PlanType.RIGHT_BAR,
        price=3588,
        priority_rank=30,
        eligible_slots=frozenset({Slot.RIGHT_RAIL}),
    ),
    PlanType.BANNER: Plan(
        code=PlanType.BANNER,
        price=4788,
        priority_rank=50,
        eligible_slots=frozenset({Slot.HOME_BANNER}),
    ),
    PlanType.HERO: Plan(
        code=PlanType.HERO,
        price=5988,
        priority_rank=200,
        eligible_slots=frozenset({Slot.HERO}),
    ),
}

# Spellings found in older records
PLAN_ALIASES = {
    'RIGHT_SIDE': PlanType.RIGHT_BAR,
}


def _normalize_code(code):
    if code is None:
        return ''
    code = str(code).strip().upper()
    return PLAN_ALIASES.get(code, code)


def is_known_plan(code) -> bool:
    return _normalize_code(code) in PLAN_CATALOG


def get_plan(code) -> Plan:
    """Look up a plan; unknown or empty codes fall back to BASIC."""
    return PLAN_CATALOG.get(_normalize_code(code), PLAN_CATALOG[PlanType.BASIC])


def parse_plan(code, *, default=PlanType.BASIC) -> Plan:
    """
    Strict lookup for values supplied by callers.

    Raises:
        ShopValidationError: If a non-empty code names no plan
    """
    from .services.exceptions import ShopValidationError

    if code in (None, ''):
        return PLAN_CATALOG[default]
    normalized = _normalize_code(code)
    if normalized not in PLAN_CATALOG:
        raise ShopValidationError(f"Unknown plan tier: {code}")
    return PLAN_CATALOG[normalized]


def parse_slot(value) -> Slot:
    """
    Display slot named by a caller, case-insensitive.

    Raises:
        ShopValidationError: If ``value`` names no display slot
    """
    from .services.exceptions import ShopValidationError

    try:
        return Slot(str(value or '').strip().upper())
    except ValueError:
        raise ShopValidationError(f"Unknown slot: {value}")


def commission_rate(code) -> Decimal:
    plan = get_plan(code)
    if plan.commission_rate is not None:
        return plan.commission_rate
    return Decimal(str(settings.SHOP_DEFAULT_COMMISSION_RATE))


def commission(code, amount) -> int:
    """Agent commission for a payment: round(amount * rate), halves rounded up."""
    raw = Decimal(int(amount or 0)) * commission_rate(code)
    return int(raw.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
