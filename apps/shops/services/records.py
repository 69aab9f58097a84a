"""
Canonical shop record.

The three shop stores name the same things differently. Everything above the
repository works with ``ShopRecord`` and ``ShopRef`` instead of model rows.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional

from django.utils.dateparse import parse_datetime

from apps.accounts.models import UserRole
from apps.shops.models import StoreTag, PaymentStatus, PaymentMode
from apps.shops.plans import get_plan

from .exceptions import ShopValidationError


HOLDING_STORE = 'holding'
LIVE_STORES = (StoreTag.LEGACY.value, StoreTag.ADMIN.value, StoreTag.AGENT.value)


class PaymentState(Enum):
    """Payment status as seen by the engine. UNSET only exists in the legacy store."""

    UNSET = 'UNSET'
    PENDING = 'PENDING'
    PAID = 'PAID'

    @classmethod
    def from_column(cls, value):
        if value in (None, ''):
            return cls.UNSET
        return cls(value)

    @property
    def is_visible(self):
        return self is not PaymentState.PENDING


@dataclass(frozen=True)
class ShopRef:
    """Identity of a shop: originating store plus the row id in that store."""

    store: str
    id: int

    def __str__(self):
        return f"{self.store}:{self.id}"

    @property
    def is_holding(self):
        return self.store == HOLDING_STORE

    @classmethod
    def parse(cls, store, shop_id):
        store = str(store).strip().lower()
        if store not in LIVE_STORES and store != HOLDING_STORE:
            raise ShopValidationError(f"Unknown shop store: {store}")
        try:
            shop_id = int(shop_id)
        except (TypeError, ValueError):
            raise ShopValidationError(f"Invalid shop id: {shop_id}")
        return cls(store=store, id=shop_id)


@dataclass
class ShopRecord:
    ref: ShopRef
    name: str
    category: str
    owner_name: str = ''
    mobile: str = ''
    email: str = ''
    address: str = ''
    area: str = ''
    city: str = ''
    pincode: str = ''
    district: str = ''
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: str = ''
    plan_type: str = ''
    payment_status: PaymentState = PaymentState.UNSET
    payment_mode: str = PaymentMode.NONE
    amount: int = 0
    receipt_no: str = ''
    created_at: Optional[datetime] = None
    last_payment_date: Optional[datetime] = None
    payment_expiry_date: Optional[datetime] = None
    visitor_count: int = 0
    rating: Optional[float] = None
    review_count: int = 0
    priority_rank: Optional[int] = None
    agent_id: Optional[int] = None
    agent_commission: int = 0
    category_id: Optional[int] = None
    extra: dict = field(default_factory=dict)

    @property
    def is_paid(self):
        return self.payment_status is PaymentState.PAID

    @property
    def is_visible(self):
        return self.payment_status.is_visible

    @property
    def plan(self):
        return get_plan(self.plan_type)

    @property
    def effective_priority(self) -> int:
        if self.priority_rank is not None:
            return self.priority_rank
        return self.plan.priority_rank

    def to_snapshot(self) -> dict:
        """JSON-safe copy of the record, kept by the holding area."""
        data = asdict(self)
        data['ref'] = {'store': self.ref.store, 'id': self.ref.id}
        data['payment_status'] = self.payment_status.value
        for key in ('created_at', 'last_payment_date', 'payment_expiry_date'):
            value = data[key]
            data[key] = value.isoformat() if value else None
        return data

    @classmethod
    def from_snapshot(cls, data: dict) -> 'ShopRecord':
        data = dict(data)
        ref = data.pop('ref')
        data['ref'] = ShopRef(store=ref['store'], id=ref['id'])
        data['payment_status'] = PaymentState.from_column(data.get('payment_status'))
        for key in ('created_at', 'last_payment_date', 'payment_expiry_date'):
            if data.get(key):
                data[key] = parse_datetime(data[key])
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in data.items() if k in known})


def _rating(value):
    return float(value) if value is not None else None


def from_legacy(shop) -> ShopRecord:
    return ShopRecord(
        ref=ShopRef(StoreTag.LEGACY.value, shop.pk),
        name=shop.name,
        category=shop.category,
        address=shop.address,
        area=shop.area,
        district=shop.district,
        latitude=shop.latitude,
        longitude=shop.longitude,
        image_url=shop.image_url,
        plan_type=shop.plan_type,
        payment_status=PaymentState.from_column(shop.payment_status),
        amount=shop.plan_amount or 0,
        created_at=shop.created_at,
        last_payment_date=shop.last_payment_date,
        payment_expiry_date=shop.payment_expiry_date,
        visitor_count=shop.visitor_count,
        extra={'icon_url': shop.icon_url} if shop.icon_url else {},
    )


def _admin_extra(shop):
    extra = {}
    if shop.icon_url:
        extra['icon_url'] = shop.icon_url
    if shop.created_by_admin_id:
        extra['created_by_admin_id'] = str(shop.created_by_admin_id)
    return extra


def from_admin(shop) -> ShopRecord:
    return ShopRecord(
        ref=ShopRef(StoreTag.ADMIN.value, shop.pk),
        name=shop.shop_name,
        category=shop.category,
        category_id=shop.category_ref_id,
        owner_name=shop.owner_name,
        mobile=shop.mobile,
        address=shop.full_address,
        area=shop.area,
        city=shop.city,
        pincode=shop.pincode,
        district=shop.district,
        latitude=shop.latitude,
        longitude=shop.longitude,
        image_url=shop.photo_url,
        plan_type=shop.plan_type,
        payment_status=PaymentState.from_column(shop.payment_status),
        payment_mode=shop.payment_mode,
        amount=shop.plan_amount,
        receipt_no=shop.receipt_no,
        created_at=shop.created_at,
        last_payment_date=shop.last_payment_date,
        payment_expiry_date=shop.payment_expiry_date,
        visitor_count=shop.visitor_count,
        rating=_rating(shop.rating),
        review_count=shop.review_count,
        priority_rank=shop.priority_rank,
        extra=_admin_extra(shop),
    )


def from_agent(shop) -> ShopRecord:
    return ShopRecord(
        ref=ShopRef(StoreTag.AGENT.value, shop.pk),
        name=shop.shop_name,
        category=shop.category,
        owner_name=shop.owner_name,
        mobile=shop.mobile,
        email=shop.email,
        address=shop.address,
        area=shop.area,
        city=shop.city,
        pincode=shop.pincode,
        district=shop.district,
        latitude=shop.latitude,
        longitude=shop.longitude,
        image_url=shop.photo_url,
        plan_type=shop.plan_type,
        payment_status=PaymentState.from_column(shop.payment_status),
        payment_mode=shop.payment_mode,
        amount=shop.amount,
        receipt_no=shop.receipt_no,
        created_at=shop.created_at,
        last_payment_date=shop.last_payment_date,
        payment_expiry_date=shop.payment_expiry_date,
        visitor_count=shop.visitor_count,
        rating=_rating(shop.rating),
        review_count=shop.review_count,
        priority_rank=shop.priority_rank,
        agent_id=shop.agent_id,
        agent_commission=shop.agent_commission,
    )


NORMALIZERS = {
    StoreTag.LEGACY.value: from_legacy,
    StoreTag.ADMIN.value: from_admin,
    StoreTag.AGENT.value: from_agent,
}


@dataclass(frozen=True)
class PaymentInfo:
    """
    Operator-asserted payment. Nothing here is verified against a gateway.

    Empty ``amount`` means the plan price; empty ``plan_type`` keeps the
    shop's current plan (BASIC if it has none).
    """

    mode: str = PaymentMode.CASH
    receipt_no: str = ''
    amount: Optional[int] = None
    plan_type: Optional[str] = None
    district: Optional[str] = None


@dataclass(frozen=True)
class Actor:
    """
    Verified caller identity handed to write operations.

    Authentication happens upstream; the engine only trusts what it is given.
    """

    actor_id: Optional[str] = None
    role: str = UserRole.ADMIN
    agent_id: Optional[int] = None

    @property
    def is_agent(self):
        return self.role == UserRole.AGENT

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user) -> 'Actor':
        role = UserRole.ADMIN if user.is_admin else user.role
        return cls(actor_id=str(user.pk), role=role, agent_id=user.agent_id)


SYSTEM_ACTOR = Actor(actor_id=None, role=UserRole.ADMIN)


def payment_status_column(state: PaymentState):
    """Inverse of ``PaymentState.from_column``."""
    if state is PaymentState.UNSET:
        return None
    return PaymentStatus(state.value)
