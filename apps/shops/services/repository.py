"""
Shop repository.

One interface over the legacy, admin and agent shop stores. Reads normalize
rows into ``ShopRecord`` and degrade to the stores that answered; writes
raise.

Cross-store sibling matching is heuristic. The stores carry no foreign key
to one another, so the same physical shop registered by an agent and again
in the back office is found by name, owner and mobile, then name and owner,
then name alone. A name-only match can pick the wrong shop when two shops
share a name; callers treat the sibling as best effort.
"""

import logging
import operator
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from functools import reduce
from typing import Dict, Iterable, List, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.shops.geo import distance_km, has_coordinates
from apps.shops.models import (
    AdminShop,
    AgentShop,
    Category,
    LegacyShop,
    PaymentMode,
    PaymentStatus,
    StoreTag,
)
from apps.shops.plans import PLAN_ALIASES, PLAN_CATALOG, commission, get_plan, parse_plan

from .exceptions import InvalidStateError, ShopNotFoundError, ShopValidationError
from .records import (
    LIVE_STORES,
    NORMALIZERS,
    PaymentInfo,
    PaymentState,
    ShopRecord,
    ShopRef,
    payment_status_column,
)

logger = logging.getLogger(__name__)


STORE_MODELS = {
    StoreTag.LEGACY.value: LegacyShop,
    StoreTag.ADMIN.value: AdminShop,
    StoreTag.AGENT.value: AgentShop,
}


class PaymentFilter(Enum):
    VISIBLE = 'visible'
    PAID = 'paid'
    PENDING = 'pending'
    ANY = 'any'


@dataclass
class NearestShop:
    distance: float
    popularity: int


@dataclass
class SiblingUpdate:
    record: ShopRecord
    previous_status: PaymentState


@dataclass
class PaymentUpdate:
    """Outcome of stamping a shop PAID, including its cross-store sibling."""

    record: ShopRecord
    previous_status: PaymentState
    sibling: Optional[SiblingUpdate] = None
    sibling_error: Optional[str] = None


@dataclass
class PlanUpdate:
    record: ShopRecord
    previous_plan: str
    sibling: Optional[ShopRecord] = None
    sibling_error: Optional[str] = None


def validity_period() -> timedelta:
    return timedelta(days=settings.SHOP_PAYMENT_VALIDITY_DAYS)


def payment_q(payment_filter: PaymentFilter) -> Q:
    """
    Payment-visibility predicate.

    VISIBLE is PAID or no status at all; only legacy rows can have no status.
    """
    if payment_filter is PaymentFilter.VISIBLE:
        return Q(payment_status=PaymentStatus.PAID) | Q(payment_status__isnull=True)
    if payment_filter is PaymentFilter.PAID:
        return Q(payment_status=PaymentStatus.PAID)
    if payment_filter is PaymentFilter.PENDING:
        return Q(payment_status=PaymentStatus.PENDING)
    return Q()


def _category_q(store, category) -> Q:
    if isinstance(category, Category):
        q = Q(category__iexact=category.name)
        if store == StoreTag.ADMIN:
            q |= Q(category_ref=category)
        return q
    return Q(category__iexact=str(category).strip())


def _query_store(store, q: Q) -> List[ShopRecord]:
    normalize = NORMALIZERS[store]
    return [normalize(row) for row in STORE_MODELS[store].objects.filter(q).order_by('pk')]


def _gather(q_for_store) -> List[ShopRecord]:
    """Union of all stores; a store that fails is logged and left out."""
    records = []
    for store in LIVE_STORES:
        try:
            records.extend(_query_store(store, q_for_store(store)))
        except DatabaseError:
            logger.warning(f"Shop store '{store}' failed to answer, continuing without it", exc_info=True)
    return records


# =============================================================================
# READS
# =============================================================================

def find_by_category(
    *,
    category,
    payment_filter: PaymentFilter = PaymentFilter.VISIBLE
) -> List[ShopRecord]:
    """
    All shops in a category across the three stores.

    Args:
        category: ``Category`` instance or a category name (case-insensitive)
        payment_filter: Which payment states to include

    Returns:
        Normalized records tagged with their origin store
    """
    pq = payment_q(payment_filter)
    return _gather(lambda store: pq & _category_q(store, category))


def find_nearest_per_category(*, latitude, longitude) -> Dict[str, NearestShop]:
    """
    Closest visible shop for every active category, in one pass.

    Shops without coordinates are ignored. A category with no located shop
    maps to distance 0 and popularity 0.
    """
    categories = list(Category.objects.filter(is_active=True))
    result = {c.slug: NearestShop(distance=0.0, popularity=0) for c in categories}
    if not categories:
        return result

    by_name = {c.name.lower(): c.slug for c in categories}
    by_id = {c.pk: c.slug for c in categories}
    located = (
        Q(latitude__isnull=False) & ~Q(latitude=0)
        & Q(longitude__isnull=False) & ~Q(longitude=0)
    )

    pq = payment_q(PaymentFilter.VISIBLE) & located
    best = {}
    for record in _gather(lambda store: pq):
        slug = by_id.get(record.category_id) or by_name.get((record.category or '').lower())
        if slug is None or not has_coordinates(record.latitude, record.longitude):
            continue
        distance = distance_km(latitude, longitude, record.latitude, record.longitude)
        current = best.get(slug)
        if current is None or distance < current.distance:
            best[slug] = NearestShop(distance=distance, popularity=record.visitor_count)

    result.update(best)
    return result


def find_expired(*, store, now) -> List[ShopRecord]:
    """PAID shops in one store whose paid window ended before ``now``."""
    q = payment_q(PaymentFilter.PAID) & Q(payment_expiry_date__lt=now)
    return _query_store(store, q)


def find_owned_by_agent(*, agent_id, payment_filter: PaymentFilter = PaymentFilter.ANY) -> List[ShopRecord]:
    return _query_store(StoreTag.AGENT.value, payment_q(payment_filter) & Q(agent_id=agent_id))


def _plan_codes_for_slot(slot) -> List[str]:
    codes = [str(plan.code) for plan in PLAN_CATALOG.values() if plan.can_occupy(slot)]
    return codes + [alias for alias, code in PLAN_ALIASES.items() if code in codes]


def find_by_slot(slot) -> List[ShopRecord]:
    """
    Visible shops whose plan may occupy a display slot.

    Eligibility is read from the plan, so agent-store shops (which carry no
    slot flags) are found the same way as admin-store ones. Unordered.
    """
    codes = _plan_codes_for_slot(slot)
    if not codes:
        return []
    plan_q = reduce(operator.or_, (Q(plan_type__iexact=code) for code in codes))
    pq = payment_q(PaymentFilter.VISIBLE) & plan_q
    return _gather(lambda store: pq)


def get(ref: ShopRef) -> ShopRecord:
    model = _model_for(ref)
    try:
        row = model.objects.get(pk=ref.id)
    except model.DoesNotExist:
        raise ShopNotFoundError(f"Shop {ref} not found")
    return NORMALIZERS[ref.store](row)


def get_many(refs: Iterable[ShopRef]) -> List[ShopRecord]:
    """Existing records among ``refs``; refs that no longer resolve are skipped."""
    ids_by_store = {}
    for ref in refs:
        _model_for(ref)
        ids_by_store.setdefault(ref.store, []).append(ref.id)

    records = []
    for store, ids in ids_by_store.items():
        model = STORE_MODELS[store]
        records.extend(NORMALIZERS[store](row) for row in model.objects.filter(pk__in=ids))
    return records


def lock(ref: ShopRef):
    """Row for ``ref`` locked for update. Must be called inside a transaction."""
    model = _model_for(ref)
    try:
        return model.objects.select_for_update().get(pk=ref.id)
    except model.DoesNotExist:
        raise ShopNotFoundError(f"Shop {ref} not found")


def _model_for(ref: ShopRef):
    try:
        return STORE_MODELS[ref.store]
    except KeyError:
        raise ShopValidationError(f"Store '{ref.store}' does not hold live shops")


# =============================================================================
# WRITES
# =============================================================================

def _columns(store, record: ShopRecord) -> dict:
    """Map a canonical record onto one store's column names."""
    status = payment_status_column(record.payment_status)

    if store == StoreTag.LEGACY:
        return {
            'name': record.name,
            'category': record.category,
            'image_url': record.image_url,
            'icon_url': record.extra.get('icon_url', ''),
            'latitude': record.latitude,
            'longitude': record.longitude,
            'area': record.area,
            'address': record.address,
            'district': record.district,
            'payment_status': status,
            'plan_type': record.plan_type or '',
            'plan_amount': record.amount or None,
            'last_payment_date': record.last_payment_date,
            'payment_expiry_date': record.payment_expiry_date,
            'visitor_count': record.visitor_count,
            'created_at': record.created_at or timezone.now(),
        }

    plan = get_plan(record.plan_type)
    common = {
        'shop_name': record.name,
        'owner_name': record.owner_name,
        'category': record.category,
        'mobile': record.mobile,
        'area': record.area,
        'city': record.city,
        'pincode': record.pincode,
        'district': record.district,
        'latitude': record.latitude,
        'longitude': record.longitude,
        'photo_url': record.image_url,
        'payment_status': status or PaymentStatus.PENDING,
        'payment_mode': record.payment_mode or PaymentMode.NONE,
        'receipt_no': record.receipt_no,
        'last_payment_date': record.last_payment_date,
        'payment_expiry_date': record.payment_expiry_date,
        'plan_type': plan.code,
        'priority_rank': record.priority_rank,
        'visitor_count': record.visitor_count,
        'rating': record.rating,
        'review_count': record.review_count,
        'created_at': record.created_at or timezone.now(),
    }

    if store == StoreTag.ADMIN:
        common.update({
            'full_address': record.address,
            'category_ref_id': record.category_id,
            'icon_url': record.extra.get('icon_url', ''),
            'plan_amount': record.amount or plan.price,
            'plan_start_date': record.last_payment_date,
            'plan_end_date': record.payment_expiry_date,
            'created_by_admin_id': record.extra.get('created_by_admin_id'),
            **plan.slot_flags(),
        })
        return common

    common.update({
        'address': record.address,
        'email': record.email,
        'agent_id': record.agent_id,
        'amount': record.amount or plan.price,
        'agent_commission': record.agent_commission,
    })
    return common


def create(*, store, record: ShopRecord) -> ShopRecord:
    """Insert ``record`` into ``store`` and return it with its new identity."""
    model = STORE_MODELS[store]
    row = model.objects.create(**_columns(store, record))
    return NORMALIZERS[store](row)


def _apply_payment(store, row, *, payment: PaymentInfo, plan, amount, now):
    expiry = now + validity_period()
    row.payment_status = PaymentStatus.PAID
    row.last_payment_date = now
    row.payment_expiry_date = expiry
    row.plan_type = plan.code
    if payment.district:
        row.district = payment.district

    if store == StoreTag.LEGACY:
        row.plan_amount = amount
        return

    row.payment_mode = payment.mode
    row.receipt_no = payment.receipt_no

    if store == StoreTag.ADMIN:
        row.plan_amount = amount
        row.plan_start_date = now
        row.plan_end_date = expiry
        _set_slot_flags(row, plan)
    else:
        row.amount = amount
        row.agent_commission = commission(plan.code, amount)


def default_receipt_no(now) -> str:
    return f"REC{int(now.timestamp() * 1000)}"


def resolve_payment(record: ShopRecord, payment: PaymentInfo):
    """Plan and amount a payment applies to."""
    plan = parse_plan(payment.plan_type or record.plan_type)
    amount = payment.amount if payment.amount not in (None, '') else plan.price
    try:
        amount = int(amount)
    except (TypeError, ValueError):
        raise ShopValidationError(f"Invalid amount: {payment.amount}")
    if amount < 0:
        raise ShopValidationError("Amount cannot be negative")
    return plan, amount


@transaction.atomic
def update_payment_status(ref: ShopRef, *, payment: PaymentInfo, now=None) -> PaymentUpdate:
    """
    Mark a live shop PAID and stamp its paid window.

    Sets ``last_payment_date = now`` and ``payment_expiry_date = now +
    SHOP_PAYMENT_VALIDITY_DAYS``, then propagates the same stamps to the
    sibling record in the other store if one matches. The sibling write runs
    in its own savepoint: its failure is logged and reported on the result,
    the primary write stands.

    Args:
        ref: Shop to update
        payment: Mode, receipt, amount, plan, district override
        now: Payment instant (defaults to current time)

    Returns:
        PaymentUpdate with the updated record and sibling outcome

    Raises:
        ShopNotFoundError: If the shop doesn't exist
        InvalidStateError: If the shop is already PAID
        ShopValidationError: If plan or amount are malformed
    """
    now = now or timezone.now()
    row = lock(ref)
    current = NORMALIZERS[ref.store](row)
    if current.is_paid:
        raise InvalidStateError(f"Shop {ref} is already PAID")

    plan, amount = resolve_payment(current, payment)
    payment = PaymentInfo(
        mode=payment.mode or PaymentMode.CASH,
        receipt_no=payment.receipt_no or default_receipt_no(now),
        amount=amount,
        plan_type=plan.code,
        district=payment.district,
    )
    _apply_payment(ref.store, row, payment=payment, plan=plan, amount=amount, now=now)
    row.save()
    record = NORMALIZERS[ref.store](row)
    result = PaymentUpdate(record=record, previous_status=current.payment_status)

    try:
        with transaction.atomic():
            sibling_row = find_sibling(record, for_update=True)
            if sibling_row is not None:
                sibling_store = _store_of(sibling_row)
                previous = PaymentState.from_column(sibling_row.payment_status)
                _apply_payment(sibling_store, sibling_row, payment=payment, plan=plan, amount=amount, now=now)
                sibling_row.save()
                result.sibling = SiblingUpdate(
                    record=NORMALIZERS[sibling_store](sibling_row),
                    previous_status=previous,
                )
    except DatabaseError as e:
        logger.error(f"Failed to propagate payment of {ref} to its sibling record", exc_info=True)
        result.sibling_error = str(e)

    return result


def _set_slot_flags(row, plan):
    for flag, value in plan.slot_flags().items():
        setattr(row, flag, value)


def _apply_plan(store, row, plan):
    row.plan_type = plan.code
    if store == StoreTag.LEGACY:
        row.plan_amount = plan.price
        return

    row.priority_rank = plan.priority_rank
    if store == StoreTag.ADMIN:
        row.plan_amount = plan.price
        _set_slot_flags(row, plan)
    elif row.payment_status != PaymentStatus.PAID:
        # A paid amount stays what was collected
        row.amount = plan.price
        row.agent_commission = commission(plan.code, plan.price)


@transaction.atomic
def update_plan(ref: ShopRef, *, plan) -> PlanUpdate:
    """
    Move a live shop to another plan.

    Re-derives the listing priority, the plan amount and (admin store) the
    slot flags from the catalog, then applies the same plan to the sibling
    record in the other store. Payment status and the paid window are left
    alone. As with payments, a failed sibling write is logged and reported.

    Raises:
        ShopNotFoundError: If the shop doesn't exist
    """
    row = lock(ref)
    previous = NORMALIZERS[ref.store](row).plan_type
    _apply_plan(ref.store, row, plan)
    row.save()
    result = PlanUpdate(record=NORMALIZERS[ref.store](row), previous_plan=previous)

    try:
        with transaction.atomic():
            sibling_row = find_sibling(result.record, for_update=True)
            if sibling_row is not None:
                sibling_store = _store_of(sibling_row)
                _apply_plan(sibling_store, sibling_row, plan)
                sibling_row.save()
                result.sibling = NORMALIZERS[sibling_store](sibling_row)
    except DatabaseError as e:
        logger.error(f"Failed to propagate plan change of {ref} to its sibling record", exc_info=True)
        result.sibling_error = str(e)

    return result


def _store_of(row):
    for store, model in STORE_MODELS.items():
        if isinstance(row, model):
            return store
    raise ShopValidationError(f"Not a shop row: {row!r}")


def find_sibling(record: ShopRecord, *, for_update: bool = False):
    """
    Row for the same shop in the other store, if any.

    Agent-store shops are mirrored in the admin store; admin and legacy
    shops are mirrored in the agent store.
    """
    store = StoreTag.ADMIN.value if record.ref.store == StoreTag.AGENT else StoreTag.AGENT.value
    qs = STORE_MODELS[store].objects.all()
    if for_update:
        qs = qs.select_for_update()

    name = (record.name or '').strip()
    if not name:
        return None

    attempts = []
    if record.owner_name and record.mobile:
        attempts.append({'owner_name': record.owner_name, 'mobile': record.mobile})
    if record.owner_name:
        attempts.append({'owner_name': record.owner_name})
    attempts.append({})

    for extra in attempts:
        row = qs.filter(shop_name__iexact=name, **extra).order_by('pk').first()
        if row is not None:
            return row
    return None


def delete(ref: ShopRef) -> bool:
    """Hard delete. Ledger deductions are the caller's job."""
    deleted, _ = _model_for(ref).objects.filter(pk=ref.id).delete()
    return deleted > 0


def delete_many(refs: Iterable[ShopRef]) -> int:
    ids_by_store = {}
    for ref in refs:
        _model_for(ref)
        ids_by_store.setdefault(ref.store, []).append(ref.id)

    count = 0
    for store, ids in ids_by_store.items():
        deleted, _ = STORE_MODELS[store].objects.filter(pk__in=ids).delete()
        count += deleted
    return count


def all_refs(payment_filter: PaymentFilter = PaymentFilter.ANY) -> List[ShopRef]:
    """References of every live shop. Raises if any store fails."""
    refs = []
    q = payment_q(payment_filter)
    for store in LIVE_STORES:
        ids = STORE_MODELS[store].objects.filter(q).values_list('pk', flat=True)
        refs.extend(ShopRef(store, pk) for pk in ids)
    return refs


def delete_all() -> Dict[str, int]:
    """Hard delete every live shop in every store."""
    counts = {}
    for store in LIVE_STORES:
        deleted, _ = STORE_MODELS[store].objects.all().delete()
        counts[store] = deleted
    return counts


def record_visit(ref: ShopRef) -> int:
    """Atomically bump the visitor counter; returns the new count."""
    model = _model_for(ref)
    updated = model.objects.filter(pk=ref.id).update(visitor_count=F('visitor_count') + 1)
    if not updated:
        raise ShopNotFoundError(f"Shop {ref} not found")
    return model.objects.values_list('visitor_count', flat=True).get(pk=ref.id)

