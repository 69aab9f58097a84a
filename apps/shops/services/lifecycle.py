"""
Shop payment lifecycle.

    PENDING --mark_paid--> PAID --sweep_expired--> holding --renew--> PAID

A renewed shop is an ordinary PAID shop again; nothing marks it as renewed
apart from its ``RenewalPayment`` row.

Every money-moving call commits the shop transition first and applies ledger
side effects afterwards. A failed ledger write is logged and queued as a
``ReconciliationTask``; it never undoes the transition.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from apps.ledger.models import Agent
from apps.ledger.services import (
    CommissionEvent,
    DeductionResult,
    LedgerServiceError,
    apply_payment_event,
    credit_agent,
    debit_agent,
    deduct_for_records,
    enqueue_agent_recompute,
)
from apps.shops.models import (
    Category,
    PaymentMode,
    RenewalPayment,
    RenewShop,
    StoreTag,
    latitude_validators,
    longitude_validators,
    mobile_validator,
    pincode_validator,
)
from apps.shops.plans import commission, parse_plan

from . import repository
from .exceptions import (
    InvalidStateError,
    RenewalCandidateNotFoundError,
    ShopsServiceError,
    ShopValidationError,
    UnauthorizedActionError,
)
from .notifications import PaymentConfirmation, send_payment_confirmation
from .records import (
    SYSTEM_ACTOR,
    Actor,
    PaymentInfo,
    PaymentState,
    ShopRecord,
    ShopRef,
)

logger = logging.getLogger(__name__)


@dataclass
class BatchError:
    ref: str
    error: str


@dataclass
class BatchResult:
    """Outcome of a batch operation; partial failure is reported, not raised."""

    moved_count: int = 0
    errors: List[BatchError] = field(default_factory=list)

    @property
    def partial_failure(self):
        return bool(self.errors)


@dataclass
class BulkDeleteResult:
    deleted_count: int
    missing: List[str]
    deduction: DeductionResult


@dataclass
class ExpiryStats:
    expired_live: int
    in_holding: int
    expiring_soon: int


# =============================================================================
# CREATE
# =============================================================================

def _validate(field_name, value, validators):
    try:
        for validator in validators:
            validator(value)
    except DjangoValidationError as e:
        raise ShopValidationError(f"{field_name}: {'; '.join(e.messages)}")


def _coordinate(name, value, validators):
    if value in (None, ''):
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ShopValidationError(f"{name}: must be a number")
    _validate(name, value, validators)
    return value


def create_shop(*, data: dict, actor: Actor = SYSTEM_ACTOR, store: Optional[str] = None) -> ShopRecord:
    """
    Register a new shop in state PENDING.

    Agents always create in the agent store under their own agent. Admins
    create in the admin store unless they pass ``store='agent'`` together
    with an ``agent_id``. No commission and no revenue are recorded until
    the shop is paid.

    Args:
        data: Canonical field values (name, owner_name, category, mobile,
            address, area, city, pincode, district, latitude, longitude,
            image_url, plan_type, amount, email)
        actor: Verified caller
        store: Target store for admin callers

    Returns:
        The created ShopRecord

    Raises:
        ShopValidationError: If required fields are missing or malformed
        UnauthorizedActionError: If an agent actor has no linked agent
    """
    name = (data.get('name') or '').strip()
    category = (data.get('category') or '').strip()
    if not name:
        raise ShopValidationError("name: This field is required")
    if not category:
        raise ShopValidationError("category: This field is required")

    if actor.is_agent:
        if actor.agent_id is None:
            raise UnauthorizedActionError("Agent account is not linked to an agent")
        store, agent_id = StoreTag.AGENT.value, actor.agent_id
    else:
        store = (store or StoreTag.ADMIN.value).lower()
        agent_id = data.get('agent_id')
        if store not in (StoreTag.ADMIN, StoreTag.AGENT):
            raise ShopValidationError(f"New shops cannot be created in the '{store}' store")
        if store == StoreTag.AGENT and not agent_id:
            raise ShopValidationError("agent_id: Required for agent-store shops")
        if agent_id and not Agent.objects.filter(pk=agent_id).exists():
            raise ShopValidationError(f"agent_id: Agent {agent_id} does not exist")

    pincode = (data.get('pincode') or '').strip()
    mobile = (data.get('mobile') or '').strip()
    if pincode:
        _validate('pincode', pincode, [pincode_validator])
    if mobile:
        _validate('mobile', mobile, [mobile_validator])
    if store == StoreTag.AGENT and not (pincode and mobile):
        raise ShopValidationError("Agent-store shops need a mobile number and pincode")

    plan = parse_plan(data.get('plan_type'))
    amount = data.get('amount')
    try:
        amount = int(amount) if amount not in (None, '') else plan.price
    except (TypeError, ValueError):
        raise ShopValidationError(f"amount: Invalid amount {amount}")
    category_ref = Category.objects.filter(name__iexact=category).first()

    record = ShopRecord(
        ref=ShopRef(store, 0),
        name=name,
        category=category_ref.name if category_ref else category,
        category_id=category_ref.pk if category_ref else None,
        owner_name=(data.get('owner_name') or '').strip(),
        mobile=mobile,
        email=data.get('email') or '',
        address=data.get('address') or '',
        area=data.get('area') or '',
        city=data.get('city') or '',
        pincode=pincode,
        district=(data.get('district') or '').strip(),
        latitude=_coordinate('latitude', data.get('latitude'), latitude_validators),
        longitude=_coordinate('longitude', data.get('longitude'), longitude_validators),
        image_url=data.get('image_url') or '',
        plan_type=plan.code,
        payment_status=PaymentState.PENDING,
        payment_mode=PaymentMode.NONE,
        amount=amount,
        created_at=timezone.now(),
        agent_id=agent_id if store == StoreTag.AGENT else None,
        extra={'created_by_admin_id': actor.actor_id} if store == StoreTag.ADMIN and actor.actor_id else {},
    )
    created = repository.create(store=store, record=record)
    logger.info(f"Created shop {created.ref} '{created.name}' (PENDING, plan {plan.code})")

    if created.agent_id:
        _credit_shop_count(created.agent_id, reason=f"shop count for {created.ref}")
    return created


def _credit_shop_count(agent_id, *, reason):
    try:
        credit_agent(agent_id=agent_id, shops=1)
    except (DatabaseError, LedgerServiceError):
        logger.error(f"Agent {agent_id} shop count update failed", exc_info=True)
        _queue_recompute(agent_id, reason)


def _queue_recompute(agent_id, reason):
    try:
        enqueue_agent_recompute(agent_id=agent_id, reason=reason)
    except DatabaseError:
        logger.critical(f"Could not queue recompute for agent {agent_id}", exc_info=True)


# =============================================================================
# MARK PAID
# =============================================================================

def _check_owner(actor: Actor, agent_id, what):
    if actor.is_agent and (actor.agent_id is None or actor.agent_id != agent_id):
        raise UnauthorizedActionError(f"Agent {actor.agent_id} does not own {what}")


def mark_paid(
    *,
    ref: ShopRef,
    payment: PaymentInfo,
    actor: Actor = SYSTEM_ACTOR,
    now=None
) -> ShopRecord:
    """
    Record a payment for a PENDING (or legacy unset) shop.

    The shop and its cross-store sibling are stamped PAID first. Then the
    owning agent is credited ``commission(plan, amount)``, the district
    revenue for the payment day is credited, and the owner is notified.
    Holding-area refs are renewals and are handed to ``renew``.

    Args:
        ref: Shop to mark paid
        payment: Operator-asserted payment details
        actor: Verified caller; agents may only mark their own shops
        now: Payment instant (defaults to current time)

    Returns:
        The updated ShopRecord

    Raises:
        ShopNotFoundError: If the shop doesn't exist
        InvalidStateError: If the shop is already PAID
        UnauthorizedActionError: If an agent marks a shop it doesn't own
        ShopValidationError: If plan or amount are malformed
    """
    if ref.is_holding:
        return renew(candidate_id=ref.id, payment=payment, actor=actor, now=now)

    now = now or timezone.now()
    if actor.is_agent:
        _check_owner(actor, repository.get(ref).agent_id, f"shop {ref}")

    update = repository.update_payment_status(ref, payment=payment, now=now)
    record = update.record

    # Commission goes to the agent-store record that just became PAID
    owner = None
    if record.ref.store == StoreTag.AGENT:
        owner = record
    elif (
        update.sibling is not None
        and update.sibling.record.ref.store == StoreTag.AGENT
        and update.sibling.previous_status is not PaymentState.PAID
    ):
        owner = update.sibling.record

    agent_id = owner.agent_id if owner else None
    earned = commission(record.plan_type, record.amount) if agent_id else 0

    logger.info(
        f"Shop {ref} marked PAID: plan {record.plan_type}, amount {record.amount}, "
        f"commission {earned} to agent {agent_id}, expires {record.payment_expiry_date:%Y-%m-%d}"
    )

    apply_payment_event(CommissionEvent(
        shop=str(ref),
        plan=record.plan_type,
        amount=record.amount,
        commission=earned,
        district=record.district,
        paid_at=now,
        agent_id=agent_id,
    ))
    _notify(record, agent_id=agent_id)
    return record


def _notice_agent(agent_id) -> Optional[Agent]:
    if not agent_id:
        return None
    try:
        return Agent.objects.filter(pk=agent_id).first()
    except DatabaseError:
        logger.error(f"Agent {agent_id} lookup for payment confirmation failed", exc_info=True)
        return None


def _notify(record: ShopRecord, *, agent_id=None, renewal=False):
    agent = _notice_agent(agent_id)
    send_payment_confirmation(PaymentConfirmation(
        mobile=record.mobile,
        shop_name=record.name,
        owner_name=record.owner_name,
        amount=record.amount,
        receipt_no=record.receipt_no,
        payment_date=record.last_payment_date,
        payment_mode=record.payment_mode,
        plan_type=record.plan_type,
        expiry_date=record.payment_expiry_date,
        category=record.category,
        address=record.address,
        agent_name=agent.name if agent else '',
        agent_code=agent.agent_code if agent else '',
        renewal=renewal,
    ))


# =============================================================================
# PLAN CHANGE
# =============================================================================

def change_plan(*, ref: ShopRef, plan_type, actor: Actor = SYSTEM_ACTOR) -> repository.PlanUpdate:
    """
    Move a live shop, and its sibling in the other store, to another plan.

    Priority rank, plan amount and display slots follow the new plan. The
    payment state and the ledgers are untouched; the new price is charged
    at the next payment.

    Raises:
        UnauthorizedActionError: If actor is not an admin
        ShopValidationError: If plan_type is missing or unknown
        ShopNotFoundError: If the shop doesn't exist
    """
    _require_admin(actor, "change shop plans")
    if plan_type in (None, ''):
        raise ShopValidationError("plan_type is required")
    plan = parse_plan(plan_type)

    update = repository.update_plan(ref, plan=plan)
    logger.info(
        f"Shop {ref} plan {update.previous_plan} -> {plan.code}"
        + (f", sibling {update.sibling.ref}" if update.sibling else "")
    )
    return update


# =============================================================================
# EXPIRY SWEEP
# =============================================================================

# Back-office and legacy shops first, so an expired agent-store sibling is
# carried along with them instead of being held on its own.
SWEEP_ORDER = (StoreTag.ADMIN.value, StoreTag.LEGACY.value, StoreTag.AGENT.value)


def _is_expired(record: ShopRecord, now) -> bool:
    return (
        record.is_paid
        and record.payment_expiry_date is not None
        and record.payment_expiry_date < now
    )


def _holding_row(record: ShopRecord, agent_record: Optional[ShopRecord], now) -> RenewShop:
    owned = agent_record or (record if record.ref.store == StoreTag.AGENT else None)
    term_commission = 0
    if owned is not None and owned.agent_id:
        term_commission = owned.agent_commission or commission(owned.plan_type, owned.amount)

    return RenewShop(
        shop_name=record.name,
        owner_name=record.owner_name,
        mobile=record.mobile,
        category=record.category,
        pincode=record.pincode,
        address=record.address,
        district=record.district,
        photo_url=record.image_url,
        latitude=record.latitude,
        longitude=record.longitude,
        original_store=record.ref.store,
        original_id=record.ref.id,
        original_agent_shop_id=owned.ref.id if owned else None,
        agent_id=owned.agent_id if owned else None,
        plan_type=record.plan.code,
        amount=record.amount,
        commission=term_commission,
        expired_date=record.payment_expiry_date or now,
        original_created_at=record.created_at or now,
        last_payment_date=record.last_payment_date,
        snapshot={
            'record': record.to_snapshot(),
            'agent_record': agent_record.to_snapshot() if agent_record else None,
        },
    )


@transaction.atomic
def _move_to_holding(ref: ShopRef, now) -> Optional[RenewShop]:
    """
    Move one expired shop (and its expired agent-store sibling) to holding.

    Returns None when there is nothing to do: the shop is gone, was renewed
    meanwhile, or is already held.
    """
    try:
        row = repository.lock(ref)
    except ShopsServiceError:
        return None
    record = repository.NORMALIZERS[ref.store](row)
    if not _is_expired(record, now):
        return None

    agent_record = None
    if ref.store != StoreTag.AGENT:
        sibling = repository.find_sibling(record, for_update=True)
        if sibling is not None:
            candidate = repository.NORMALIZERS[StoreTag.AGENT.value](sibling)
            if _is_expired(candidate, now):
                agent_record = candidate

    holding = _holding_row(record, agent_record, now)
    try:
        with transaction.atomic():
            holding.save()
    except IntegrityError:
        logger.info(f"Shop {ref} is already in the holding area, skipping")
        return None

    repository.delete(ref)
    if agent_record is not None:
        repository.delete(agent_record.ref)
    return holding


def sweep_expired(*, now=None) -> BatchResult:
    """
    Move every PAID shop whose window ended before ``now`` to the holding area.

    Each shop moves in its own transaction. A shop that fails is reported in
    ``errors`` and the sweep continues. Re-running with the same ``now``
    moves nothing new: a held shop is no longer live, and the holding area's
    unique original reference rejects duplicates from concurrent sweeps.
    PENDING shops never expire.

    Args:
        now: Cut-off instant (defaults to current time)

    Returns:
        BatchResult with moved count and per-shop errors
    """
    now = now or timezone.now()
    result = BatchResult()
    shops_removed = {}

    for store in SWEEP_ORDER:
        try:
            expired = repository.find_expired(store=store, now=now)
        except DatabaseError as e:
            logger.error(f"Expiry sweep could not read the '{store}' store", exc_info=True)
            result.errors.append(BatchError(ref=store, error=str(e)))
            continue

        for record in expired:
            try:
                holding = _move_to_holding(record.ref, now)
            except (DatabaseError, ShopsServiceError) as e:
                logger.error(f"Expiry sweep failed for {record.ref}", exc_info=True)
                result.errors.append(BatchError(ref=str(record.ref), error=str(e)))
                continue
            if holding is None:
                continue
            result.moved_count += 1
            if holding.agent_id and holding.original_agent_shop_id:
                shops_removed[holding.agent_id] = shops_removed.get(holding.agent_id, 0) + 1
            logger.info(f"Moved expired shop {record.ref} to holding as candidate {holding.pk}")

    for agent_id, count in shops_removed.items():
        try:
            debit_agent(agent_id=agent_id, shops=count)
        except (DatabaseError, LedgerServiceError):
            logger.error(f"Agent {agent_id} shop count update failed after sweep", exc_info=True)
            _queue_recompute(agent_id, "shop count after expiry sweep")

    logger.info(f"Expiry sweep at {now:%Y-%m-%d %H:%M}: moved {result.moved_count}, errors {len(result.errors)}")
    return result


# =============================================================================
# RENEWAL
# =============================================================================

def _lock_candidate(candidate_id) -> RenewShop:
    candidate = RenewShop.objects.select_for_update().filter(pk=candidate_id).first()
    if candidate is not None:
        return candidate
    if RenewalPayment.objects.filter(candidate_id=candidate_id).exists():
        raise InvalidStateError(f"Renewal candidate {candidate_id} was already renewed")
    raise RenewalCandidateNotFoundError(f"Renewal candidate {candidate_id} not found")


def _revive(snapshot: dict, *, store, plan, amount, payment: PaymentInfo, now) -> ShopRecord:
    record = ShopRecord.from_snapshot(snapshot)
    record.payment_status = PaymentState.PAID
    record.created_at = now
    record.last_payment_date = now
    record.payment_expiry_date = now + repository.validity_period()
    record.plan_type = plan.code
    record.amount = amount
    record.payment_mode = payment.mode
    record.receipt_no = payment.receipt_no
    if payment.district:
        record.district = payment.district
    record.agent_commission = commission(plan.code, amount) if record.agent_id else 0
    return repository.create(store=store, record=record)


def renew(
    *,
    candidate_id: int,
    payment: PaymentInfo,
    actor: Actor = SYSTEM_ACTOR,
    now=None
) -> ShopRecord:
    """
    Bring an expired shop back as a fresh PAID shop.

    The live record is rebuilt from the holding snapshot in its original
    store (plus its agent-store sibling, if one was held with it) with
    ``created_at`` reset to the renewal instant, so the paid window restarts
    now. The candidate is deleted in the same transaction. Ledger credits
    follow exactly as for ``mark_paid``.

    Args:
        candidate_id: Holding-area entry id
        payment: Renewal payment; amount defaults to the plan price
        actor: Verified caller; agents may only renew their own shops
        now: Renewal instant (defaults to current time)

    Returns:
        The new live ShopRecord

    Raises:
        RenewalCandidateNotFoundError: If candidate doesn't exist
        InvalidStateError: If candidate was already renewed
        UnauthorizedActionError: If an agent renews a shop it doesn't own
        ShopValidationError: If plan or amount are malformed
    """
    now = now or timezone.now()

    with transaction.atomic():
        candidate = _lock_candidate(candidate_id)
        _check_owner(actor, candidate.agent_id, f"renewal candidate {candidate_id}")
        if candidate.original_store == StoreTag.AGENT and candidate.agent_id is None:
            raise InvalidStateError(f"Renewal candidate {candidate_id} has lost its owning agent")

        previous = ShopRecord.from_snapshot(candidate.snapshot['record'])
        plan, amount = repository.resolve_payment(
            previous,
            PaymentInfo(amount=payment.amount, plan_type=payment.plan_type or candidate.plan_type),
        )
        payment = PaymentInfo(
            mode=payment.mode or PaymentMode.CASH,
            receipt_no=payment.receipt_no or repository.default_receipt_no(now),
            amount=amount,
            plan_type=plan.code,
            district=payment.district,
        )

        record = _revive(
            candidate.snapshot['record'],
            store=candidate.original_store, plan=plan, amount=amount, payment=payment, now=now,
        )
        agent_record = None
        if candidate.snapshot.get('agent_record') and candidate.agent_id is not None:
            agent_record = _revive(
                candidate.snapshot['agent_record'],
                store=StoreTag.AGENT.value, plan=plan, amount=amount, payment=payment, now=now,
            )
        owner = agent_record or (record if record.ref.store == StoreTag.AGENT else None)
        agent_id = candidate.agent_id if owner is not None else None
        earned = commission(plan.code, amount) if agent_id else 0

        RenewalPayment.objects.create(
            shop_name=record.name,
            owner_name=record.owner_name,
            mobile=record.mobile,
            category=record.category,
            district=record.district,
            agent_id=agent_id,
            renewed_by_id=actor.actor_id,
            plan_type=plan.code,
            renewal_amount=amount,
            renewal_commission=earned,
            previous_amount=candidate.amount,
            previous_commission=candidate.commission,
            payment_mode=payment.mode,
            receipt_no=payment.receipt_no,
            renewal_date=now,
            candidate_id=candidate.pk,
            original_store=candidate.original_store,
            original_id=candidate.original_id,
            new_store=record.ref.store,
            new_id=record.ref.id,
        )
        candidate.delete()

    logger.info(
        f"Renewed candidate {candidate_id} as {record.ref}: plan {plan.code}, amount {amount}, "
        f"commission {earned} to agent {agent_id}"
    )

    apply_payment_event(CommissionEvent(
        shop=str(record.ref),
        plan=plan.code,
        amount=amount,
        commission=earned,
        district=record.district,
        paid_at=now,
        agent_id=agent_id,
        shops_added=1 if owner is not None and agent_id else 0,
    ))
    _notify(record, agent_id=agent_id, renewal=True)
    return record


def is_candidate_owned_by(*, candidate_id: int, agent_id: int) -> bool:
    """
    Whether a holding-area entry belongs to an agent.

    Raises:
        RenewalCandidateNotFoundError: If candidate doesn't exist
    """
    owner = RenewShop.objects.filter(pk=candidate_id).values_list('agent_id', flat=True).first()
    if owner is None and not RenewShop.objects.filter(pk=candidate_id).exists():
        raise RenewalCandidateNotFoundError(f"Renewal candidate {candidate_id} not found")
    return owner is not None and owner == agent_id


def list_renewal_candidates(*, agent_id: Optional[int] = None):
    qs = RenewShop.objects.select_related('agent').order_by('expired_date', 'pk')
    if agent_id is not None:
        qs = qs.filter(agent_id=agent_id)
    return qs


def expiry_stats(*, now=None, soon_days: int = 30) -> ExpiryStats:
    """Counts for the expiry dashboard."""
    now = now or timezone.now()
    expired = soon = 0
    for store in SWEEP_ORDER:
        model = repository.STORE_MODELS[store]
        paid = model.objects.filter(repository.payment_q(repository.PaymentFilter.PAID))
        expired += paid.filter(payment_expiry_date__lt=now).count()
        soon += paid.filter(
            payment_expiry_date__gte=now,
            payment_expiry_date__lt=now + timedelta(days=soon_days),
        ).count()
    return ExpiryStats(
        expired_live=expired,
        in_holding=RenewShop.objects.count(),
        expiring_soon=soon,
    )


# =============================================================================
# DELETION
# =============================================================================

def _require_admin(actor: Actor, what="delete shops"):
    if not actor.is_admin:
        raise UnauthorizedActionError(f"Only admins can {what}")


def deduct_for_deleted_shops(*, refs: Iterable[ShopRef]) -> DeductionResult:
    """Ledger deductions for shops about to be deleted; see ``deduct_for_records``."""
    return deduct_for_records(repository.get_many(refs))


@transaction.atomic
def delete_shops(*, refs: Iterable[ShopRef], actor: Actor = SYSTEM_ACTOR) -> BulkDeleteResult:
    """
    Hard delete shops after deducting them from the ledgers.

    Deductions and deletions commit together or not at all.

    Raises:
        UnauthorizedActionError: If actor is not an admin
    """
    _require_admin(actor)
    refs = list(dict.fromkeys(refs))
    records = repository.get_many(refs)
    found = {r.ref for r in records}
    missing = [str(ref) for ref in refs if ref not in found]

    deduction = deduct_for_records(records)
    deleted = repository.delete_many(found)
    logger.info(f"Deleted {deleted} shops ({len(missing)} not found)")
    return BulkDeleteResult(deleted_count=deleted, missing=missing, deduction=deduction)


@transaction.atomic
def delete_all_shops(*, actor: Actor = SYSTEM_ACTOR) -> BulkDeleteResult:
    """
    Hard delete every live shop in every store after deducting them.

    Raises:
        UnauthorizedActionError: If actor is not an admin
    """
    _require_admin(actor)
    records = repository.get_many(repository.all_refs())
    deduction = deduct_for_records(records)
    counts = repository.delete_all()
    logger.warning(f"Deleted all shops: {counts}")
    return BulkDeleteResult(deleted_count=sum(counts.values()), missing=[], deduction=deduction)


def record_visit(*, ref: ShopRef) -> int:
    return repository.record_visit(ref)
