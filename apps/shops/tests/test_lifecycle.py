"""
Shop lifecycle service tests.

Tests cover:
- Creating PENDING shops in the right store
- Marking paid and crediting agent commission and district revenue
- Changing plans
- Moving expired shops to the holding area
- Renewing held shops
- Hard deletes with ledger deductions
"""

import pytest
from datetime import timedelta
from django.db import DatabaseError
from django.utils import timezone

from apps.accounts.models import UserRole
from apps.ledger.models import Agent, ReconciliationTask, RevenueEntry, TaskKind
from apps.ledger.services import process_reconciliation_tasks, recompute_agent, revenue_day
from apps.shops.models import (
    AdminShop,
    AgentShop,
    PaymentStatus,
    RenewalPayment,
    RenewShop,
)
from apps.shops.services import lifecycle, notifications
from apps.shops.services import (
    Actor,
    InvalidStateError,
    PaymentInfo,
    PaymentState,
    RenewalCandidateNotFoundError,
    ShopRef,
    ShopValidationError,
    UnauthorizedActionError,
    change_plan,
    create_shop,
    deduct_for_deleted_shops,
    delete_all_shops,
    delete_shops,
    expiry_stats,
    is_candidate_owned_by,
    list_renewal_candidates,
    mark_paid,
    renew,
    sweep_expired,
)


AGENT_SHOP_DATA = {
    'name': 'Sharma General Store',
    'owner_name': 'Ramesh Sharma',
    'category': 'grocery',
    'mobile': '9811111111',
    'pincode': '800001',
    'address': '12 Boring Road',
    'area': 'Boring Road',
    'district': 'Patna',
    'latitude': 25.61,
    'longitude': 85.12,
}


@pytest.fixture
def sent_confirmations(monkeypatch):
    """Capture payment confirmations instead of logging them."""
    sent = []
    monkeypatch.setattr(notifications, 'get_notifier', lambda: sent.append)
    return sent


def _agent(agent):
    return Agent.objects.get(pk=agent.pk)


# =============================================================================
# Create
# =============================================================================

@pytest.mark.django_db
class TestCreateShop:

    def test_agent_creates_in_agent_store(self, grocery, agent, agent_actor):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)

        assert record.ref.store == 'agent'
        assert record.agent_id == agent.pk
        assert record.payment_status is PaymentState.PENDING
        assert record.category == 'Grocery'
        assert record.amount == 100
        assert _agent(agent).total_shops == 1
        assert _agent(agent).total_earnings == 0

    def test_agent_store_argument_is_ignored_for_agents(self, grocery, agent, agent_actor):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor, store='admin')

        assert record.ref.store == 'agent'

    def test_admin_defaults_to_admin_store(self, grocery, admin_user, admin_actor):
        record = create_shop(data={'name': 'City Medicos', 'category': 'Grocery'}, actor=admin_actor)

        shop = AdminShop.objects.get(pk=record.ref.id)
        assert record.ref.store == 'admin'
        assert shop.created_by_admin == admin_user
        assert shop.category_ref == grocery
        assert shop.payment_status == PaymentStatus.PENDING

    def test_admin_can_create_for_an_agent(self, agent, admin_actor):
        record = create_shop(
            data=dict(AGENT_SHOP_DATA, agent_id=agent.pk), actor=admin_actor, store='agent',
        )

        assert record.ref.store == 'agent'
        assert AgentShop.objects.get(pk=record.ref.id).agent == agent

    def test_agent_store_needs_agent_id(self, admin_actor):
        with pytest.raises(ShopValidationError):
            create_shop(data=AGENT_SHOP_DATA, actor=admin_actor, store='agent')

    def test_legacy_store_is_closed(self, admin_actor):
        with pytest.raises(ShopValidationError):
            create_shop(data=AGENT_SHOP_DATA, actor=admin_actor, store='legacy')

    def test_unlinked_agent_login_is_rejected(self, db):
        with pytest.raises(UnauthorizedActionError):
            create_shop(data=AGENT_SHOP_DATA, actor=Actor(role=UserRole.AGENT, agent_id=None))

    @pytest.mark.parametrize('field,value', [
        ('pincode', '8000'),
        ('mobile', '12345'),
        ('latitude', 123.0),
        ('plan_type', 'GOLD'),
        ('amount', 'lots'),
        ('name', '  '),
    ])
    def test_invalid_input(self, agent_actor, field, value):
        with pytest.raises(ShopValidationError):
            create_shop(data=dict(AGENT_SHOP_DATA, **{field: value}), actor=agent_actor)

    def test_agent_store_requires_mobile_and_pincode(self, agent_actor):
        data = dict(AGENT_SHOP_DATA, mobile='')

        with pytest.raises(ShopValidationError):
            create_shop(data=data, actor=agent_actor)

    def test_plan_price_is_default_amount(self, agent_actor):
        record = create_shop(data=dict(AGENT_SHOP_DATA, plan_type='premium'), actor=agent_actor)

        assert record.plan_type == 'PREMIUM'
        assert record.amount == 2999


# =============================================================================
# Mark paid
# =============================================================================

@pytest.mark.django_db
class TestMarkPaid:

    def test_basic_payment_credits_agent_and_revenue(self, agent, agent_actor, fixed_now, sent_confirmations):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)

        paid = mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor, now=fixed_now)

        assert paid.is_paid
        assert paid.last_payment_date == fixed_now
        assert paid.payment_expiry_date == fixed_now + timedelta(days=365)
        assert paid.created_at == record.created_at
        assert _agent(agent).total_earnings == 20
        assert AgentShop.objects.get(pk=record.ref.id).agent_commission == 20

        entry = RevenueEntry.objects.get(district='PATNA', date=revenue_day(fixed_now))
        assert entry.basic_plan_revenue == 100
        assert entry.basic_plan_count == 1
        assert entry.total_revenue == 100
        assert entry.total_agent_commission == 20
        assert entry.net_revenue == 80

        assert len(sent_confirmations) == 1
        assert sent_confirmations[0].mobile == '9811111111'
        assert sent_confirmations[0].agent_code == 'AGT001'
        assert sent_confirmations[0].renewal is False

    def test_paid_shop_becomes_visible(self, grocery, agent_actor):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)
        assert lifecycle.repository.find_by_category(category=grocery) == []

        mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor)

        assert len(lifecycle.repository.find_by_category(category=grocery)) == 1

    def test_custom_amount_and_plan(self, agent, agent_actor, fixed_now):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)

        paid = mark_paid(
            ref=record.ref,
            payment=PaymentInfo(amount=150, plan_type='PREMIUM'),
            actor=agent_actor,
            now=fixed_now,
        )

        assert paid.amount == 150
        assert paid.plan_type == 'PREMIUM'
        assert _agent(agent).total_earnings == 30
        assert RevenueEntry.objects.get(district='PATNA').premium_plan_revenue == 150

    def test_missing_district_goes_to_unknown(self, admin_actor, make_admin_shop, fixed_now):
        shop = make_admin_shop(district='')

        mark_paid(ref=ShopRef('admin', shop.pk), payment=PaymentInfo(), actor=admin_actor, now=fixed_now)

        assert RevenueEntry.objects.get(date=revenue_day(fixed_now)).district == 'UNKNOWN'

    def test_admin_shop_credits_sibling_agent_once(self, agent, admin_actor, make_admin_shop, make_agent_shop):
        agent_shop = make_agent_shop()
        admin_shop = make_admin_shop(shop_name='Sharma General Store', owner_name='Ramesh Sharma', mobile='9811111111')

        mark_paid(ref=ShopRef('admin', admin_shop.pk), payment=PaymentInfo(), actor=admin_actor)

        agent_shop.refresh_from_db()
        assert agent_shop.payment_status == PaymentStatus.PAID
        assert _agent(agent).total_earnings == 20
        assert RevenueEntry.objects.get().total_revenue == 100

    def test_admin_shop_without_agent_earns_no_commission(self, agent, admin_actor, make_admin_shop):
        shop = make_admin_shop()

        mark_paid(ref=ShopRef('admin', shop.pk), payment=PaymentInfo(), actor=admin_actor)

        entry = RevenueEntry.objects.get()
        assert entry.total_agent_commission == 0
        assert entry.net_revenue == 100
        assert _agent(agent).total_earnings == 0

    def test_already_paid(self, agent_actor):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)
        mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor)

        with pytest.raises(InvalidStateError):
            mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor)

    def test_agent_cannot_mark_foreign_shop(self, agent_actor, other_agent_actor):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)

        with pytest.raises(UnauthorizedActionError):
            mark_paid(ref=record.ref, payment=PaymentInfo(), actor=other_agent_actor)

        assert AgentShop.objects.get(pk=record.ref.id).payment_status == PaymentStatus.PENDING

    def test_ledger_failure_does_not_undo_payment(self, agent, agent_actor, monkeypatch):
        """A failed agent credit is queued and healed by reconciliation."""
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)

        def broken_credit(**kwargs):
            raise DatabaseError("ledger unavailable")

        monkeypatch.setattr('apps.ledger.services.events.credit_agent', broken_credit)

        paid = mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor)

        assert paid.is_paid
        assert _agent(agent).total_earnings == 0
        task = ReconciliationTask.objects.pending().get()
        assert task.kind == TaskKind.AGENT_TOTALS
        assert task.agent_id == agent.pk

        summary = process_reconciliation_tasks()

        assert summary.resolved == 1
        assert _agent(agent).total_earnings == 20

    def test_notification_failure_does_not_undo_payment(self, agent_actor, monkeypatch, caplog):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)

        def exploding(confirmation):
            raise RuntimeError("SMS gateway down")

        monkeypatch.setattr(notifications, 'get_notifier', lambda: exploding)

        paid = mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor)

        assert paid.is_paid
        assert "Payment confirmation" in caplog.text

    def test_agent_lookup_failure_still_confirms(self, agent, agent_actor, sent_confirmations, monkeypatch, caplog):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)

        class UnreachableAgent:
            class objects:
                @staticmethod
                def filter(**kwargs):
                    raise DatabaseError("agents table locked")

        monkeypatch.setattr(lifecycle, 'Agent', UnreachableAgent)

        paid = mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor)

        assert paid.is_paid
        assert _agent(agent).total_earnings == 20
        assert len(sent_confirmations) == 1
        assert sent_confirmations[0].agent_code == ''
        assert "lookup for payment confirmation failed" in caplog.text


# =============================================================================
# Plan change
# =============================================================================

@pytest.mark.django_db
class TestChangePlan:

    def test_admin_moves_shop_and_sibling(self, admin_actor, make_admin_shop, make_agent_shop):
        agent_shop = make_agent_shop()
        admin_shop = make_admin_shop(shop_name='Sharma General Store', owner_name='Ramesh Sharma')

        update = change_plan(ref=ShopRef('admin', admin_shop.pk), plan_type='right_side', actor=admin_actor)

        assert update.record.plan_type == 'RIGHT_BAR'
        assert update.record.effective_priority == 30
        assert AdminShop.objects.get(pk=admin_shop.pk).is_right_bar
        assert AgentShop.objects.get(pk=agent_shop.pk).plan_type == 'RIGHT_BAR'

    def test_ledgers_are_untouched(self, agent, agent_actor, admin_actor, fixed_now):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)
        mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor, now=fixed_now)

        change_plan(ref=record.ref, plan_type='HERO', actor=admin_actor)

        assert _agent(agent).total_earnings == 20
        assert RevenueEntry.objects.get().total_revenue == 100
        assert AgentShop.objects.get(pk=record.ref.id).payment_status == PaymentStatus.PAID

    def test_requires_admin(self, agent_actor):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)

        with pytest.raises(UnauthorizedActionError):
            change_plan(ref=record.ref, plan_type='HERO', actor=agent_actor)

        assert AgentShop.objects.get(pk=record.ref.id).plan_type == 'BASIC'

    @pytest.mark.parametrize('plan_type', ['', None, 'GOLD'])
    def test_plan_must_be_known(self, admin_actor, make_admin_shop, plan_type):
        shop = make_admin_shop()

        with pytest.raises(ShopValidationError):
            change_plan(ref=ShopRef('admin', shop.pk), plan_type=plan_type, actor=admin_actor)


# =============================================================================
# Expiry sweep
# =============================================================================

@pytest.mark.django_db
class TestSweepExpired:

    def test_expired_shop_moves_to_holding(self, agent, paid_agent_shop):
        Agent.objects.filter(pk=agent.pk).update(total_shops=1, total_earnings=20)

        result = sweep_expired()

        assert result.moved_count == 1
        assert not result.partial_failure
        assert not AgentShop.objects.filter(pk=paid_agent_shop.pk).exists()

        candidate = RenewShop.objects.get()
        assert candidate.original_store == 'agent'
        assert candidate.original_id == paid_agent_shop.pk
        assert candidate.agent == agent
        assert candidate.commission == 20
        assert candidate.snapshot['record']['name'] == 'Sharma General Store'

        # Earned commission stays; the shop no longer counts as live
        assert _agent(agent).total_shops == 0
        assert _agent(agent).total_earnings == 20

    def test_sweep_is_idempotent(self, paid_agent_shop):
        sweep_expired()

        assert sweep_expired().moved_count == 0
        assert RenewShop.objects.count() == 1

    def test_pending_and_valid_shops_stay(self, make_agent_shop, make_admin_shop, fixed_now):
        make_agent_shop(payment_expiry_date=fixed_now - timedelta(days=400))
        make_admin_shop(payment_status=PaymentStatus.PAID, payment_expiry_date=fixed_now + timedelta(days=1))

        assert sweep_expired(now=fixed_now).moved_count == 0
        assert RenewShop.objects.count() == 0

    def test_sibling_is_held_with_admin_shop(self, agent, make_admin_shop, make_agent_shop, fixed_now):
        paid = {
            'payment_status': PaymentStatus.PAID,
            'last_payment_date': fixed_now - timedelta(days=366),
            'payment_expiry_date': fixed_now - timedelta(days=1),
        }
        agent_shop = make_agent_shop(agent_commission=20, **paid)
        admin_shop = make_admin_shop(
            shop_name='Sharma General Store', owner_name='Ramesh Sharma', mobile='9811111111', **paid
        )

        result = sweep_expired(now=fixed_now)

        assert result.moved_count == 1
        candidate = RenewShop.objects.get()
        assert candidate.original_store == 'admin'
        assert candidate.original_id == admin_shop.pk
        assert candidate.original_agent_shop_id == agent_shop.pk
        assert candidate.agent == agent
        assert candidate.snapshot['agent_record']['ref']['id'] == agent_shop.pk
        assert not AgentShop.objects.exists()
        assert not AdminShop.objects.exists()

    def test_one_failing_shop_does_not_stop_the_sweep(self, make_admin_shop, fixed_now, monkeypatch):
        expired = {'payment_status': PaymentStatus.PAID, 'payment_expiry_date': fixed_now - timedelta(days=1)}
        bad = make_admin_shop(shop_name='Bad', **expired)
        make_admin_shop(shop_name='Good', **expired)
        original = lifecycle._move_to_holding

        def flaky(ref, now):
            if ref.id == bad.pk:
                raise DatabaseError("row locked")
            return original(ref, now)

        monkeypatch.setattr(lifecycle, '_move_to_holding', flaky)

        result = sweep_expired(now=fixed_now)

        assert result.moved_count == 1
        assert result.partial_failure
        assert result.errors[0].ref == f'admin:{bad.pk}'
        assert "row locked" in result.errors[0].error

    def test_expiry_stats(self, paid_agent_shop, make_admin_shop):
        make_admin_shop(payment_status=PaymentStatus.PAID, payment_expiry_date=timezone.now() + timedelta(days=3))

        stats = expiry_stats()

        assert stats.expired_live == 1
        assert stats.expiring_soon == 1
        assert stats.in_holding == 0


# =============================================================================
# Renewal
# =============================================================================

@pytest.mark.django_db
class TestRenew:

    def _held(self, agent_actor, fixed_now):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)
        mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor, now=fixed_now)
        sweep_expired(now=fixed_now + timedelta(days=366))
        return RenewShop.objects.get()

    def test_basic_plan_lifecycle_totals(self, agent, agent_actor, fixed_now, sent_confirmations):
        """Create, pay, expire, renew: the cache reads 20 then 40; a recompute counts the live shop only."""
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)
        mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor, now=fixed_now)
        assert _agent(agent).total_earnings == 20

        sweep_expired(now=fixed_now + timedelta(days=366))
        candidate = RenewShop.objects.get()
        assert _agent(agent).total_earnings == 20
        assert _agent(agent).total_shops == 0

        renew_at = fixed_now + timedelta(days=370)
        renewed = renew(candidate_id=candidate.pk, payment=PaymentInfo(), actor=agent_actor, now=renew_at)

        assert renewed.is_paid
        assert _agent(agent).total_earnings == 40
        assert _agent(agent).total_shops == 1

        result = recompute_agent(agent_id=agent.pk)
        assert result.changed is True
        assert result.old_totals.total_earnings == 40
        assert result.new_totals.total_earnings == 20
        assert result.new_totals.total_shops == 1
        assert _agent(agent).total_earnings == 20

        assert sent_confirmations[-1].renewal is True

    def test_renewal_restarts_the_window(self, agent_actor, fixed_now):
        candidate = self._held(agent_actor, fixed_now)
        renew_at = fixed_now + timedelta(days=400)

        renewed = renew(candidate_id=candidate.pk, payment=PaymentInfo(), actor=agent_actor, now=renew_at)

        assert renewed.created_at == renew_at
        assert renewed.last_payment_date == renew_at
        assert renewed.payment_expiry_date == renew_at + timedelta(days=365)
        assert renewed.ref.store == 'agent'
        assert renewed.name == 'Sharma General Store'
        assert not RenewShop.objects.exists()

    def test_renewed_shop_stays_live_for_a_full_window(self, agent_actor, fixed_now):
        candidate = self._held(agent_actor, fixed_now)
        renew_at = fixed_now + timedelta(days=400)
        renew(candidate_id=candidate.pk, payment=PaymentInfo(), actor=agent_actor, now=renew_at)

        assert sweep_expired(now=renew_at + timedelta(days=364)).moved_count == 0
        assert AgentShop.objects.count() == 1

        assert sweep_expired(now=renew_at + timedelta(days=366)).moved_count == 1
        assert RenewShop.objects.count() == 1

    def test_renewal_is_recorded(self, agent, agent_actor, agent_user, fixed_now):
        candidate = self._held(agent_actor, fixed_now)

        renewed = renew(
            candidate_id=candidate.pk,
            payment=PaymentInfo(receipt_no='RN-1', plan_type='PREMIUM'),
            actor=agent_actor,
            now=fixed_now + timedelta(days=380),
        )

        payment = RenewalPayment.objects.get()
        assert payment.candidate_id == candidate.pk
        assert payment.renewed_by == agent_user
        assert payment.agent == agent
        assert payment.plan_type == 'PREMIUM'
        assert payment.renewal_amount == 2999
        assert payment.renewal_commission == 600
        assert payment.previous_amount == 100
        assert payment.previous_commission == 20
        assert payment.receipt_no == 'RN-1'
        assert payment.new_id == renewed.ref.id

    def test_double_renewal_is_rejected(self, agent_actor, fixed_now):
        candidate = self._held(agent_actor, fixed_now)
        renew(candidate_id=candidate.pk, payment=PaymentInfo(), actor=agent_actor)

        with pytest.raises(InvalidStateError):
            renew(candidate_id=candidate.pk, payment=PaymentInfo(), actor=agent_actor)

    def test_unknown_candidate(self, db):
        with pytest.raises(RenewalCandidateNotFoundError):
            renew(candidate_id=999, payment=PaymentInfo())

    def test_agent_cannot_renew_foreign_shop(self, agent_actor, other_agent_actor, fixed_now):
        candidate = self._held(agent_actor, fixed_now)

        with pytest.raises(UnauthorizedActionError):
            renew(candidate_id=candidate.pk, payment=PaymentInfo(), actor=other_agent_actor)

        assert RenewShop.objects.filter(pk=candidate.pk).exists()

    def test_mark_paid_on_holding_ref_renews(self, agent_actor, fixed_now):
        candidate = self._held(agent_actor, fixed_now)

        renewed = mark_paid(ref=ShopRef('holding', candidate.pk), payment=PaymentInfo(), actor=agent_actor)

        assert renewed.is_paid
        assert RenewalPayment.objects.count() == 1

    def test_bundled_sibling_is_revived(self, agent, admin_actor, make_admin_shop, make_agent_shop, fixed_now):
        paid = {
            'payment_status': PaymentStatus.PAID,
            'last_payment_date': fixed_now - timedelta(days=366),
            'payment_expiry_date': fixed_now - timedelta(days=1),
        }
        make_agent_shop(agent_commission=20, **paid)
        make_admin_shop(shop_name='Sharma General Store', owner_name='Ramesh Sharma', mobile='9811111111', **paid)
        sweep_expired(now=fixed_now)
        candidate = RenewShop.objects.get()

        renewed = renew(candidate_id=candidate.pk, payment=PaymentInfo(), actor=admin_actor, now=fixed_now)

        assert renewed.ref.store == 'admin'
        revived_agent_shop = AgentShop.objects.get()
        assert revived_agent_shop.agent == agent
        assert revived_agent_shop.payment_status == PaymentStatus.PAID
        assert revived_agent_shop.agent_commission == 20
        assert _agent(agent).total_earnings == 20

    def test_candidate_ownership(self, agent, other_agent, agent_actor, fixed_now):
        candidate = self._held(agent_actor, fixed_now)

        assert is_candidate_owned_by(candidate_id=candidate.pk, agent_id=agent.pk) is True
        assert is_candidate_owned_by(candidate_id=candidate.pk, agent_id=other_agent.pk) is False
        assert list(list_renewal_candidates(agent_id=other_agent.pk)) == []
        assert list(list_renewal_candidates(agent_id=agent.pk)) == [candidate]
        with pytest.raises(RenewalCandidateNotFoundError):
            is_candidate_owned_by(candidate_id=candidate.pk + 1, agent_id=agent.pk)


# =============================================================================
# Deletion
# =============================================================================

@pytest.mark.django_db
class TestDeleteShops:

    def test_requires_admin(self, agent_actor, paid_agent_shop):
        with pytest.raises(UnauthorizedActionError):
            delete_shops(refs=[ShopRef('agent', paid_agent_shop.pk)], actor=agent_actor)

        assert AgentShop.objects.filter(pk=paid_agent_shop.pk).exists()

    def test_delete_reverses_ledger(self, agent, agent_actor, admin_actor, fixed_now):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)
        mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor, now=fixed_now)

        result = delete_shops(refs=[record.ref, ShopRef('admin', 4242)], actor=admin_actor)

        assert result.deleted_count == 1
        assert result.missing == ['admin:4242']
        assert result.deduction.total_commission_deducted == 20
        assert result.deduction.total_revenue_deducted == 100
        assert _agent(agent).total_earnings == 0
        assert _agent(agent).total_shops == 0
        entry = RevenueEntry.objects.get()
        assert entry.total_revenue == 0
        assert entry.basic_plan_count == 0
        assert entry.net_revenue == 0

    def test_delete_all(self, agent, admin_actor, paid_agent_shop, make_admin_shop, make_legacy_shop):
        make_admin_shop()
        make_legacy_shop()

        result = delete_all_shops(actor=admin_actor)

        assert result.deleted_count == 3
        assert not AgentShop.objects.exists()
        assert not AdminShop.objects.exists()

    def test_deductions_before_delete(self, agent, agent_actor, fixed_now):
        record = create_shop(data=AGENT_SHOP_DATA, actor=agent_actor)
        mark_paid(ref=record.ref, payment=PaymentInfo(), actor=agent_actor, now=fixed_now)

        result = deduct_for_deleted_shops(refs=[record.ref, ShopRef('admin', 4242)])

        assert result.total_commission_deducted == 20
        assert result.total_revenue_deducted == 100
        assert _agent(agent).total_earnings == 0
        assert RevenueEntry.objects.get().total_revenue == 0
        # Rows are left for the caller to delete
        assert AgentShop.objects.filter(pk=record.ref.id).exists()
