import pytest
from datetime import timedelta
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User, UserRole
from apps.ledger.models import Agent
from apps.shops.models import AdminShop, AgentShop, PaymentStatus, RenewShop
from apps.shops.services import sweep_expired

from .conftest import PATNA, offset_km


# =============================================================================
# Public listing
# =============================================================================

@pytest.mark.django_db
class TestCategoryShops:
    """Tests for GET /api/shops/categories/<slug>/shops/"""

    def test_lists_visible_shops_without_auth(self, api_client, grocery, make_agent_shop):
        spot = offset_km(PATNA, 2)
        make_agent_shop(latitude=spot[0], longitude=spot[1], payment_status=PaymentStatus.PAID)
        make_agent_shop(shop_name='Not Yet Paid')

        url = reverse('shops:category-shops', kwargs={'slug': 'grocery'})
        response = api_client.get(url, {'sort': 'nearby', 'lat': PATNA[0], 'lng': PATNA[1]})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total'] == 1
        assert response.data['has_more'] is False
        shop = response.data['results'][0]
        assert shop['name'] == 'Sharma General Store'
        assert shop['store'] == 'agent'
        assert shop['distance'] == 2.0
        assert shop['payment_status'] == 'PAID'

    def test_paging_params(self, api_client, grocery, make_agent_shop):
        for i in range(3):
            make_agent_shop(shop_name=f'Shop {i}', payment_status=PaymentStatus.PAID)

        url = reverse('shops:category-shops', kwargs={'slug': 'grocery'})
        response = api_client.get(url, {'page': 1, 'page_size': 2})

        assert len(response.data['results']) == 2
        assert response.data['has_more'] is True

    def test_unknown_category_returns_404(self, api_client, db):
        url = reverse('shops:category-shops', kwargs={'slug': 'unknown'})
        response = api_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert 'error' in response.data

    def test_invalid_sort_returns_400(self, api_client, grocery):
        url = reverse('shops:category-shops', kwargs={'slug': 'grocery'})
        response = api_client.get(url, {'sort': 'cheapest'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestNearestShops:
    """Tests for GET /api/shops/categories/nearest/"""

    def test_nearest_per_category(self, api_client, grocery, pharmacy, make_agent_shop):
        spot = offset_km(PATNA, 4)
        make_agent_shop(latitude=spot[0], longitude=spot[1], visitor_count=7, payment_status=PaymentStatus.PAID)

        url = reverse('shops:nearest-shops')
        response = api_client.get(url, {'lat': PATNA[0], 'lng': PATNA[1]})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['categories']['grocery'] == {'distance': 4.0, 'popularity': 7}
        assert response.data['categories']['pharmacy'] == {'distance': 0.0, 'popularity': 0}

    def test_coordinates_are_required(self, api_client, grocery):
        url = reverse('shops:nearest-shops')
        response = api_client.get(url, {'lat': PATNA[0]})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestShopVisit:

    def test_visit_counts(self, api_client, make_admin_shop):
        shop = make_admin_shop()

        url = reverse('shops:shop-visit', kwargs={'store': 'admin', 'shop_id': shop.pk})
        response = api_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['visitor_count'] == 1

    def test_visit_unknown_shop(self, api_client, db):
        url = reverse('shops:shop-visit', kwargs={'store': 'admin', 'shop_id': 999})
        response = api_client.post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestSlotShops:
    """Tests for GET /api/shops/slots/<slot>/shops/"""

    def test_lists_eligible_shops_without_auth(self, api_client, make_agent_shop, make_admin_shop):
        make_agent_shop(shop_name='Hero Agent', plan_type='HERO', payment_status=PaymentStatus.PAID)
        make_admin_shop(shop_name='Hero Pending', plan_type='HERO')
        make_admin_shop(shop_name='Basic Admin', payment_status=PaymentStatus.PAID)

        url = reverse('shops:slot-shops', kwargs={'slot': 'hero'})
        response = api_client.get(url, {'limit': 5})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['slot'] == 'HERO'
        assert response.data['count'] == 1
        assert response.data['results'][0]['name'] == 'Hero Agent'
        assert response.data['results'][0]['priority_rank'] == 200

    def test_unknown_slot_returns_400(self, api_client, db):
        url = reverse('shops:slot-shops', kwargs={'slot': 'sidebar'})
        response = api_client.get(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Create and mark paid
# =============================================================================

@pytest.mark.django_db
class TestShopCreate:
    """Tests for POST /api/shops/shops/"""

    def test_agent_creates_pending_shop(self, agent_client, agent, grocery):
        url = reverse('shops:shop-create')
        data = {
            'name': 'Sharma General Store',
            'owner_name': 'Ramesh Sharma',
            'category': 'Grocery',
            'mobile': '9811111111',
            'pincode': '800001',
            'address': '12 Boring Road',
            'district': 'Patna',
        }
        response = agent_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['store'] == 'agent'
        assert response.data['payment_status'] == 'PENDING'
        assert response.data['agent_id'] == agent.pk
        assert Agent.objects.get(pk=agent.pk).total_shops == 1

    def test_invalid_pincode_returns_400(self, agent_client, grocery):
        url = reverse('shops:shop-create')
        data = {'name': 'X', 'category': 'Grocery', 'mobile': '9811111111', 'pincode': '12'}
        response = agent_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'pincode' in response.data['error']

    def test_anonymous_cannot_create(self, api_client, db):
        url = reverse('shops:shop-create')
        response = api_client.post(url, {'name': 'X', 'category': 'Grocery'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestMarkPaid:
    """Tests for POST /api/shops/shops/<store>/<id>/mark-paid/"""

    def test_operator_marks_paid(self, operator_client, make_agent_shop, agent):
        shop = make_agent_shop()

        url = reverse('shops:shop-mark-paid', kwargs={'store': 'agent', 'shop_id': shop.pk})
        response = operator_client.post(url, {'payment_mode': 'UPI', 'receipt_no': 'UPI-99'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['payment_status'] == 'PAID'
        assert response.data['receipt_no'] == 'UPI-99'
        assert Agent.objects.get(pk=agent.pk).total_earnings == 20

    def test_already_paid_returns_409(self, operator_client, make_agent_shop):
        shop = make_agent_shop(payment_status=PaymentStatus.PAID)

        url = reverse('shops:shop-mark-paid', kwargs={'store': 'agent', 'shop_id': shop.pk})
        response = operator_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_foreign_agent_returns_403(self, api_client, other_agent, make_agent_shop):
        shop = make_agent_shop()
        intruder = User.objects.create_user(
            email='sunil@example.com', password='TestPass123!', role=UserRole.AGENT, agent=other_agent,
        )
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {RefreshToken.for_user(intruder).access_token}')

        url = reverse('shops:shop-mark-paid', kwargs={'store': 'agent', 'shop_id': shop.pk})
        response = api_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_shop_returns_404(self, operator_client, db):
        url = reverse('shops:shop-mark-paid', kwargs={'store': 'admin', 'shop_id': 999})
        response = operator_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_plan_returns_400(self, operator_client, make_admin_shop):
        shop = make_admin_shop()

        url = reverse('shops:shop-mark-paid', kwargs={'store': 'admin', 'shop_id': shop.pk})
        response = operator_client.post(url, {'plan_type': 'GOLD'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestChangePlan:
    """Tests for POST /api/shops/shops/<store>/<id>/plan/"""

    def test_admin_changes_plan(self, admin_client, make_admin_shop):
        shop = make_admin_shop()

        url = reverse('shops:shop-change-plan', kwargs={'store': 'admin', 'shop_id': shop.pk})
        response = admin_client.post(url, {'plan_type': 'FEATURED'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['previous_plan'] == 'BASIC'
        assert response.data['shop']['plan_type'] == 'FEATURED'
        assert response.data['shop']['priority_rank'] == 100
        assert response.data['sibling'] is None
        shop.refresh_from_db()
        assert shop.is_home_page_banner and shop.is_top_slider

    def test_unknown_plan_returns_400(self, admin_client, make_admin_shop):
        shop = make_admin_shop()

        url = reverse('shops:shop-change-plan', kwargs={'store': 'admin', 'shop_id': shop.pk})
        response = admin_client.post(url, {'plan_type': 'GOLD'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_shop_returns_404(self, admin_client):
        url = reverse('shops:shop-change-plan', kwargs={'store': 'admin', 'shop_id': 999})
        response = admin_client.post(url, {'plan_type': 'HERO'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_operator_cannot_change_plan(self, operator_client, make_admin_shop):
        shop = make_admin_shop()

        url = reverse('shops:shop-change-plan', kwargs={'store': 'admin', 'shop_id': shop.pk})
        response = operator_client.post(url, {'plan_type': 'HERO'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert AdminShop.objects.get(pk=shop.pk).plan_type == 'BASIC'


# =============================================================================
# Bulk delete
# =============================================================================

@pytest.mark.django_db
class TestBulkDelete:
    """Tests for POST /api/shops/shops/delete/"""

    def test_admin_deletes_by_ref(self, admin_client, make_admin_shop):
        shop = make_admin_shop()

        url = reverse('shops:shop-bulk-delete')
        response = admin_client.post(url, {'refs': [f'admin:{shop.pk}', 'agent:999']}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['deleted_count'] == 1
        assert response.data['missing'] == ['agent:999']
        assert not AdminShop.objects.exists()

    def test_admin_deletes_all(self, admin_client, make_admin_shop, make_agent_shop):
        make_admin_shop()
        make_agent_shop()

        url = reverse('shops:shop-bulk-delete')
        response = admin_client.post(url, {'all': True}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['deleted_count'] == 2
        assert not AgentShop.objects.exists()

    def test_refs_or_all_required(self, admin_client):
        url = reverse('shops:shop-bulk-delete')
        response = admin_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_operator_cannot_delete(self, operator_client, make_admin_shop):
        shop = make_admin_shop()

        url = reverse('shops:shop-bulk-delete')
        response = operator_client.post(url, {'refs': [f'admin:{shop.pk}']}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert AdminShop.objects.exists()


# =============================================================================
# Renewals
# =============================================================================

@pytest.mark.django_db
class TestRenewals:

    def test_sweep_and_renew(self, admin_client, paid_agent_shop, agent):
        sweep_url = reverse('shops:renewal-sweep')
        response = admin_client.post(sweep_url, {}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['moved_count'] == 1
        assert response.data['errors'] == []

        candidate = RenewShop.objects.get()
        renew_url = reverse('shops:renewal-renew', kwargs={'candidate_id': candidate.pk})
        response = admin_client.post(renew_url, {'payment_mode': 'CASH'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['payment_status'] == 'PAID'

        response = admin_client.post(renew_url, {'payment_mode': 'CASH'}, format='json')
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_agent_sees_only_own_candidates(self, agent_client, paid_agent_shop, other_agent):
        sweep_expired()
        RenewShop.objects.create(
            shop_name='Foreign', category='Grocery', original_store='agent', original_id=777,
            agent=other_agent, expired_date=timezone.now(), original_created_at=timezone.now(),
        )

        response = agent_client.get(reverse('shops:renewal-list'))

        assert response.status_code == status.HTTP_200_OK
        assert [c['shop_name'] for c in response.data] == ['Sharma General Store']
        assert response.data[0]['agent_code'] == 'AGT001'

    def test_operator_cannot_sweep(self, operator_client):
        response = operator_client.post(reverse('shops:renewal-sweep'), {}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_renew_unknown_candidate(self, admin_client):
        url = reverse('shops:renewal-renew', kwargs={'candidate_id': 999})
        response = admin_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_stats(self, admin_client, paid_agent_shop, make_admin_shop):
        make_admin_shop(payment_status=PaymentStatus.PAID, payment_expiry_date=timezone.now() + timedelta(days=10))

        response = admin_client.get(reverse('shops:renewal-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'expired_live': 1, 'in_holding': 0, 'expiring_soon': 1}
