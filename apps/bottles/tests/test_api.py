import pytest
from decimal import Decimal
from uuid import uuid4
from django.urls import reverse
from rest_framework import status
from apps.bottles.models import MasterBottle, UserBottle, BottleStatus


# =============================================================================
# Catalogue API Tests
# =============================================================================

@pytest.mark.django_db
class TestMasterBottleAPI:
    """Tests for /api/master-bottles/"""

    def test_search_catalogue(self, authenticated_client, master_bottle, second_master_bottle):
        url = reverse('bottles:master-bottle-list')
        response = authenticated_client.get(url, {'search': 'eagle'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['name'] == 'Eagle Rare 10'

    def test_create_catalogue_entry(self, authenticated_client):
        url = reverse('bottles:master-bottle-list')
        response = authenticated_client.post(url, {
            'name': 'Weller Special Reserve',
            'brand': 'Weller',
            'distillery': 'Buffalo Trace',
            'category': 'Bourbon',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert MasterBottle.objects.filter(name='Weller Special Reserve').exists()

    def test_create_duplicate(self, authenticated_client, master_bottle):
        url = reverse('bottles:master-bottle-list')
        response = authenticated_client.post(url, {
            'name': 'EAGLE RARE 10',
            'brand': 'Eagle Rare',
            'distillery': 'Buffalo Trace',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'already exists' in response.data['error']

    def test_retrieve_malformed_id(self, authenticated_client):
        url = reverse('bottles:master-bottle-detail', kwargs={'pk': 'not-a-uuid'})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse('bottles:master-bottle-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Collection API Tests
# =============================================================================

@pytest.mark.django_db
class TestUserBottleAPI:
    """Tests for /api/user-bottles/"""

    def test_list_only_own_bottles(self, authenticated_client, unopened_bottle, other_users_bottle):
        response = authenticated_client.get(reverse('bottles:user-bottle-list'))

        assert response.status_code == status.HTTP_200_OK
        ids = [bottle['id'] for bottle in response.data['results']]
        assert ids == [str(unopened_bottle.id)]

    def test_add_bottle(self, authenticated_client, collector, master_bottle):
        response = authenticated_client.post(reverse('bottles:user-bottle-list'), {
            'master_bottle': str(master_bottle.id),
            'purchase_price': '44.99',
            'location_area': 'Bar cart',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == BottleStatus.UNOPENED
        assert response.data['master_bottle_detail']['name'] == 'Eagle Rare 10'
        assert UserBottle.objects.filter(user=collector).count() == 1

    def test_add_unknown_master_bottle(self, authenticated_client):
        response = authenticated_client.post(
            reverse('bottles:user-bottle-list'), {'master_bottle': str(uuid4())}, format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_other_users_bottle_is_not_found(self, authenticated_client, other_users_bottle):
        url = reverse('bottles:user-bottle-detail', kwargs={'pk': other_users_bottle.id})

        assert authenticated_client.get(url).status_code == status.HTTP_404_NOT_FOUND
        assert authenticated_client.delete(url).status_code == status.HTTP_404_NOT_FOUND
        assert UserBottle.objects.filter(id=other_users_bottle.id).exists()

    def test_update_bottle(self, authenticated_client, unopened_bottle):
        url = reverse('bottles:user-bottle-detail', kwargs={'pk': unopened_bottle.id})
        response = authenticated_client.patch(url, {'location_bin': 'C3'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['location_bin'] == 'C3'

    def test_delete_bottle(self, authenticated_client, unopened_bottle):
        url = reverse('bottles:user-bottle-detail', kwargs={'pk': unopened_bottle.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not UserBottle.objects.filter(id=unopened_bottle.id).exists()

    def test_open_bottle(self, authenticated_client, unopened_bottle):
        url = reverse('bottles:user-bottle-open', kwargs={'pk': unopened_bottle.id})
        response = authenticated_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == BottleStatus.OPENED

    def test_open_twice(self, authenticated_client, opened_bottle):
        url = reverse('bottles:user-bottle-open', kwargs={'pk': opened_bottle.id})
        response = authenticated_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data

    def test_fill_level(self, authenticated_client, opened_bottle):
        url = reverse('bottles:user-bottle-fill-level', kwargs={'pk': opened_bottle.id})
        response = authenticated_client.patch(url, {'fill_level': '65.5', 'reason': 'shared'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data['fill_level']) == Decimal('65.5')

    def test_fill_level_invalid_reason(self, authenticated_client, opened_bottle):
        url = reverse('bottles:user-bottle-fill-level', kwargs={'pk': opened_bottle.id})
        response = authenticated_client.patch(url, {'fill_level': '50', 'reason': 'spilled'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_print_label(self, authenticated_client, unopened_bottle):
        url = reverse('bottles:user-bottle-print-label', kwargs={'pk': unopened_bottle.id})
        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['last_label_printed_at'] is not None

    def test_clear_collection(self, authenticated_client, collector, unopened_bottle, opened_bottle, other_users_bottle):
        response = authenticated_client.delete(reverse('bottles:user-bottle-clear'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['deleted_count'] == 2
        assert response.data['message'] == 'Successfully deleted 2 bottles from your collection'
        assert not UserBottle.objects.filter(user=collector).exists()
        assert UserBottle.objects.filter(id=other_users_bottle.id).exists()
        assert MasterBottle.objects.count() == 2


# =============================================================================
# Label API Tests
# =============================================================================

@pytest.mark.django_db
class TestLabelAPI:
    """Tests for /api/labels/"""

    def test_label_queue(self, authenticated_client, unopened_bottle):
        response = authenticated_client.get(reverse('bottles:label-bottles'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['last_print_session_date'] is None

    def test_label_queue_camel_case_date_range(self, authenticated_client, unopened_bottle):
        """The dateRange spelling still needs both dates."""
        response = authenticated_client.get(reverse('bottles:label-bottles'), {'filter': 'dateRange'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_filter(self, authenticated_client):
        response = authenticated_client.get(reverse('bottles:label-bottles'), {'filter': 'recent'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_record_print_session(self, authenticated_client, collector, unopened_bottle, opened_bottle):
        response = authenticated_client.post(
            reverse('bottles:label-bottles'),
            {'bottle_ids': [str(unopened_bottle.id), str(opened_bottle.id)]},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2
        collector.refresh_from_db()
        assert collector.last_print_session_date is not None

        count = authenticated_client.get(reverse('bottles:label-count'))
        assert count.data['count'] == 0

    def test_record_print_session_invalid_ids(self, authenticated_client):
        response = authenticated_client.post(
            reverse('bottles:label-bottles'), {'bottle_ids': ['nope']}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Invalid bottle IDs'

    def test_label_qr(self, authenticated_client, unopened_bottle):
        url = reverse('bottles:user-bottle-label-qr', kwargs={'pk': unopened_bottle.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'] == 'image/png'
        assert response.content.startswith(b'\x89PNG')

    def test_label_qr_other_users_bottle(self, authenticated_client, other_users_bottle):
        url = reverse('bottles:user-bottle-label-qr', kwargs={'pk': other_users_bottle.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Dashboard and Location API Tests
# =============================================================================

@pytest.mark.django_db
class TestDashboardAPI:
    """Tests for /api/dashboard/stats/ and /api/locations/"""

    def test_dashboard_stats(self, authenticated_client, unopened_bottle, opened_bottle):
        response = authenticated_client.get(reverse('bottles:dashboard-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['stats']['total_bottles'] == 2
        assert response.data['stats']['total_value'] == '145.00'
        assert response.data['top_valued_bottles'][0]['bottle']['name'] == 'Lagavulin 16'
        assert response.data['top_valued_bottles'][0]['total_value'] == '100.00'

    def test_dashboard_requires_auth(self, api_client):
        response = api_client.get(reverse('bottles:dashboard-stats'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_location_areas(self, authenticated_client, unopened_bottle):
        response = authenticated_client.get(reverse('bottles:location-areas'), {'q': 'cab'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'areas': ['Cabinet']}

    def test_location_bins(self, authenticated_client, unopened_bottle):
        response = authenticated_client.get(reverse('bottles:location-bins'), {'area': 'Cabinet'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'bins': ['A1']}

    def test_location_bins_without_area(self, authenticated_client, unopened_bottle):
        response = authenticated_client.get(reverse('bottles:location-bins'))

        assert response.data == {'bins': []}
