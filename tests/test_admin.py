"""
Admin route tests.
Tests reservation management and the block calendar.
"""

import io
import pytest
from datetime import date
from openpyxl import load_workbook

from models.restriction import RESERVATION_KIND

ALIENWARE = 1
MACBOOK = 2


@pytest.fixture
def reservation_id(store):
    """A committed reservation for the Alienware, 5-7 June 2025."""
    new_id = store.insert_reservation({
        'first_name': 'John', 'last_name': 'Smith', 'email': 'john@example.com',
        'phone': '', 'laptop_id': ALIENWARE,
        'start_date': date(2025, 6, 5), 'end_date': date(2025, 6, 7),
    })
    store.insert_restriction({
        'laptop_id': ALIENWARE, 'reservation_id': new_id, 'restriction_id': RESERVATION_KIND,
        'start_date': date(2025, 6, 5), 'end_date': date(2025, 6, 7),
    })
    return new_id


def june_blocks(store, laptop_id):
    return [r for r in store.restrictions_for_laptop_in_range(laptop_id, date(2025, 6, 1), date(2025, 6, 30))
            if r['reservation_id'] == 0]


class TestAccessControl:
    """Tests for admin protection."""

    @pytest.mark.parametrize('route', [
        '/admin/dashboard',
        '/admin/reservations-new',
        '/admin/reservations-all',
        '/admin/reservations-calendar',
    ])
    def test_requires_login(self, client, route):
        """Anonymous visitors are sent to the login page."""
        response = client.get(route)
        assert response.status_code == 302
        assert '/user/login' in response.headers['Location']

    def test_low_access_level_forbidden(self, client, store):
        """Users below the admin level get 403."""
        store.create_user('clerk@laptop-rental.com', 'clerk123', 'Clerk', 'User', 1)
        client.post('/user/login', data={'email': 'clerk@laptop-rental.com', 'password': 'clerk123'})

        assert client.get('/admin/dashboard').status_code == 403


class TestReservationLists:
    """Tests for dashboard and reservation lists."""

    def test_dashboard(self, authenticated_client, reservation_id):
        response = authenticated_client.get('/admin/dashboard')
        assert response.status_code == 200
        assert b'Admin Dashboard' in response.data

    def test_new_and_all_lists(self, authenticated_client, store, reservation_id):
        """Processed reservations drop off the new list only."""
        assert b'Smith' in authenticated_client.get('/admin/reservations-new').data

        store.update_reservation_processed(reservation_id, 1)

        assert b'Smith' not in authenticated_client.get('/admin/reservations-new').data
        assert b'Smith' in authenticated_client.get('/admin/reservations-all').data


class TestReservationActions:
    """Tests for show, edit, process and delete."""

    def test_show(self, authenticated_client, reservation_id):
        response = authenticated_client.get(f'/admin/reservations/all/{reservation_id}')
        assert response.status_code == 200
        assert b'Alienware m15' in response.data

    def test_unknown_view(self, authenticated_client, reservation_id):
        assert authenticated_client.get(f'/admin/reservations/archive/{reservation_id}').status_code == 404

    def test_missing_reservation(self, authenticated_client):
        response = authenticated_client.get('/admin/reservations/new/999')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/admin/reservations-new')

    def test_edit_contact_fields(self, authenticated_client, store, reservation_id):
        """Contact fields are saved and the admin returns to the list."""
        response = authenticated_client.post(f'/admin/reservations/all/{reservation_id}', data={
            'first_name': 'Jane', 'last_name': 'Doe', 'email': 'jane@example.com', 'phone': '5551234',
        })
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/admin/reservations-all')

        reservation = store.get_reservation_by_id(reservation_id)
        assert reservation['first_name'] == 'Jane'
        assert reservation['start_date'] == date(2025, 6, 5)

    def test_edit_from_calendar_returns_to_month(self, authenticated_client, reservation_id):
        response = authenticated_client.post(f'/admin/reservations/calendar/{reservation_id}', data={
            'first_name': 'Jane', 'last_name': 'Doe', 'email': 'jane@example.com',
            'year': '2025', 'month': '06',
        })
        assert response.headers['Location'].endswith('/admin/reservations-calendar?y=2025&m=06')

    def test_process(self, authenticated_client, store, reservation_id):
        response = authenticated_client.post(f'/admin/process-reservation/new/{reservation_id}')
        assert response.status_code == 302
        assert store.get_reservation_by_id(reservation_id)['processed'] == 1
        assert store.new_reservations() == []

    def test_delete_frees_dates(self, authenticated_client, store, reservation_id):
        """Deleting a reservation removes its restriction too."""
        response = authenticated_client.post(
            f'/admin/delete-reservation/calendar/{reservation_id}?y=2025&m=06')
        assert response.headers['Location'].endswith('/admin/reservations-calendar?y=2025&m=06')

        assert store.get_reservation_by_id(reservation_id) is None
        assert store.restrictions_for_laptop_in_range(ALIENWARE, date(2025, 6, 5), date(2025, 6, 7)) == []


class TestCalendar:
    """Tests for the block calendar."""

    def test_render_caches_block_maps(self, authenticated_client, store, reservation_id):
        """Rendering stores one block map per laptop in the session."""
        block_id = store.insert_one_day_block(MACBOOK, date(2025, 6, 2))

        response = authenticated_client.get('/admin/reservations-calendar?y=2025&m=06')
        assert response.status_code == 200
        assert b'June 2025' in response.data
        assert b'remove_block_2_2025-06-2' in response.data

        with authenticated_client.session_transaction() as sess:
            assert sess['block_map_2_2025-06']['2025-06-2'] == block_id
            assert sess['block_map_1_2025-06']['2025-06-5'] == 0

    def test_invalid_month_redirects(self, authenticated_client):
        response = authenticated_client.get('/admin/reservations-calendar?y=2025&m=13')
        assert response.status_code == 302

    def test_save_reconciles_blocks(self, authenticated_client, store, reservation_id):
        """Unchecked blocks go, new checkboxes become blocks, reservations stay."""
        store.insert_one_day_block(MACBOOK, date(2025, 6, 2))
        kept = store.insert_one_day_block(MACBOOK, date(2025, 6, 3))
        authenticated_client.get('/admin/reservations-calendar?y=2025&m=06')

        response = authenticated_client.post('/admin/reservations-calendar', data={
            'y': '2025', 'm': '06',
            'remove_block_2_2025-06-3': str(kept),
            'add_block_1_2025-06-20': '1',
        })

        assert response.status_code == 302
        assert response.headers['Location'].endswith('/admin/reservations-calendar?y=2025&m=06')
        assert [b['id'] for b in june_blocks(store, MACBOOK)] == [kept]
        assert [b['start_date'] for b in june_blocks(store, ALIENWARE)] == [date(2025, 6, 20)]
        assert store.get_reservation_by_id(reservation_id) is not None

    def test_save_leaves_other_months_alone(self, authenticated_client, store):
        """Opening another month before saving does not touch that month's blocks."""
        july_block = store.insert_one_day_block(ALIENWARE, date(2025, 7, 10))
        june_block = store.insert_one_day_block(ALIENWARE, date(2025, 6, 10))
        authenticated_client.get('/admin/reservations-calendar?y=2025&m=06')
        authenticated_client.get('/admin/reservations-calendar?y=2025&m=07')

        authenticated_client.post('/admin/reservations-calendar', data={
            'y': '2025', 'm': '06',
            'remove_block_1_2025-06-10': str(june_block),
        })

        july = store.restrictions_for_laptop_in_range(ALIENWARE, date(2025, 7, 1), date(2025, 7, 31))
        assert [b['id'] for b in july] == [july_block]
        assert [b['id'] for b in june_blocks(store, ALIENWARE)] == [june_block]

    def test_save_without_month(self, authenticated_client, store):
        """A submission without y/m changes nothing."""
        response = authenticated_client.post('/admin/reservations-calendar', data={
            'add_block_1_2025-06-20': '1',
        })
        assert response.status_code == 302
        assert june_blocks(store, ALIENWARE) == []

    def test_save_malformed_field(self, authenticated_client, store):
        authenticated_client.get('/admin/reservations-calendar?y=2025&m=06')

        response = authenticated_client.post('/admin/reservations-calendar', data={
            'y': '2025', 'm': '06', 'add_block_x_2025-06-20': '1',
        }, follow_redirects=True)

        assert response.status_code == 200
        assert june_blocks(store, ALIENWARE) == []


class TestExport:
    """Tests for the Excel export."""

    def test_export_all(self, authenticated_client, reservation_id):
        response = authenticated_client.get('/admin/reservations-export')

        assert response.status_code == 200
        assert response.mimetype == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        assert 'attachment; filename=reservations_' in response.headers['Content-Disposition']

        ws = load_workbook(io.BytesIO(response.data)).active
        assert ws.cell(row=4, column=1).value == 'ID'
        assert ws.cell(row=5, column=1).value == reservation_id
        assert ws.cell(row=5, column=2).value == 'Alienware m15'
        assert ws.cell(row=5, column=3).value == '2025-06-05'
        assert ws.cell(row=5, column=9).value == 'No'

    def test_export_new_only(self, authenticated_client, store, reservation_id):
        store.update_reservation_processed(reservation_id, 1)

        response = authenticated_client.get('/admin/reservations-export?view=new')

        ws = load_workbook(io.BytesIO(response.data)).active
        assert ws.cell(row=2, column=1).value == 'New reservations | Total: 0'
        assert ws.cell(row=5, column=1).value is None

    def test_export_requires_login(self, client):
        assert client.get('/admin/reservations-export').status_code == 302
