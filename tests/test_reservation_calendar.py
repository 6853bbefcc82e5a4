"""
Tests for the admin calendar: month rendering and block reconciliation.
"""

import pytest
from datetime import date

from models.errors import ValidationError
from models.reservation_calendar import (build_month_calendar, parse_block_field,
                                         reconcile_blocks, resolve_month)
from models.restriction import RESERVATION_KIND

ALIENWARE = 1
MACBOOK = 2
JUNE = date(2025, 6, 1)


def book(store, laptop_id, start, end):
    """Insert a reservation with its restriction."""
    reservation_id = store.insert_reservation({
        'first_name': 'John', 'last_name': 'Smith', 'email': 'john@example.com',
        'laptop_id': laptop_id, 'start_date': start, 'end_date': end,
    })
    store.insert_restriction({
        'laptop_id': laptop_id, 'reservation_id': reservation_id,
        'restriction_id': RESERVATION_KIND, 'start_date': start, 'end_date': end,
    })
    return reservation_id


def blocks_in_june(store, laptop_id):
    return [r for r in store.restrictions_for_laptop_in_range(laptop_id, JUNE, date(2025, 6, 30))
            if r['reservation_id'] == 0]


def block_maps(store):
    """Block maps as the render pass leaves them in the session."""
    calendar_data = build_month_calendar(store, JUNE)
    return {laptop['id']: laptop['block_map'] for laptop in calendar_data['laptops']}


class TestResolveMonth:
    """Tests for month selection."""

    def test_defaults_to_current_month(self):
        """No year and month means today's month."""
        assert resolve_month(None, None, date(2025, 2, 17)) == date(2025, 2, 1)

    def test_explicit_month(self):
        """Query string values are parsed."""
        assert resolve_month('2025', '06') == JUNE

    @pytest.mark.parametrize('year,month', [('2025', '13'), ('abc', '1'), ('2025', '')])
    def test_invalid_month(self, year, month):
        """Invalid values raise ValidationError."""
        with pytest.raises(ValidationError):
            resolve_month(year, month)


class TestBuildMonthCalendar:
    """Tests for the render pass."""

    def test_navigation_values(self, memory_store):
        """Previous and next months wrap across years."""
        data = build_month_calendar(memory_store, date(2025, 12, 1))

        assert data['days_in_month'] == 31
        assert (data['this_month'], data['this_month_year']) == ('12', '2025')
        assert (data['last_month'], data['last_month_year']) == ('11', '2025')
        assert (data['next_month'], data['next_month_year']) == ('01', '2026')

    def test_day_keys_are_not_zero_padded(self, memory_store):
        """Keys match the add_block_/remove_block_ field suffixes."""
        data = build_month_calendar(memory_store, JUNE)
        assert data['days'][0]['key'] == '2025-06-1'
        assert data['days'][-1]['key'] == '2025-06-30'

    def test_reservation_and_block_maps(self, memory_store):
        """Reservations and blocks are mapped per day, clamped to the month."""
        reservation_id = book(memory_store, ALIENWARE, date(2025, 5, 30), date(2025, 6, 2))
        block_id = memory_store.insert_one_day_block(ALIENWARE, date(2025, 6, 10))

        laptop = build_month_calendar(memory_store, JUNE)['laptops'][0]

        assert laptop['laptop_name'] == 'Alienware m15'
        assert laptop['reservation_map']['2025-06-1'] == reservation_id
        assert laptop['reservation_map']['2025-06-2'] == reservation_id
        assert laptop['reservation_map']['2025-06-3'] == 0
        assert laptop['block_map']['2025-06-10'] == block_id
        assert sum(1 for v in laptop['block_map'].values() if v) == 1
        assert len(laptop['block_map']) == 30


class TestParseBlockField:
    """Tests for compound field names."""

    def test_valid_name(self):
        """Laptop and day are split from the field name."""
        assert parse_block_field('add_block_3_2025-06-2', 'add_block_') == (3, date(2025, 6, 2))

    @pytest.mark.parametrize('name', ['add_block_x_2025-06-2', 'add_block_3', 'add_block_3_2025-13-1'])
    def test_malformed_name(self, name):
        """Malformed names raise ValidationError."""
        with pytest.raises(ValidationError):
            parse_block_field(name, 'add_block_')


class TestReconcileBlocks:
    """Tests for the submit pass."""

    def test_unchecked_blocks_are_removed(self, memory_store):
        """With no keep flags and no additions every block of the month goes."""
        for day in (2, 9, 16):
            memory_store.insert_one_day_block(MACBOOK, date(2025, 6, day))

        result = reconcile_blocks(memory_store, block_maps(memory_store), {})

        assert result == {'deleted': 3, 'added': 0, 'skipped': 0}
        assert blocks_in_june(memory_store, MACBOOK) == []

    def test_kept_blocks_survive(self, memory_store):
        """A remove_block_ flag keeps its block."""
        kept = memory_store.insert_one_day_block(MACBOOK, date(2025, 6, 2))
        memory_store.insert_one_day_block(MACBOOK, date(2025, 6, 3))

        form = {'remove_block_2_2025-06-2': str(kept)}
        reconcile_blocks(memory_store, block_maps(memory_store), form)

        assert [b['id'] for b in blocks_in_june(memory_store, MACBOOK)] == [kept]

    def test_add_blocks(self, memory_store):
        """Each add_block_ field becomes a one-day block."""
        form = {'add_block_1_2025-06-5': '1', 'add_block_2_2025-06-6': '1'}

        result = reconcile_blocks(memory_store, block_maps(memory_store), form)

        assert result['added'] == 2
        [block] = blocks_in_june(memory_store, ALIENWARE)
        assert block['start_date'] == block['end_date'] == date(2025, 6, 5)
        assert len(blocks_in_june(memory_store, MACBOOK)) == 1

    def test_resubmission_is_idempotent(self, memory_store):
        """Submitting the same form twice gives the same state as once."""
        removed = memory_store.insert_one_day_block(ALIENWARE, date(2025, 6, 2))
        maps = block_maps(memory_store)
        form = {'add_block_1_2025-06-7': '1'}

        first = reconcile_blocks(memory_store, maps, form)
        state = blocks_in_june(memory_store, ALIENWARE)
        second = reconcile_blocks(memory_store, maps, form)

        assert first == {'deleted': 1, 'added': 1, 'skipped': 0}
        assert second == {'deleted': 0, 'added': 0, 'skipped': 1}
        assert blocks_in_june(memory_store, ALIENWARE) == state
        assert all(b['id'] != removed for b in state)

    def test_stale_map_never_deletes_reservations(self, memory_store):
        """A cached block id now owned by a reservation is left alone."""
        reservation_id = book(memory_store, ALIENWARE, date(2025, 6, 3), date(2025, 6, 3))
        [restriction] = memory_store.restrictions_for_laptop_in_range(
            ALIENWARE, date(2025, 6, 3), date(2025, 6, 3))
        stale = {ALIENWARE: {'2025-06-3': restriction['id']}}

        result = reconcile_blocks(memory_store, stale, {})

        assert result['deleted'] == 0
        assert memory_store.get_reservation_by_id(reservation_id) is not None

    def test_add_on_reserved_day_skipped(self, memory_store):
        """Days already restricted by a reservation are not blocked again."""
        book(memory_store, ALIENWARE, date(2025, 6, 3), date(2025, 6, 5))

        result = reconcile_blocks(memory_store, block_maps(memory_store), {'add_block_1_2025-06-4': '1'})

        assert result == {'deleted': 0, 'added': 0, 'skipped': 1}

    def test_month_bound_limits_deletions(self, memory_store):
        """Cached days outside the submitted month are never deleted."""
        july_block = memory_store.insert_one_day_block(ALIENWARE, date(2025, 7, 10))
        maps = {ALIENWARE: {'2025-07-10': july_block}}

        result = reconcile_blocks(memory_store, maps, {}, month=JUNE)

        assert result['deleted'] == 0
        assert memory_store.restrictions_for_laptop_in_range(
            ALIENWARE, date(2025, 7, 10), date(2025, 7, 10))[0]['id'] == july_block

    def test_missing_session_maps(self, memory_store):
        """No cached maps means nothing is deleted."""
        memory_store.insert_one_day_block(ALIENWARE, date(2025, 6, 2))

        result = reconcile_blocks(memory_store, {ALIENWARE: None}, {})

        assert result['deleted'] == 0
        assert len(blocks_in_june(memory_store, ALIENWARE)) == 1

    def test_malformed_add_field_applies_nothing(self, memory_store):
        """Field names are checked before any change."""
        memory_store.insert_one_day_block(ALIENWARE, date(2025, 6, 2))
        maps = block_maps(memory_store)

        with pytest.raises(ValidationError):
            reconcile_blocks(memory_store, maps, {'add_block_one_2025-06-4': '1'})

        assert len(blocks_in_june(memory_store, ALIENWARE)) == 1

    def test_sqlite_store(self, store):
        """Reconciliation against the database."""
        store.insert_one_day_block(ALIENWARE, date(2025, 6, 2))
        maps = block_maps(store)

        result = reconcile_blocks(store, maps, {'add_block_1_2025-06-20': '1'})

        assert result == {'deleted': 1, 'added': 1, 'skipped': 0}
        assert [b['start_date'] for b in blocks_in_june(store, ALIENWARE)] == [date(2025, 6, 20)]
