"""
Admin routes for reservation management.
Provides the dashboard, reservation lists, reservation editing and the
month calendar where manual blocks are added and removed.
"""

from flask import render_template, redirect, url_for, flash, request, session, Blueprint, abort, current_app

from models.errors import PersistenceError, ValidationError
from models.reservation_calendar import (block_map_session_key, build_month_calendar,
                                         reconcile_blocks, resolve_month)
from models.services import get_services
from utils.datetime_helpers import get_today
from utils.decorators import ADMIN_ACCESS_LEVEL, access_level_required, login_required
from utils.messages import MESSAGES
from utils.validators import sanitize_input

admin_bp = Blueprint('admin', __name__, template_folder='../../templates/admin')

from blueprints.admin import exports
exports.register_routes(admin_bp)


# The list a reservation was opened from; actions redirect back to it
RESERVATION_VIEWS = ('new', 'all', 'calendar')


def _back_to(view: str, year: str = '', month: str = ''):
    """Redirect to /admin/reservations-<view>, keeping the calendar month."""
    endpoint = {
        'new': 'admin.reservations_new',
        'all': 'admin.reservations_all',
        'calendar': 'admin.reservations_calendar',
    }[view]
    if year and month:
        return redirect(url_for(endpoint, y=year, m=month))
    return redirect(url_for(endpoint))


def _check_view(view: str) -> None:
    if view not in RESERVATION_VIEWS:
        abort(404)


@admin_bp.route('/dashboard')
@login_required
@access_level_required(ADMIN_ACCESS_LEVEL)
def dashboard():
    """Admin dashboard with summary statistics."""
    store = get_services().store
    try:
        stats = {
            'new_reservations': len(store.new_reservations()),
            'total_reservations': len(store.all_reservations()),
            'laptops': len(store.all_laptops()),
        }
    except PersistenceError as e:
        current_app.logger.error(f'Dashboard statistics failed: {e}')
        flash(MESSAGES['store_unavailable'], 'error')
        stats = {}

    return render_template('dashboard.html', stats=stats)


# =============================================================================
# RESERVATIONS
# =============================================================================

@admin_bp.route('/reservations-new')
@login_required
@access_level_required(ADMIN_ACCESS_LEVEL)
def reservations_new():
    """List unprocessed reservations."""
    reservations = get_services().store.new_reservations()
    return render_template('reservations.html', reservations=reservations, view='new')


@admin_bp.route('/reservations-all')
@login_required
@access_level_required(ADMIN_ACCESS_LEVEL)
def reservations_all():
    """List all reservations."""
    reservations = get_services().store.all_reservations()
    return render_template('reservations.html', reservations=reservations, view='all')


@admin_bp.route('/reservations/<view>/<int:reservation_id>', methods=['GET', 'POST'])
@login_required
@access_level_required(ADMIN_ACCESS_LEVEL)
def reservation_show(view, reservation_id):
    """
    Show a reservation and edit its contact fields.

    GET: Display reservation
    POST: Save first/last name, email and phone
    """
    _check_view(view)
    store = get_services().store

    reservation = store.get_reservation_by_id(reservation_id)
    if not reservation:
        flash(MESSAGES['reservation_not_found'], 'error')
        return _back_to(view)

    if request.method == 'POST':
        year = request.form.get('year', '')
        month = request.form.get('month', '')

        reservation.update({
            'first_name': sanitize_input(request.form.get('first_name'), 255),
            'last_name': sanitize_input(request.form.get('last_name'), 255),
            'email': sanitize_input(request.form.get('email'), 255),
            'phone': sanitize_input(request.form.get('phone'), 255),
        })

        try:
            store.update_reservation(reservation)
        except PersistenceError as e:
            current_app.logger.error(f'Error updating reservation {reservation_id}: {e}')
            flash(MESSAGES['store_unavailable'], 'error')
            return redirect(url_for('admin.reservation_show', view=view, reservation_id=reservation_id))

        flash(MESSAGES['reservation_updated'], 'success')
        return _back_to(view, year, month)

    return render_template('reservation_detail.html', reservation=reservation, view=view,
                           year=request.args.get('y', ''), month=request.args.get('m', ''))


@admin_bp.route('/process-reservation/<view>/<int:reservation_id>', methods=['POST'])
@login_required
@access_level_required(ADMIN_ACCESS_LEVEL)
def reservation_process(view, reservation_id):
    """Mark a reservation as processed."""
    _check_view(view)
    year = request.args.get('y', '')
    month = request.args.get('m', '')

    try:
        updated = get_services().store.update_reservation_processed(reservation_id, 1)
    except PersistenceError as e:
        current_app.logger.error(f'Error processing reservation {reservation_id}: {e}')
        flash(MESSAGES['store_unavailable'], 'error')
        return _back_to(view, year, month)

    if updated:
        flash(MESSAGES['reservation_processed'], 'success')
    else:
        flash(MESSAGES['reservation_not_found'], 'error')
    return _back_to(view, year, month)


@admin_bp.route('/delete-reservation/<view>/<int:reservation_id>', methods=['POST'])
@login_required
@access_level_required(ADMIN_ACCESS_LEVEL)
def reservation_delete(view, reservation_id):
    """Delete a reservation and free its dates."""
    _check_view(view)
    year = request.args.get('y', '')
    month = request.args.get('m', '')

    try:
        deleted = get_services().store.delete_reservation(reservation_id)
    except PersistenceError as e:
        current_app.logger.error(f'Error deleting reservation {reservation_id}: {e}')
        flash(MESSAGES['store_unavailable'], 'error')
        return _back_to(view, year, month)

    if deleted:
        current_app.logger.info(f'Reservation {reservation_id} deleted')
        flash(MESSAGES['reservation_deleted'], 'success')
    else:
        flash(MESSAGES['reservation_not_found'], 'error')
    return _back_to(view, year, month)


# =============================================================================
# CALENDAR
# =============================================================================

@admin_bp.route('/reservations-calendar', methods=['GET', 'POST'])
@login_required
@access_level_required(ADMIN_ACCESS_LEVEL)
def reservations_calendar():
    """
    Month calendar of reservations and manual blocks.

    GET: Render the month (?y=&m=) and cache each laptop's block map
    POST: Reconcile the submitted block checkboxes with the store
    """
    if request.method == 'POST':
        return _save_calendar()

    try:
        first = resolve_month(request.args.get('y'), request.args.get('m'), get_today())
        calendar_data = build_month_calendar(get_services().store, first)
    except ValidationError as e:
        flash(e.message, 'error')
        return redirect(url_for('admin.reservations_calendar'))
    except PersistenceError as e:
        current_app.logger.error(f'Error building calendar: {e}')
        flash(MESSAGES['store_unavailable'], 'error')
        return redirect(url_for('admin.dashboard'))

    for laptop in calendar_data['laptops']:
        session[block_map_session_key(laptop['id'], first)] = laptop['block_map']

    return render_template('calendar.html', **calendar_data)


def _save_calendar():
    year = request.form.get('y', '')
    month = request.form.get('m', '')

    if not year or not month:
        flash(MESSAGES['invalid_month'], 'error')
        return redirect(url_for('admin.reservations_calendar'))
    try:
        first = resolve_month(year, month)
    except ValidationError as e:
        flash(e.message, 'error')
        return redirect(url_for('admin.reservations_calendar'))

    store = get_services().store
    try:
        block_maps = {
            laptop['id']: session.get(block_map_session_key(laptop['id'], first), {})
            for laptop in store.all_laptops()
        }
        reconcile_blocks(store, block_maps, request.form, month=first)
    except ValidationError as e:
        flash(e.message, 'error')
        return redirect(url_for('admin.reservations_calendar', y=year, m=month))
    except PersistenceError as e:
        current_app.logger.error(f'Error saving calendar: {e}')
        flash(MESSAGES['store_unavailable'], 'error')
        return redirect(url_for('admin.reservations_calendar', y=year, m=month))

    flash(MESSAGES['calendar_saved'], 'success')
    return redirect(url_for('admin.reservations_calendar', y=year, m=month))
