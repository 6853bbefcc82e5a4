"""
Public routes: site pages, availability search and the booking flow.

The in-progress reservation ("draft") lives in the session under
'reservation' between search, laptop selection and commit.
"""

from flask import (render_template, redirect, url_for, flash, request, session,
                   Blueprint, abort, current_app)

from models.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from models.services import get_services
from utils.api_response import api_success, api_error
from utils.datetime_helpers import to_iso
from utils.messages import MESSAGES

public_bp = Blueprint('public', __name__, template_folder='../../templates/public')

DRAFT_SESSION_KEY = 'reservation'

LAPTOP_PAGES = {
    'alienware': 'alienware.html',
    'macbook': 'macbook.html',
}


# =============================================================================
# SITE PAGES
# =============================================================================

@public_bp.route('/')
def home():
    return render_template('home.html')


@public_bp.route('/about')
def about():
    return render_template('about.html')


@public_bp.route('/contact')
def contact():
    return render_template('contact.html')


@public_bp.route('/laptops/<slug>')
def laptop_page(slug):
    """Product page for one laptop model."""
    template = LAPTOP_PAGES.get(slug)
    if template is None:
        abort(404)
    return render_template(template)


# =============================================================================
# AVAILABILITY SEARCH
# =============================================================================

@public_bp.route('/search-availability', methods=['GET', 'POST'])
def search_availability():
    """
    Search availability across all laptops.

    GET: Display the date range form
    POST: List free laptops and start a draft for the range
    """
    if request.method == 'GET':
        return render_template('search_availability.html')

    start = request.form.get('start_date', '')
    end = request.form.get('end_date', '')

    try:
        laptops = get_services().workflow.search(start, end)
    except ValidationError as e:
        flash(e.message, 'error')
        return render_template('search_availability.html', errors=e.errors,
                               start_date=start, end_date=end), 400
    except PersistenceError as e:
        current_app.logger.error(f'Availability search failed: {e}')
        flash(MESSAGES['store_unavailable'], 'error')
        return redirect(url_for('public.home'))

    if not laptops:
        flash(MESSAGES['no_availability'], 'warning')
        return redirect(url_for('public.search_availability'))

    session[DRAFT_SESSION_KEY] = {
        'start_date': to_iso(start),
        'end_date': to_iso(end),
    }

    return render_template('choose_laptop.html', laptops=laptops,
                           start_date=to_iso(start), end_date=to_iso(end))


@public_bp.route('/search-availability-json', methods=['POST'])
def search_availability_json():
    """
    Check one laptop for a date range (availability modal).

    Returns:
        JSON with ok, message, laptop_id, start_date and end_date
    """
    start = request.form.get('start_date', '')
    end = request.form.get('end_date', '')
    laptop_id = request.form.get('laptop_id', '')
    echo = {'laptop_id': laptop_id, 'start_date': start, 'end_date': end}

    try:
        available = get_services().workflow.check_availability(laptop_id, start, end)
    except ValidationError as e:
        return api_error(e.message, status=400, ok=False, errors=e.errors, **echo)
    except PersistenceError as e:
        current_app.logger.error(f'Availability check for laptop {laptop_id} failed: {e}')
        return api_error(MESSAGES['store_unavailable'], status=503, ok=False, **echo)

    message = MESSAGES['available'] if available else MESSAGES['not_available']
    return api_success(message=message, ok=available, **echo)


@public_bp.route('/choose-laptop/<int:laptop_id>')
def choose_laptop(laptop_id):
    """Attach the chosen laptop to the draft from the search results."""
    draft = session.get(DRAFT_SESSION_KEY)
    if not draft:
        flash(MESSAGES['no_draft'], 'error')
        return redirect(url_for('public.home'))

    return _start_draft(laptop_id, draft.get('start_date'), draft.get('end_date'))


@public_bp.route('/rent-laptop')
def rent_laptop():
    """Direct booking link: /rent-laptop?id=<laptop>&s=<start>&e=<end>."""
    return _start_draft(request.args.get('id'), request.args.get('s'), request.args.get('e'))


def _start_draft(laptop_id, start, end):
    try:
        session[DRAFT_SESSION_KEY] = get_services().workflow.new_draft(laptop_id, start, end)
    except ValidationError as e:
        flash(e.message, 'error')
        return redirect(url_for('public.home'))
    except NotFoundError:
        flash(MESSAGES['laptop_not_found'], 'error')
        return redirect(url_for('public.home'))
    except PersistenceError as e:
        current_app.logger.error(f'Could not load laptop {laptop_id}: {e}')
        flash(MESSAGES['store_unavailable'], 'error')
        return redirect(url_for('public.home'))

    return redirect(url_for('public.make_reservation'))


# =============================================================================
# BOOKING
# =============================================================================

@public_bp.route('/make-reservation', methods=['GET', 'POST'])
def make_reservation():
    """
    Booking form for the draft in the session.

    GET: Display the contact form
    POST: Run the reservation workflow
    """
    draft = session.get(DRAFT_SESSION_KEY)
    if not draft or not draft.get('laptop_id'):
        flash(MESSAGES['no_draft'], 'error')
        return redirect(url_for('public.home'))

    if request.method == 'GET':
        return render_template('make_reservation.html', draft=draft, form={}, errors={})

    # Laptop and dates come from the draft, contact fields from the form
    form_data = {
        'first_name': request.form.get('first_name', ''),
        'last_name': request.form.get('last_name', ''),
        'email': request.form.get('email', ''),
        'phone': request.form.get('phone', ''),
        'laptop_id': draft['laptop_id'],
        'start_date': draft['start_date'],
        'end_date': draft['end_date'],
    }

    workflow = get_services().workflow
    try:
        reservation = workflow.book(form_data)
    except ValidationError as e:
        flash(MESSAGES['form_invalid'], 'error')
        return render_template('make_reservation.html', draft=draft, form=form_data,
                               errors=e.errors), 400
    except NotFoundError:
        session.pop(DRAFT_SESSION_KEY, None)
        flash(MESSAGES['laptop_not_found'], 'error')
        return redirect(url_for('public.home'))
    except ConflictError as e:
        current_app.logger.info(f'Booking conflict: {e}')
        flash(MESSAGES['laptop_unavailable'], 'error')
        return redirect(url_for('public.search_availability'))
    except PersistenceError as e:
        current_app.logger.error(f'Booking failed: {e}', exc_info=True)
        flash(MESSAGES['store_unavailable'], 'error')
        return redirect(url_for('public.home'))

    session[DRAFT_SESSION_KEY] = {
        'id': reservation['id'],
        'first_name': reservation['first_name'],
        'last_name': reservation['last_name'],
        'email': reservation['email'],
        'phone': reservation['phone'],
        'laptop_id': reservation['laptop_id'],
        'laptop_name': reservation['laptop_name'],
        'start_date': to_iso(reservation['start_date']),
        'end_date': to_iso(reservation['end_date']),
    }
    flash(MESSAGES['reservation_created'], 'success')
    return redirect(url_for('public.reservation_summary'))


@public_bp.route('/reservation-summary')
def reservation_summary():
    """Show the committed reservation once, then clear it from the session."""
    reservation = session.pop(DRAFT_SESSION_KEY, None)
    if not reservation or not reservation.get('id'):
        flash(MESSAGES['no_summary'], 'error')
        return redirect(url_for('public.home'))

    return render_template('reservation_summary.html', reservation=reservation)
