"""
Reservation workflow.
Turns a customer's booking form into a committed reservation plus its
restriction, then notifies the customer and the operator.

Stages run strictly in order and none is retried:

1. validate  - fields, dates, laptop id (ValidationError / NotFoundError)
2. check     - re-verify availability at commit time (ConflictError)
3. reserve   - insert the reservation
4. restrict  - insert the reservation's restriction
5. notify    - enqueue confirmation mails (best effort)

Stages 2-4 share one store transaction, so a failing restriction insert
leaves no reservation behind.
"""

import logging

from models.availability import AvailabilityEngine, parse_date_range
from models.errors import ConflictError, NotFoundError, OverlapError, ValidationError
from models.restriction import RESERVATION_KIND
from models.store import IntervalStore
from utils.datetime_helpers import to_iso
from utils.mailer import MailData
from utils.validators import sanitize_input, validate_email, validate_phone, validate_positive_int

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('first_name', 'last_name', 'email', 'start_date', 'end_date', 'laptop_id')
MIN_FIRST_NAME_LENGTH = 3
MAX_FIELD_LENGTH = 255

CUSTOMER_MAIL = '''
<strong>Reservation Confirmation</strong><br>
Dear {first_name}:<br>
This is a confirmation of your reservation of the {laptop_name} from {start} to {end}.
'''

OPERATOR_MAIL = '''
<strong>Reservation Notification</strong><br>
A reservation has been made for the {laptop_name} from {start} to {end}
by {first_name} {last_name} ({email}).
'''


class ReservationWorkflow:
    """
    Booking orchestration over the Interval Store and Availability Engine.

    Args:
        store: Interval Store
        engine: Availability engine reading the same store
        mailer: Object with send(MailData)
        mail_from: Sender address for notifications
        operator_email: Recipient of operator notifications
    """

    def __init__(self, store: IntervalStore, engine: AvailabilityEngine, mailer,
                 mail_from: str, operator_email: str):
        self.store = store
        self.engine = engine
        self.mailer = mailer
        self.mail_from = mail_from
        self.operator_email = operator_email

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def search(self, start, end) -> list:
        """Laptops available for the whole range."""
        return self.engine.available_laptops(start, end)

    def check_availability(self, laptop_id, start, end) -> bool:
        """Availability of one laptop; validates the laptop id first."""
        if not validate_positive_int(laptop_id):
            raise ValidationError('Invalid laptop ID', {'laptop_id': 'Invalid laptop ID'})
        return self.engine.is_laptop_available(int(laptop_id), start, end)

    def new_draft(self, laptop_id, start, end) -> dict:
        """
        Build the session draft for a laptop and date range.

        Returns:
            dict: laptop_id, laptop_name, start_date, end_date (ISO strings)
        """
        start, end = parse_date_range(start, end)
        laptop = self.get_laptop(laptop_id)
        return {
            'laptop_id': laptop['id'],
            'laptop_name': laptop['laptop_name'],
            'start_date': to_iso(start),
            'end_date': to_iso(end),
        }

    def get_laptop(self, laptop_id) -> dict:
        if not validate_positive_int(laptop_id):
            raise ValidationError('Invalid laptop ID', {'laptop_id': 'Invalid laptop ID'})
        laptop = self.store.get_laptop_by_id(int(laptop_id))
        if laptop is None:
            raise NotFoundError(f'Laptop {laptop_id} not found')
        return laptop

    # -------------------------------------------------------------------------
    # Booking
    # -------------------------------------------------------------------------

    def validate(self, form: dict) -> dict:
        """
        Stage 1: validate and normalize the booking form.

        Returns:
            dict: Clean reservation data with date values and int laptop_id

        Raises:
            ValidationError: With per-field errors
            NotFoundError: If the laptop does not exist
        """
        data = {field: sanitize_input(form.get(field), MAX_FIELD_LENGTH)
                for field in REQUIRED_FIELDS + ('phone',)}
        errors = {}

        for field in REQUIRED_FIELDS:
            if not data[field]:
                errors[field] = 'This field cannot be blank'

        if data['first_name'] and len(data['first_name']) < MIN_FIRST_NAME_LENGTH:
            errors['first_name'] = f'This field must be at least {MIN_FIRST_NAME_LENGTH} characters long'

        if data['email'] and not validate_email(data['email']):
            errors['email'] = 'Invalid email address'

        if data['phone'] and not validate_phone(data['phone']):
            errors['phone'] = 'Invalid phone number'

        if data['laptop_id'] and not validate_positive_int(data['laptop_id']):
            errors['laptop_id'] = 'Invalid laptop ID'

        if data['start_date'] and data['end_date']:
            try:
                data['start_date'], data['end_date'] = parse_date_range(data['start_date'], data['end_date'])
            except ValidationError as e:
                errors.update(e.errors)

        if errors:
            raise ValidationError('Please correct the highlighted fields', errors)

        laptop = self.get_laptop(data['laptop_id'])
        data['laptop_id'] = laptop['id']
        data['laptop_name'] = laptop['laptop_name']
        return data

    def book(self, form: dict) -> dict:
        """
        Run the full booking workflow.

        Returns:
            dict: The committed reservation (with id and laptop_name)

        Raises:
            ValidationError, NotFoundError: Stage 1 failures, nothing persisted
            ConflictError: The range was taken before commit
            PersistenceError: Store failure, nothing persisted
        """
        data = self.validate(form)
        laptop_id, start, end = data['laptop_id'], data['start_date'], data['end_date']

        try:
            with self.store.transaction():
                blocking = self.engine.conflicts(laptop_id, start, end)
                if blocking:
                    logger.info('Booking of laptop %s %s..%s conflicts with restrictions %s',
                                laptop_id, start, end, [r['id'] for r in blocking])
                    raise ConflictError(f'{data["laptop_name"]} is no longer available from {start} to {end}')

                reservation_id = self.store.insert_reservation(data)
                self.store.insert_restriction({
                    'laptop_id': laptop_id,
                    'reservation_id': reservation_id,
                    'restriction_id': RESERVATION_KIND,
                    'start_date': start,
                    'end_date': end,
                })
        except OverlapError as e:
            # A concurrent writer committed an overlapping restriction first
            logger.warning('Booking of laptop %s %s..%s rejected by store: %s', laptop_id, start, end, e)
            raise ConflictError(f'{data["laptop_name"]} is no longer available from {start} to {end}') from e

        logger.info('Reservation %s committed for laptop %s %s..%s', reservation_id, laptop_id, start, end)

        reservation = dict(data, id=reservation_id, processed=0)
        self.notify(reservation)
        return reservation

    def notify(self, reservation: dict) -> None:
        """Stage 5: enqueue customer and operator mails. Never raises."""
        values = {
            'first_name': reservation['first_name'],
            'last_name': reservation['last_name'],
            'email': reservation['email'],
            'laptop_name': reservation.get('laptop_name') or 'laptop',
            'start': to_iso(reservation['start_date']),
            'end': to_iso(reservation['end_date']),
        }
        messages = [
            MailData(
                to=reservation['email'],
                from_addr=self.mail_from,
                subject='Reservation Confirmation',
                content=CUSTOMER_MAIL.format(**values),
            ),
            MailData(
                to=self.operator_email,
                from_addr=self.mail_from,
                subject='Reservation Notification',
                content=OPERATOR_MAIL.format(**values),
            ),
        ]

        for mail in messages:
            try:
                self.mailer.send(mail)
            except Exception as e:
                logger.error('Could not enqueue mail to %s for reservation %s: %s',
                             mail.to, reservation.get('id'), e, exc_info=True)
