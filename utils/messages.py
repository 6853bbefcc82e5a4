"""
Centralized UI messages.
All user-facing text in one place for consistency.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Welcome {name}',
    'logout_success': 'You have been logged out',
    'reservation_created': 'Reservation submitted, a confirmation email is on its way',
    'reservation_updated': 'Reservation updated',
    'reservation_processed': 'Reservation marked as processed',
    'reservation_deleted': 'Reservation deleted',
    'calendar_saved': 'Changes saved',

    # Error messages
    'invalid_credentials': 'Invalid email or password',
    'permission_denied': 'You do not have permission to access this page',
    'invalid_date_range': 'Start date can not be after end date',
    'no_availability': 'No laptops are available for those dates',
    'laptop_unavailable': 'Sorry, someone just booked this laptop for those dates',
    'laptop_not_found': 'Laptop not found',
    'reservation_not_found': 'Reservation not found',
    'no_draft': 'Please search for availability first',
    'no_summary': 'Can not find a reservation to summarize',
    'form_invalid': 'Please correct the highlighted fields',
    'invalid_month': 'Invalid year or month',
    'store_unavailable': 'Something went wrong, please try again later',

    # Availability
    'available': 'Available!',
    'not_available': 'Not available for those dates',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message by key with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message string
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
