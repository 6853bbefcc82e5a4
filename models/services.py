"""
Booking engine components wired for one application.

create_app() builds a RentalServices container and keeps it in
app.extensions['laptop_rental']; routes fetch it with get_services().
"""

from dataclasses import dataclass

from flask import current_app

from models.availability import AvailabilityEngine
from models.reservation_workflow import ReservationWorkflow
from models.store import IntervalStore

EXTENSION_KEY = 'laptop_rental'


@dataclass
class RentalServices:
    """Store, engine, workflow and mailer shared by the app's routes."""

    store: IntervalStore
    engine: AvailabilityEngine
    workflow: ReservationWorkflow
    mailer: object


def build_services(store: IntervalStore, mailer, mail_from: str, operator_email: str) -> RentalServices:
    """Wire the engine and workflow over a store and a mailer."""
    engine = AvailabilityEngine(store)
    workflow = ReservationWorkflow(store, engine, mailer, mail_from, operator_email)
    return RentalServices(store=store, engine=engine, workflow=workflow, mailer=mailer)


def get_services() -> RentalServices:
    """Services of the current application."""
    return current_app.extensions[EXTENSION_KEY]
