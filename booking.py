"""
Spot and reservation operations.

Every operation runs in one transaction. A spot's ``is_occupied`` flag is only
changed together with the reservation rows that justify it:

- booking claims the spot with a conditional update, so two concurrent
  bookings of the same free spot cannot both succeed;
- a spot is released only when no reservation references it anymore;
- a spot with reservations cannot be deleted.
"""

import logging
import re
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import exists, false, func, select, true, update
from sqlalchemy.exc import SQLAlchemyError

from errors import ConflictError, NotFoundError, ParkingError, StoreError, ValidationError
from models import db, ParkingSpot, Reservation

logger = logging.getLogger(__name__)

MAX_ROW_ID = 2 ** 63 - 1

RFC3339_TIMESTAMP = re.compile(
    r'(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.\d+)?(?:[Zz]|[+-](\d{2}):(\d{2}))', re.ASCII)


@contextmanager
def transaction(failure_message):
    """Commit on success, roll back on any error.

    Store errors are logged with their detail and replaced by a StoreError
    carrying only ``failure_message``.
    """
    try:
        yield db.session
        db.session.commit()
    except ParkingError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('%s: %s', failure_message, e)
        raise StoreError(failure_message) from e
    except Exception:
        db.session.rollback()
        raise


def parse_start_time(value):
    """Parse an RFC 3339 timestamp, keep the wall clock, drop the offset"""
    match = RFC3339_TIMESTAMP.fullmatch(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValidationError('Invalid start_time format')

    date_part, time_part, offset_hours, offset_minutes = match.groups()
    if offset_hours is not None and (int(offset_hours) > 23 or int(offset_minutes) > 59):
        raise ValidationError('Invalid start_time format')
    try:
        # Fraction of a second is dropped
        return datetime.strptime(f'{date_part} {time_part}', '%Y-%m-%d %H:%M:%S')
    except ValueError:
        raise ValidationError('Invalid start_time format')


def _is_int(value):
    """Integer that fits a signed 64-bit column"""
    return (isinstance(value, int) and not isinstance(value, bool)
            and -MAX_ROW_ID - 1 <= value <= MAX_ROW_ID)


def _spot_number(data):
    spot_number = data.get('spot_number')
    if not isinstance(spot_number, str) or not spot_number.strip():
        raise ValidationError('Spot number is required')
    return spot_number.strip()


def reservation_fields(data):
    """Validate a reservation payload into column values"""
    spot_id = data.get('spot_id')
    if not _is_int(spot_id):
        raise ValidationError('Spot ID is required')

    name = data.get('name', '')
    car_number = data.get('car_number', '')
    if not isinstance(name, str) or not isinstance(car_number, str):
        raise ValidationError('Invalid input')

    duration = data.get('duration', 0)
    if not _is_int(duration):
        raise ValidationError('Invalid duration')

    return {
        'name': name,
        'car_number': car_number,
        'spot_id': spot_id,
        'start_time': parse_start_time(data.get('start_time')),
        'duration': duration,
    }


def _has_reservations(spot_id):
    return db.session.scalar(select(exists().where(Reservation.spot_id == spot_id)))


def _claim_spot(spot_id):
    """Mark a free spot occupied. Raises if it is missing or already taken."""
    if db.session.get(ParkingSpot, spot_id) is None:
        logger.info('Spot ID %s not found', spot_id)
        raise NotFoundError('Parking spot not found')

    result = db.session.execute(
        update(ParkingSpot)
        .where(ParkingSpot.id == spot_id, ParkingSpot.is_occupied == false())
        .values(is_occupied=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.info('Spot ID %s is already occupied', spot_id)
        raise ConflictError('Parking spot is already occupied')


def _release_spot(spot_id):
    """Mark a spot free unless some reservation still references it"""
    db.session.flush()
    db.session.execute(
        update(ParkingSpot)
        .where(ParkingSpot.id == spot_id, ~exists().where(Reservation.spot_id == spot_id))
        .values(is_occupied=False)
        .execution_options(synchronize_session=False)
    )


# Parking spots

def list_spots():
    with transaction('Failed to fetch parking spots') as session:
        return session.scalars(select(ParkingSpot).order_by(ParkingSpot.id)).all()


def create_spot(data):
    spot_number = _spot_number(data)
    with transaction('Failed to create parking spot') as session:
        taken = session.scalar(select(exists().where(ParkingSpot.spot_number == spot_number)))
        if taken:
            raise ConflictError('Spot number already exists')
        spot = ParkingSpot(spot_number=spot_number, is_occupied=False)
        session.add(spot)
    logger.info('Created parking spot %s (%s)', spot.id, spot.spot_number)
    return spot


def edit_spot(spot_id, data):
    spot_number = _spot_number(data)
    is_occupied = data.get('is_occupied')
    if is_occupied is not None and not isinstance(is_occupied, bool):
        raise ValidationError('Invalid is_occupied value')

    with transaction('Failed to update parking spot') as session:
        spot = session.get(ParkingSpot, spot_id)
        if spot is None:
            raise NotFoundError('Parking spot not found')

        taken = session.scalar(select(exists().where(
            ParkingSpot.spot_number == spot_number, ParkingSpot.id != spot_id)))
        if taken:
            raise ConflictError('Spot number already exists')

        # Occupancy follows the reservations, it can only be restated here
        if is_occupied is not None and is_occupied != _has_reservations(spot_id):
            if is_occupied:
                raise ConflictError('Parking spot has no reservation')
            raise ConflictError('Parking spot has active reservations')

        spot.spot_number = spot_number
    return spot


def delete_spot(spot_id):
    with transaction('Failed to delete parking spot') as session:
        spot = session.get(ParkingSpot, spot_id)
        if spot is None:
            raise NotFoundError('Parking spot not found')
        if _has_reservations(spot_id):
            raise ConflictError('Parking spot has active reservations')
        session.delete(spot)
    logger.info('Deleted parking spot %s', spot_id)


# Reservations

def list_reservations():
    with transaction('Failed to fetch reservations') as session:
        return session.scalars(select(Reservation).order_by(Reservation.id)).all()


def book_spot(data):
    fields = reservation_fields(data)
    with transaction('Failed to create reservation') as session:
        _claim_spot(fields['spot_id'])
        reservation = Reservation(**fields)
        session.add(reservation)
    logger.info('Reserved spot %s for %s (reservation %s)',
                reservation.spot_id, reservation.car_number, reservation.id)
    return reservation


def edit_reservation(data):
    reservation_id = data.get('id')
    if not _is_int(reservation_id):
        raise ValidationError('Reservation ID is required')
    fields = reservation_fields(data)

    with transaction('Failed to update reservation') as session:
        reservation = session.get(Reservation, reservation_id)
        if reservation is None:
            raise NotFoundError('Reservation not found')

        old_spot_id = reservation.spot_id
        if fields['spot_id'] != old_spot_id:
            _claim_spot(fields['spot_id'])

        for key, value in fields.items():
            setattr(reservation, key, value)

        if fields['spot_id'] != old_spot_id:
            _release_spot(old_spot_id)
    return reservation


def delete_reservation(reservation_id):
    with transaction('Failed to delete reservation') as session:
        reservation = session.get(Reservation, reservation_id)
        if reservation is None:
            raise NotFoundError('Reservation not found')
        spot_id = reservation.spot_id
        session.delete(reservation)
        _release_spot(spot_id)
    logger.info('Deleted reservation %s, spot %s', reservation_id, spot_id)


def count_occupied():
    with transaction('Failed to count parking spots') as session:
        total = session.scalar(select(func.count()).select_from(ParkingSpot))
        occupied = session.scalar(
            select(func.count()).select_from(ParkingSpot).where(ParkingSpot.is_occupied == true()))
    return total, occupied
