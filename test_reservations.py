"""
Tests for booking, editing and releasing reservations
"""

import pytest

from booking import parse_start_time
from errors import ValidationError
from models import db, Reservation


def spot_occupied(client, spot_id):
    spots = client.get('/parking-spots').get_json()
    return next(s['is_occupied'] for s in spots if s['id'] == spot_id)


def get_reservations(client):
    return client.get('/reservations').get_json()


def test_book_marks_spot_occupied(client, booking_payload):
    response = client.post('/book-spot', json=booking_payload)
    assert response.status_code == 200
    assert response.get_json()['message'] == 'Parking spot reserved successfully'
    assert spot_occupied(client, booking_payload['spot_id']) is True


def test_book_twice_conflicts(client, booking_payload):
    assert client.post('/book-spot', json=booking_payload).status_code == 200

    response = client.post('/book-spot', json=booking_payload)
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Parking spot is already occupied'}
    assert len(get_reservations(client)) == 1
    assert spot_occupied(client, booking_payload['spot_id']) is True


def test_book_missing_spot(client, booking_payload):
    booking_payload['spot_id'] = 999
    response = client.post('/book-spot', json=booking_payload)
    assert response.status_code == 404
    assert response.get_json() == {'error': 'Parking spot not found'}
    assert get_reservations(client) == []


@pytest.mark.parametrize('start_time', ['2024-01-01', 'tomorrow', '2024-13-01T10:00:00Z',
                                        '2024-01-01T10:00:00', '', None,
                                        '20240101T100000Z', '2024-01-01T10Z',
                                        '2024-01-01 10:00:00Z', '2024-W01-1T10:00:00Z',
                                        '2024-01-01T10:00:00+25:00', '2024-01-01T24:00:00Z'])
def test_book_invalid_start_time(client, booking_payload, start_time):
    booking_payload['start_time'] = start_time
    response = client.post('/book-spot', json=booking_payload)
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Invalid start_time format'}
    assert spot_occupied(client, booking_payload['spot_id']) is False


def test_book_invalid_fields(client, booking_payload):
    for key, value in (('spot_id', '1'), ('duration', '60'), ('name', 5)):
        body = dict(booking_payload, **{key: value})
        assert client.post('/book-spot', json=body).status_code == 400
    assert get_reservations(client) == []


def test_list_reservations_normalizes_start_time(client, booking_payload):
    client.post('/book-spot', json=booking_payload)

    reservations = get_reservations(client)
    assert reservations == [{
        'id': 1,
        'name': 'Bob',
        'car_number': 'XYZ123',
        'spot_id': booking_payload['spot_id'],
        'start_time': '2024-01-01 10:00:00',
        'duration': 60
    }]


def test_start_time_keeps_wall_clock():
    assert str(parse_start_time('2024-01-01T10:00:00+07:00')) == '2024-01-01 10:00:00'
    assert str(parse_start_time('2024-01-01T10:00:00.123Z')) == '2024-01-01 10:00:00'
    assert str(parse_start_time('2024-01-01T10:00:00.5Z')) == '2024-01-01 10:00:00'
    assert str(parse_start_time('2024-01-01t10:00:00.123456789-03:30')) == '2024-01-01 10:00:00'
    with pytest.raises(ValidationError):
        parse_start_time('2024-01-01 10:00:00')


def test_delete_reservation_frees_spot(client, booking_payload):
    client.post('/book-spot', json=booking_payload)

    response = client.delete('/reservation/delete/1')
    assert response.status_code == 200
    assert response.get_json()['message'] == 'Reservation deleted successfully'
    assert spot_occupied(client, booking_payload['spot_id']) is False
    assert get_reservations(client) == []


def test_delete_missing_reservation(client, booking_payload):
    client.post('/book-spot', json=booking_payload)

    response = client.delete('/reservation/delete/999')
    assert response.status_code == 404
    assert response.get_json() == {'error': 'Reservation not found'}
    assert len(get_reservations(client)) == 1
    assert spot_occupied(client, booking_payload['spot_id']) is True


def test_edit_onto_occupied_spot_conflicts(client, booking_payload):
    client.post('/parking-spots', json={'spot_number': 'A2'})
    client.post('/book-spot', json=booking_payload)
    second = dict(booking_payload, spot_id=2, car_number='ABC123')
    client.post('/book-spot', json=second)

    response = client.put('/reservation/edit', json=dict(second, id=2, spot_id=booking_payload['spot_id']))
    assert response.status_code == 400
    assert get_reservations(client)[1]['spot_id'] == 2
    assert spot_occupied(client, 2) is True


def test_delete_keeps_spot_occupied_while_other_reservation_remains(app, client, booking_payload):
    client.post('/book-spot', json=booking_payload)
    # Second reservation on the same spot, written straight to the store
    with app.app_context():
        db.session.add(Reservation(name='Alice', car_number='ABC123', spot_id=booking_payload['spot_id'],
                                   start_time=parse_start_time('2024-01-01T12:00:00Z'), duration=30))
        db.session.commit()

    client.delete('/reservation/delete/1')
    assert spot_occupied(client, booking_payload['spot_id']) is True

    client.delete('/reservation/delete/2')
    assert spot_occupied(client, booking_payload['spot_id']) is False


def test_book_again_after_release(client, booking_payload):
    client.post('/book-spot', json=booking_payload)
    client.delete('/reservation/delete/1')

    response = client.post('/book-spot', json=booking_payload)
    assert response.status_code == 200
    assert spot_occupied(client, booking_payload['spot_id']) is True


def test_edit_reservation(client, booking_payload):
    client.post('/book-spot', json=booking_payload)
    body = dict(booking_payload, id=1, name='Alice', start_time='2024-02-03T08:30:00Z', duration=30)

    response = client.put('/reservation/edit', json=body)
    assert response.status_code == 200
    assert response.get_json()['message'] == 'Reservation updated successfully'

    reservation = get_reservations(client)[0]
    assert reservation['name'] == 'Alice'
    assert reservation['start_time'] == '2024-02-03 08:30:00'
    assert reservation['duration'] == 30
    assert spot_occupied(client, booking_payload['spot_id']) is True


def test_edit_missing_reservation(client, booking_payload):
    client.post('/book-spot', json=booking_payload)
    body = dict(booking_payload, id=999, name='Alice')

    response = client.put('/reservation/edit', json=body)
    assert response.status_code == 404
    assert get_reservations(client)[0]['name'] == 'Bob'


def test_edit_requires_id(client, booking_payload):
    client.post('/book-spot', json=booking_payload)
    response = client.put('/reservation/edit', json=booking_payload)
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Reservation ID is required'}


def test_edit_moves_occupancy_to_new_spot(client, booking_payload):
    client.post('/parking-spots', json={'spot_number': 'A2'})
    client.post('/book-spot', json=booking_payload)

    response = client.put('/reservation/edit', json=dict(booking_payload, id=1, spot_id=2))
    assert response.status_code == 200
    assert spot_occupied(client, booking_payload['spot_id']) is False
    assert spot_occupied(client, 2) is True
    assert get_reservations(client)[0]['spot_id'] == 2


def test_edit_onto_missing_spot(client, booking_payload):
    client.post('/book-spot', json=booking_payload)

    response = client.put('/reservation/edit', json=dict(booking_payload, id=1, spot_id=999))
    assert response.status_code == 404
    assert get_reservations(client)[0]['spot_id'] == booking_payload['spot_id']
    assert spot_occupied(client, booking_payload['spot_id']) is True


def test_book_id_out_of_range(client, booking_payload):
    for key in ('spot_id', 'duration'):
        response = client.post('/book-spot', json=dict(booking_payload, **{key: 2 ** 63}))
        assert response.status_code == 400
    assert get_reservations(client) == []
    assert spot_occupied(client, booking_payload['spot_id']) is False


def test_edit_reservation_id_out_of_range(client, booking_payload):
    client.post('/book-spot', json=booking_payload)
    response = client.put('/reservation/edit', json=dict(booking_payload, id=2 ** 63))
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Reservation ID is required'}


def test_delete_reservation_id_out_of_range(client):
    response = client.delete(f'/reservation/delete/{2 ** 64}')
    assert response.status_code == 404
    assert response.get_json() == {'error': 'Not Found'}
