import pytest

from app import create_app
from models import db


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    })
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def spot(client):
    """Spot A1, free"""
    response = client.post('/parking-spots', json={'spot_number': 'A1'})
    return response.get_json()['spot']


@pytest.fixture
def booking_payload(spot):
    return {
        'spot_id': spot['id'],
        'name': 'Bob',
        'car_number': 'XYZ123',
        'start_time': '2024-01-01T10:00:00Z',
        'duration': 60
    }
