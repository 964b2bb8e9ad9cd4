import logging
from datetime import datetime, timezone

from flask import Blueprint, Flask, jsonify, request
from flask_cors import CORS
from werkzeug.routing import IntegerConverter

import booking
from config import ensure_sqlite_dir, load_config
from errors import ValidationError, register_error_handlers
from models import db

api = Blueprint('api', __name__)


class RowIdConverter(IntegerConverter):
    """Path id that fits the id columns, larger values do not match the route"""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault('max', booking.MAX_ROW_ID)
        super().__init__(map, *args, **kwargs)


def request_data():
    """JSON object body of the current request"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Invalid input')
    return data


# Parking spot routes
@api.route('/parking-spots', methods=['GET'])
def get_all_parking_spots():
    """List all spots"""
    return jsonify([spot.as_dict() for spot in booking.list_spots()])


@api.route('/parking-spots', methods=['POST'])
def create_parking_spot():
    """Add a spot, always free at creation"""
    spot = booking.create_spot(request_data())
    return jsonify({'message': 'Parking spot created successfully', 'spot': spot.as_dict()})


@api.route('/parking-spots/<row_id:spot_id>', methods=['PUT'])
def edit_parking_spot(spot_id):
    spot = booking.edit_spot(spot_id, request_data())
    return jsonify({'message': 'Parking spot updated successfully', 'spot': spot.as_dict()})


@api.route('/parking-spots/<row_id:spot_id>', methods=['DELETE'])
def delete_parking_spot(spot_id):
    booking.delete_spot(spot_id)
    return jsonify({'message': 'Parking spot deleted successfully'})


# Reservation routes
@api.route('/book-spot', methods=['POST'])
def book_parking_spot():
    """Reserve a free spot"""
    reservation = booking.book_spot(request_data())
    return jsonify({'message': 'Parking spot reserved successfully', 'reservation': reservation.as_dict()})


@api.route('/reservation/edit', methods=['PUT'])
def edit_reservation():
    """Overwrite a reservation, id comes in the body"""
    reservation = booking.edit_reservation(request_data())
    return jsonify({'message': 'Reservation updated successfully', 'reservation': reservation.as_dict()})


@api.route('/reservation/delete/<row_id:reservation_id>', methods=['DELETE'])
def delete_reservation(reservation_id):
    booking.delete_reservation(reservation_id)
    return jsonify({'message': 'Reservation deleted successfully'})


@api.route('/reservations', methods=['GET'])
def get_reservations():
    return jsonify([res.as_dict() for res in booking.list_reservations()])


@api.route('/summary', methods=['GET'])
def get_summary():
    """Aggregated stats (total, occupied, available)"""
    total, occupied = booking.count_occupied()
    return jsonify({
        'total': total,
        'occupied': occupied,
        'available': total - occupied,
        'occupancy_rate': round((occupied / total * 100) if total > 0 else 0, 2)
    })


# Health check
@api.route('/health')
def health():
    return jsonify({'status': 'healthy', 'timestamp': datetime.now(timezone.utc).isoformat()})


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.update(load_config())
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )

    CORS(app, resources={r"/*": {"origins": "*"}},
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
         allow_headers=['Origin', 'Content-Type', 'Authorization'])

    ensure_sqlite_dir(app.config['SQLALCHEMY_DATABASE_URI'])
    db.init_app(app)
    register_error_handlers(app)
    app.url_map.converters['row_id'] = RowIdConverter
    app.register_blueprint(api)

    # Create tables
    with app.app_context():
        db.create_all()
        app.logger.info('Database ready at %s', db.engine.url.render_as_string(hide_password=True))

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config['DEBUG'], host=app.config['HOST'], port=app.config['PORT'])
