from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

START_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'


class ParkingSpot(db.Model):
    """A single parking location and its occupancy flag"""
    __tablename__ = 'parking_spots'

    id = db.Column(db.Integer, primary_key=True)
    spot_number = db.Column(db.String(50), unique=True, nullable=False)
    is_occupied = db.Column(db.Boolean, default=False, nullable=False)

    def as_dict(self):
        return {
            'id': self.id,
            'spot_number': self.spot_number,
            'is_occupied': self.is_occupied
        }

    def __repr__(self):
        return f'<ParkingSpot {self.spot_number}: {"Occupied" if self.is_occupied else "Free"}>'


class Reservation(db.Model):
    """Booking of a spot from start_time for duration minutes"""
    __tablename__ = 'reservations'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, default='')
    car_number = db.Column(db.String(20), nullable=False, default='')
    spot_id = db.Column(db.Integer, db.ForeignKey('parking_spots.id'), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False)
    duration = db.Column(db.Integer, nullable=False, default=0)  # minutes

    def as_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'car_number': self.car_number,
            'spot_id': self.spot_id,
            'start_time': self.start_time.strftime(START_TIME_FORMAT) if self.start_time else None,
            'duration': self.duration
        }

    def __repr__(self):
        return f'<Reservation {self.id}: spot {self.spot_id} for {self.car_number} at {self.start_time}>'
