"""
Unit model: a single rentable unit inside a property.
"""
from datetime import datetime
from crm import db

UNIT_STATUS_CHOICES = [
    'Vacant',
    'Occupied',
    'Notice',       # Tenant has given notice
    'Maintenance',
]


class Unit(db.Model):
    """
    A rentable unit. At most one row exists per (property_id, unit_number);
    unit numbers are compared exactly, without normalization.
    """
    __tablename__ = 'units'
    __table_args__ = (
        db.UniqueConstraint('property_id', 'unit_number', name='uq_units_property_unit_number'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(255), nullable=True, index=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    unit_number = db.Column(db.String(50), nullable=False)
    base_rent = db.Column(db.String(50), nullable=True)  # money kept as entered, e.g. "1,250.00"
    status = db.Column(db.String(30), nullable=False, default='Vacant')
    bedrooms = db.Column(db.Integer, nullable=True)
    bathrooms = db.Column(db.Float, nullable=True)
    square_feet = db.Column(db.Integer, nullable=True)
    floor = db.Column(db.Integer, nullable=True)
    available_on = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    applications = db.relationship('Application', backref='unit', lazy='dynamic')

    @classmethod
    def find_by_property_and_number(cls, property_id, unit_number):
        return cls.query.filter_by(property_id=property_id, unit_number=unit_number).first()

    def to_dict(self, include_property=False):
        data = {
            'id': self.id,
            'property_id': self.property_id,
            'unit_number': self.unit_number,
            'base_rent': self.base_rent,
            'status': self.status,
            'bedrooms': self.bedrooms,
            'bathrooms': self.bathrooms,
            'square_feet': self.square_feet,
            'floor': self.floor,
            'available_on': self.available_on.isoformat() if self.available_on else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_property:
            data['property'] = self.property.to_dict() if self.property else None
        return data

    def __repr__(self):
        return f'<Unit {self.id}: property={self.property_id} number={self.unit_number}>'
