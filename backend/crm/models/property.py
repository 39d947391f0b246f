"""
Property model: a building or complex that contains rentable units.
"""
from datetime import datetime
from crm import db


class Property(db.Model):
    """Reference data keyed by name. Migrations never modify it."""
    __tablename__ = 'properties'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(255), nullable=True, index=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    street = db.Column(db.String(255), nullable=False, default='')
    city = db.Column(db.String(100), nullable=False, default='')
    state = db.Column(db.String(50), nullable=False, default='')
    zip = db.Column(db.String(20), nullable=False, default='')
    energy_provider = db.Column(db.String(255), nullable=False, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    units = db.relationship('Unit', backref='property', lazy='dynamic')

    @classmethod
    def find_by_name(cls, name):
        """Case-insensitive exact match on property name."""
        if not name:
            return None
        return cls.query.filter(db.func.lower(cls.name) == name.lower()).first()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'street': self.street,
            'city': self.city,
            'state': self.state,
            'zip': self.zip,
            'energy_provider': self.energy_provider,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Property {self.id}: {self.name}>'
