"""
Person model: the canonical identity behind one or more applications.
"""
from datetime import datetime
from crm import db

PERSON_STATUS_CHOICES = [
    'Prospect',
    'Applicant',   # Created from an application
    'Resident',
    'Past Resident',
]


class Person(db.Model):
    """
    A person known to the CRM. There is no uniqueness constraint on identity;
    deduplication is the responsibility of whoever creates the row.
    """
    __tablename__ = 'persons'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(255), nullable=True, index=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=True, index=True)
    phone = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(30), nullable=False, default='Prospect')
    became_applicant = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    application_links = db.relationship('ApplicationPerson', backref='person', lazy='dynamic',
                                        cascade='all, delete-orphan')

    @property
    def full_name(self):
        return f'{self.first_name} {self.last_name}'.strip()

    def to_dict(self):
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'email': self.email,
            'phone': self.phone,
            'status': self.status,
            'became_applicant': self.became_applicant.isoformat() if self.became_applicant else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Person {self.id}: {self.full_name}>'
