"""
Application model.

Applications predate the normalized Person/Unit tables: the applicant's
identity and the rented unit were stored as free text (``applicant``,
``email``, ``property``, ``unit_number``). ``unit_id`` and the
``application_persons`` links are filled in by the CRM migrations; the
legacy text columns are kept as entered.
"""
from datetime import datetime
from crm import db

APPLICATION_STATUS_CHOICES = [
    'New',
    'Screening',
    'Approved',
    'Lease Signed',
    'Moved In',
    'Denied',
    'Withdrawn',
]

MONEY_FIELDS = [
    'deposit', 'rent', 'pet_fee', 'pet_rent', 'renters_insurance',
    'admin_fee', 'initial_payment',
]


class Application(db.Model):
    __tablename__ = 'applications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(255), nullable=True, index=True)
    status = db.Column(db.String(30), nullable=False, default='New')
    move_in_date = db.Column(db.String(10), nullable=True)  # MM/DD/YYYY as entered

    # Legacy free-text fields
    applicant = db.Column(db.String(255), nullable=False, default='')
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    property_name = db.Column('property', db.String(255), nullable=True)
    unit_number = db.Column(db.String(50), nullable=True)

    # Money fields are strings as typed into the form
    deposit = db.Column(db.String(50), nullable=True)
    rent = db.Column(db.String(50), nullable=True)
    pet_fee = db.Column(db.String(50), nullable=True)
    pet_rent = db.Column(db.String(50), nullable=True)
    renters_insurance = db.Column(db.String(50), nullable=True)
    admin_fee = db.Column(db.String(50), nullable=True)
    initial_payment = db.Column(db.String(50), nullable=True)

    unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    person_links = db.relationship('ApplicationPerson', backref='application',
                                   cascade='all, delete-orphan')
    persons = db.relationship('Person', secondary='application_persons', viewonly=True)
    tasks = db.relationship('Task', backref='application', order_by='Task.order',
                            cascade='all, delete-orphan')

    @property
    def primary_person_id(self):
        for link in self.person_links:
            if link.is_primary:
                return link.person_id
        return self.person_links[0].person_id if self.person_links else None

    def to_dict(self, include_tasks=False):
        data = {
            'id': self.id,
            'status': self.status,
            'move_in_date': self.move_in_date,
            'applicant': self.applicant,
            'email': self.email,
            'phone': self.phone,
            'property': self.property_name,
            'unit_number': self.unit_number,
            'unit_id': self.unit_id,
            'person_ids': [link.person_id for link in self.person_links],
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        for field in MONEY_FIELDS:
            data[field] = getattr(self, field)
        if include_tasks:
            data['tasks'] = [t.to_dict() for t in self.tasks]
        return data

    def __repr__(self):
        return f'<Application {self.id}: {self.applicant}>'
