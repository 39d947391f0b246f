"""
Join model linking applications to persons.
"""
from datetime import datetime
from crm import db


class ApplicationPerson(db.Model):
    """Links a Person to an Application; one link per pair."""
    __tablename__ = 'application_persons'
    __table_args__ = (
        db.UniqueConstraint('application_id', 'person_id', name='uq_application_persons_pair'),
    )

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(db.Integer, db.ForeignKey('applications.id', ondelete='CASCADE'),
                               nullable=False, index=True)
    person_id = db.Column(db.Integer, db.ForeignKey('persons.id', ondelete='CASCADE'),
                          nullable=False, index=True)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'application_id': self.application_id,
            'person_id': self.person_id,
            'is_primary': self.is_primary,
        }

    def __repr__(self):
        return f'<ApplicationPerson app={self.application_id} person={self.person_id}>'
