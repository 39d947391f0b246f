"""
Task model: checklist items attached to an application.
"""
from datetime import datetime
from crm import db

TASK_TYPE_CHOICES = ['APPLICANT', 'AGENT', 'NOTES', 'TODO']


class Task(db.Model):
    __tablename__ = 'tasks'
    __table_args__ = (
        db.Index('ix_tasks_application_id_order', 'application_id', 'order'),
    )

    id = db.Column(db.String(64), primary_key=True)  # task_<base36 ms>_<random>
    description = db.Column(db.Text, nullable=False)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    type = db.Column(db.String(20), nullable=False, default='APPLICANT')
    order = db.Column(db.Integer, nullable=False, default=0)
    # Application checklist items have an application; TODO items belong to a user instead
    application_id = db.Column(db.Integer, db.ForeignKey('applications.id', ondelete='CASCADE'),
                               nullable=True, index=True)
    user_id = db.Column(db.String(255), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'description': self.description,
            'completed': self.completed,
            'type': self.type,
            'order': self.order,
            'application_id': self.application_id,
            'user_id': self.user_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Task {self.id} app={self.application_id} order={self.order}>'
