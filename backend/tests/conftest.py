"""
Shared test fixtures for the CRM backend test suite.
"""
import sys
import os
from datetime import datetime

import pytest

# Add backend/ to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from crm import create_app, db
from crm.models import Application, ApplicationPerson, Person, Property, Unit


@pytest.fixture
def app(tmp_path):
    """App bound to a fresh in-memory SQLite database."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'AUDIT_LOG_FILE': str(tmp_path / 'audit.log'),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_property(app):
    def _make(name, **fields):
        prop = Property(name=name, **fields)
        db.session.add(prop)
        db.session.commit()
        return prop
    return _make


@pytest.fixture
def make_application(app):
    def _make(applicant='Jane Doe', email=None, property=None, unit_number=None, **fields):
        fields.setdefault('created_at', datetime(2025, 1, 15, 9, 30))
        application = Application(
            applicant=applicant,
            email=email,
            property_name=property,
            unit_number=unit_number,
            user_id=fields.pop('user_id', 'user_1'),
            **fields,
        )
        db.session.add(application)
        db.session.commit()
        return application
    return _make


@pytest.fixture
def make_unit(app):
    def _make(prop, unit_number, **fields):
        unit = Unit(property_id=prop.id, unit_number=unit_number, **fields)
        db.session.add(unit)
        db.session.commit()
        return unit
    return _make


@pytest.fixture
def link_person(app):
    """Attach an existing (or new) Person to an application."""
    def _link(application, person=None):
        if person is None:
            person = Person(first_name='Existing', last_name='Person', status='Applicant')
            db.session.add(person)
            db.session.flush()
        db.session.add(ApplicationPerson(application_id=application.id,
                                         person_id=person.id, is_primary=True))
        db.session.commit()
        return person
    return _link
