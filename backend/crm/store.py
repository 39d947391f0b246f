"""
Persistence layer used by the CRM data migrations.

Reads return plain snapshots so the migrations never depend on ORM session
state. Writes are single atomic operations that report their outcome as a
``WriteResult`` instead of raising: ``OK`` with the new row id, ``CONFLICT``
when a unique constraint rejected the row, or ``FAILED`` for anything else.
Callers decide which outcomes they can recover from.
"""
import enum
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from crm import db
from crm.models import Application, ApplicationPerson, Person, Property, Unit
from crm.utils.audit_logger import audit_log

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = '23505'


class WriteOutcome(enum.Enum):
    OK = 'ok'
    CONFLICT = 'conflict'
    FAILED = 'failed'


@dataclass
class WriteResult:
    outcome: WriteOutcome
    entity_id: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, entity_id=None):
        return cls(WriteOutcome.OK, entity_id=entity_id)

    @classmethod
    def conflict(cls, error=None):
        return cls(WriteOutcome.CONFLICT, error=error)

    @classmethod
    def failed(cls, error):
        return cls(WriteOutcome.FAILED, error=error)

    @property
    def is_ok(self):
        return self.outcome is WriteOutcome.OK

    @property
    def is_conflict(self):
        return self.outcome is WriteOutcome.CONFLICT


@dataclass
class ApplicationSnapshot:
    """Read model of a legacy application as the migrations see it."""
    id: int
    user_id: Optional[str]
    applicant: str
    email: Optional[str]
    phone: Optional[str]
    property: Optional[str]
    unit_number: Optional[str]
    rent: Optional[str]
    created_at: Optional[datetime]
    unit_id: Optional[int] = None
    person_ids: List[int] = field(default_factory=list)
    primary_person_id: Optional[int] = None

    @property
    def person_count(self):
        return len(self.person_ids)

    @classmethod
    def from_model(cls, app):
        return cls(
            id=app.id,
            user_id=app.user_id,
            applicant=app.applicant or '',
            email=app.email,
            phone=app.phone,
            property=app.property_name,
            unit_number=app.unit_number,
            rent=app.rent,
            created_at=app.created_at,
            unit_id=app.unit_id,
            person_ids=[link.person_id for link in app.person_links],
            primary_person_id=app.primary_person_id,
        )


def is_unique_violation(exc):
    """True when an IntegrityError was raised by a unique constraint."""
    orig = getattr(exc, 'orig', None)
    code = getattr(orig, 'pgcode', None) or getattr(orig, 'sqlstate', None)
    if code:
        return code == UNIQUE_VIOLATION
    message = str(orig if orig is not None else exc).lower()
    return 'unique constraint' in message or 'duplicate key' in message


class CrmStore:
    """SQLAlchemy-backed store. Every write commits on its own."""

    def load_applications(self):
        apps = (Application.query
                .options(selectinload(Application.person_links))
                .order_by(Application.id)
                .all())
        return [ApplicationSnapshot.from_model(a) for a in apps]

    def load_properties(self):
        return [(p.id, p.name) for p in Property.query.order_by(Property.id).all()]

    def find_unit(self, property_id, unit_number):
        unit = Unit.find_by_property_and_number(property_id, unit_number)
        return unit.id if unit else None

    def create_person(self, user_id, first_name, last_name, email, phone, status,
                      became_applicant, created_at):
        person = Person(
            user_id=user_id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            status=status,
            became_applicant=became_applicant,
            created_at=created_at,
        )
        result = self._insert(person)
        if result.is_ok:
            audit_log('CREATE', 'person', resource_id=str(result.entity_id),
                      details={'source': 'migration'})
        return result

    def create_unit(self, user_id, property_id, unit_number, base_rent, status):
        unit = Unit(
            user_id=user_id,
            property_id=property_id,
            unit_number=unit_number,
            base_rent=base_rent,
            status=status,
        )
        result = self._insert(unit)
        if result.is_ok:
            audit_log('CREATE', 'unit', resource_id=str(result.entity_id),
                      details={'property_id': property_id, 'unit_number': unit_number})
        return result

    def link_person(self, application_id, person_id, is_primary=True):
        link = ApplicationPerson(
            application_id=application_id,
            person_id=person_id,
            is_primary=is_primary,
        )
        result = self._insert(link)
        if result.is_ok:
            audit_log('LINK', 'application_person', resource_id=str(application_id),
                      details={'person_id': person_id, 'is_primary': is_primary})
        return result

    def set_application_unit(self, application_id, unit_id):
        try:
            updated = (Application.query
                       .filter_by(id=application_id)
                       .update({'unit_id': unit_id}, synchronize_session=False))
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            if is_unique_violation(e):
                return WriteResult.conflict(str(e.orig))
            return WriteResult.failed(str(e))
        except SQLAlchemyError as e:
            db.session.rollback()
            return WriteResult.failed(str(e))
        if not updated:
            return WriteResult.failed(f'Application {application_id} not found')
        audit_log('UPDATE', 'application', resource_id=str(application_id),
                  details={'unit_id': unit_id})
        return WriteResult.ok(application_id)

    def _insert(self, obj):
        try:
            db.session.add(obj)
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            if is_unique_violation(e):
                return WriteResult.conflict(str(e.orig))
            logger.error(f'Integrity error inserting {type(obj).__name__}: {e}')
            return WriteResult.failed(str(e))
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f'Database error inserting {type(obj).__name__}: {e}')
            return WriteResult.failed(str(e))
        return WriteResult.ok(obj.id)


class PreviewStore:
    """
    Dry-run stand-in for a CrmStore.

    Reads go to the wrapped store; writes are never performed. Creates hand
    out sequential placeholder ids (one sequence per entity type, starting
    at 1) so later steps can still resolve foreign keys. A unit that already
    exists in the database reports CONFLICT, exactly as the real insert
    would. Person links are only attempted for applications whose snapshot
    has none, so they always succeed here.
    """

    def __init__(self, source):
        self.source = source
        self._person_ids = itertools.count(1)
        self._unit_ids = itertools.count(1)

    def load_applications(self):
        return self.source.load_applications()

    def load_properties(self):
        return self.source.load_properties()

    def find_unit(self, property_id, unit_number):
        return self.source.find_unit(property_id, unit_number)

    def create_person(self, user_id, first_name, last_name, email, phone, status,
                      became_applicant, created_at):
        return WriteResult.ok(next(self._person_ids))

    def create_unit(self, user_id, property_id, unit_number, base_rent, status):
        if self.source.find_unit(property_id, unit_number) is not None:
            return WriteResult.conflict('unit already exists')
        return WriteResult.ok(next(self._unit_ids))

    def link_person(self, application_id, person_id, is_primary=True):
        return WriteResult.ok()

    def set_application_unit(self, application_id, unit_id):
        return WriteResult.ok(application_id)
