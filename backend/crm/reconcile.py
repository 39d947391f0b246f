"""
Reconcile legacy applications into the normalized CRM tables.

Legacy ``Application`` rows carry the applicant and the rented unit as free
text. This migration, in three passes over the applications (in id order):

  1. creates one ``Person`` per distinct person key (lowercased email, or the
     lowercased applicant name when there is no email),
  2. creates one ``Unit`` per distinct (property id, unit number),
  3. links each application to its Person (primary ``ApplicationPerson``)
     and Unit (``Application.unit_id``).

Applications that already have linked persons, or already have a unit, are
left alone, so re-running is safe. An application is counted as linked only
when this run links its person or sets its unit. The person key merges everyone who shares
an email, and everyone without an email who shares a name string: two
different applicants named "John Smith" with no email on file become one
Person. That matching rule is a product decision and is kept as is.

Analyze mode (the default) runs the exact same decisions against a
``PreviewStore`` that performs no writes.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from crm.store import PreviewStore

logger = logging.getLogger(__name__)

PERSON_INITIAL_STATUS = 'Applicant'
UNIT_INITIAL_STATUS = 'Occupied'
UNKNOWN_NAME = 'Unknown'

SEPARATOR = '=' * 60


class MigrationError(Exception):
    """A persistence failure the migration cannot recover from."""


def person_key(app):
    """Dedup key for the person behind an application."""
    if app.email:
        return app.email.lower()
    return (app.applicant or '').lower()


def split_applicant_name(applicant):
    """Split a free-text name into (first_name, last_name).

    The first whitespace-separated token is the first name and the rest,
    joined by single spaces, is the last name. Missing parts become 'Unknown'.
    """
    parts = (applicant or '').split()
    first_name = parts[0] if parts else UNKNOWN_NAME
    last_name = ' '.join(parts[1:]) or UNKNOWN_NAME
    return first_name, last_name


def unit_key(property_id, unit_number):
    """Dedup key for a unit. Unit numbers are compared exactly."""
    return f'{property_id}|{unit_number}'


@dataclass
class MigrationAction:
    kind: str  # create_person | create_unit | reuse_unit | link_person | set_unit
    application_id: int
    key: Optional[str] = None
    entity_id: Optional[int] = None


@dataclass
class MigrationStats:
    commit: bool = False
    persons_created: int = 0
    units_created: int = 0
    applications_linked: int = 0
    applications_skipped: int = 0
    errors: List[str] = field(default_factory=list)
    actions: List[MigrationAction] = field(default_factory=list)

    def as_dict(self):
        return {
            'persons_created': self.persons_created,
            'units_created': self.units_created,
            'applications_linked': self.applications_linked,
            'applications_skipped': self.applications_skipped,
            'errors': list(self.errors),
        }

    def summary_lines(self):
        verb = 'created' if self.commit else 'to create'
        link_verb = 'linked' if self.commit else 'to link'
        title = 'MIGRATION SUMMARY' if self.commit else 'DRY RUN — MIGRATION SUMMARY'
        lines = [
            SEPARATOR,
            title,
            SEPARATOR,
            f'Persons {verb}:'.ljust(28) + str(self.persons_created),
            f'Units {verb}:'.ljust(28) + str(self.units_created),
            f'Applications {link_verb}:'.ljust(28) + str(self.applications_linked),
            'Applications skipped:'.ljust(28) + str(self.applications_skipped),
            'Errors/Warnings:'.ljust(28) + str(len(self.errors)),
        ]
        lines.extend(f'  - {e}' for e in self.errors)
        lines.append(SEPARATOR)
        if self.commit:
            lines.append('Migration completed successfully. Original application data was preserved.')
        else:
            lines.append('*** DRY RUN — no data was written to the database ***')
            lines.append('Run again with --execute to apply these changes.')
        return lines


@dataclass
class RunState:
    """Lookup tables that live for exactly one run."""
    stats: MigrationStats
    person_ids: Dict[str, int] = field(default_factory=dict)
    unit_ids: Dict[str, int] = field(default_factory=dict)
    property_ids: Dict[str, int] = field(default_factory=dict)

    def record(self, kind, application_id, key=None, entity_id=None):
        self.stats.actions.append(MigrationAction(kind, application_id, key, entity_id))

    def warn(self, message):
        logger.warning(f'  {message}')
        self.stats.errors.append(message)


class ReconciliationMigrator:
    """
    Creates Person/Unit rows for legacy applications and links them.

    ``commit=False`` (analyze) previews every action without writing;
    ``commit=True`` persists them through the given store.
    """

    def __init__(self, store, commit=False):
        self.commit = commit
        self.store = store if commit else PreviewStore(store)

    @property
    def mode_label(self):
        return 'EXECUTE' if self.commit else 'DRY RUN (no changes)'

    def run(self):
        state = RunState(stats=MigrationStats(commit=self.commit))

        logger.info(SEPARATOR)
        logger.info(f'CRM data migration — mode: {self.mode_label}')
        logger.info(SEPARATOR)

        logger.info('Step 1: Loading applications...')
        applications = self.store.load_applications()
        logger.info(f'  Found {len(applications)} applications')

        for property_id, name in self.store.load_properties():
            state.property_ids[name.lower()] = property_id

        self.resolve_persons(applications, state)
        self.resolve_units(applications, state)
        self.link_applications(applications, state)

        for line in state.stats.summary_lines():
            logger.info(line)
        return state.stats

    # -- Phase 1 -----------------------------------------------------------

    def resolve_persons(self, applications, state):
        logger.info('Step 2: Resolving Person records...')
        stats = state.stats

        for app in applications:
            if app.person_count > 0:
                logger.info(f'  Skipping app {app.id} - already has {app.person_count} person(s) linked')
                stats.applications_skipped += 1
                continue

            key = person_key(app)
            if key in state.person_ids:
                continue

            first_name, last_name = split_applicant_name(app.applicant)
            result = self.store.create_person(
                user_id=app.user_id,
                first_name=first_name,
                last_name=last_name,
                email=app.email,
                phone=app.phone,
                status=PERSON_INITIAL_STATUS,
                became_applicant=app.created_at,
                created_at=app.created_at,
            )
            if not result.is_ok:
                raise MigrationError(
                    f'Failed to create Person for app {app.id}: {result.error}'
                )

            state.person_ids[key] = result.entity_id
            state.record('create_person', app.id, key=key, entity_id=result.entity_id)
            stats.persons_created += 1
            if self.commit:
                logger.info(f'  Created Person: {first_name} {last_name} (ID: {result.entity_id})')
            else:
                logger.info(f'  Would create Person: {first_name} {last_name}')

        logger.info(f'  Total persons {"created" if self.commit else "to create"}: {stats.persons_created}')

    # -- Phase 2 -----------------------------------------------------------

    def resolve_units(self, applications, state):
        logger.info('Step 3: Resolving Unit records...')
        stats = state.stats

        for app in applications:
            if app.unit_id:
                logger.info(f'  Skipping app {app.id} - already linked to unit {app.unit_id}')
                continue

            if not app.property:
                logger.info(f'  Skipping app {app.id} - no property set')
                continue

            property_id = state.property_ids.get(app.property.lower())
            if property_id is None:
                state.warn(f'Property "{app.property}" not found for app {app.id}')
                continue

            if not app.unit_number:
                logger.info(f'  Skipping app {app.id} - no unit number set')
                continue

            key = unit_key(property_id, app.unit_number)
            if key in state.unit_ids:
                continue

            result = self.store.create_unit(
                user_id=app.user_id,
                property_id=property_id,
                unit_number=app.unit_number,
                base_rent=app.rent or None,
                status=UNIT_INITIAL_STATUS,
            )
            if result.is_conflict:
                existing_id = self.store.find_unit(property_id, app.unit_number)
                if existing_id is None:
                    raise MigrationError(
                        f'Unit {app.property} - {app.unit_number} reported as duplicate '
                        f'but could not be fetched'
                    )
                state.unit_ids[key] = existing_id
                state.record('reuse_unit', app.id, key=key, entity_id=existing_id)
                logger.info(f'  Unit already exists: {app.property} - Unit {app.unit_number} '
                            f'(ID: {existing_id})')
                continue
            if not result.is_ok:
                raise MigrationError(
                    f'Failed to create Unit {app.property} - {app.unit_number}: {result.error}'
                )

            state.unit_ids[key] = result.entity_id
            state.record('create_unit', app.id, key=key, entity_id=result.entity_id)
            stats.units_created += 1
            if self.commit:
                logger.info(f'  Created Unit: {app.property} - Unit {app.unit_number} '
                            f'(ID: {result.entity_id})')
            else:
                logger.info(f'  Would create Unit: {app.property} - Unit {app.unit_number}')

        logger.info(f'  Total units {"created" if self.commit else "to create"}: {stats.units_created}')

    # -- Phase 3 -----------------------------------------------------------

    def link_applications(self, applications, state):
        logger.info('Step 4: Linking applications to Persons and Units...')
        stats = state.stats

        for app in applications:
            if app.unit_id and app.person_count > 0:
                logger.info(f'  Skipping app {app.id} - already fully linked')
                continue

            key = person_key(app)
            if app.person_count > 0:
                # Person side already satisfied; only the unit may be missing
                person_id = app.primary_person_id
            else:
                person_id = state.person_ids.get(key)
            if person_id is None:
                state.warn(f'No person found for app {app.id}')
                continue

            ukey = None
            if app.property and app.unit_number:
                property_id = state.property_ids.get(app.property.lower())
                if property_id is not None:
                    ukey = unit_key(property_id, app.unit_number)
            unit_id = state.unit_ids.get(ukey) if ukey else None

            linked = False
            if app.person_count == 0:
                result = self.store.link_person(app.id, person_id, is_primary=True)
                if result.is_conflict:
                    logger.info(f'  App {app.id} already linked to person {person_id}')
                elif not result.is_ok:
                    raise MigrationError(
                        f'Failed to link app {app.id} to person {person_id}: {result.error}'
                    )
                else:
                    state.record('link_person', app.id, key=key)
                linked = True

            if unit_id and not app.unit_id:
                result = self.store.set_application_unit(app.id, unit_id)
                if not result.is_ok:
                    raise MigrationError(
                        f'Failed to set unit {unit_id} on app {app.id}: {result.error}'
                    )
                state.record('set_unit', app.id, key=ukey, entity_id=unit_id)
                linked = True

            if not linked:
                logger.info(f'  App {app.id} already linked to person {person_id} - no unit to set')
                continue

            stats.applications_linked += 1
            if self.commit:
                logger.info(f'  Linked app {app.id}: Person {person_id}, Unit {unit_id or "N/A"}')
            else:
                logger.info(f'  Would link app {app.id}: Person {person_id}, Unit {unit_id or "N/A"}')
