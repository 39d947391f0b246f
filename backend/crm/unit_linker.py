"""
Link applications to Unit rows.

Older applications store the unit as ``property`` + ``unit_number`` strings.
For every application without a ``unit_id`` this finds the matching Unit
(creating it if needed) and sets the foreign key. The legacy text columns
are left intact. Failures on a single application are recorded and the run
moves on; nothing here is fatal.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from crm.reconcile import SEPARATOR, UNIT_INITIAL_STATUS, unit_key
from crm.store import PreviewStore

logger = logging.getLogger(__name__)


@dataclass
class LinkStats:
    commit: bool = False
    total_applications: int = 0
    already_linked: int = 0
    units_created: int = 0
    applications_linked: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def summary_lines(self):
        verb = 'created' if self.commit else 'to create'
        link_verb = 'linked' if self.commit else 'to link'
        title = 'UNIT LINK SUMMARY' if self.commit else 'DRY RUN — UNIT LINK SUMMARY'
        lines = [
            SEPARATOR,
            title,
            SEPARATOR,
            'Total applications:'.ljust(36) + str(self.total_applications),
            'Already linked to units:'.ljust(36) + str(self.already_linked),
            f'Units {verb}:'.ljust(36) + str(self.units_created),
            f'Applications {link_verb}:'.ljust(36) + str(self.applications_linked),
            'Skipped (missing property/unit):'.ljust(36) + str(self.skipped),
            'Errors:'.ljust(36) + str(len(self.errors)),
        ]
        lines.extend(f'  - {e}' for e in self.errors)
        lines.append(SEPARATOR)
        if self.commit:
            lines.append('Unit linking completed. Legacy property/unit_number values were preserved.')
        else:
            lines.append('*** DRY RUN — no data was written to the database ***')
        return lines


class UnitLinker:

    def __init__(self, store, commit=False):
        self.commit = commit
        self.store = store if commit else PreviewStore(store)

    def run(self):
        stats = LinkStats(commit=self.commit)
        applications = self.store.load_applications()
        stats.total_applications = len(applications)
        logger.info(f'Found {len(applications)} applications')

        property_ids = {name.lower(): pid for pid, name in self.store.load_properties()}
        unit_cache = {}

        for app in applications:
            if app.unit_id:
                logger.info(f'  App {app.id} ({app.applicant}): already linked to unit {app.unit_id}')
                stats.already_linked += 1
                continue

            if not app.property or not app.property.strip():
                logger.info(f'  App {app.id} ({app.applicant}): no property set - skipping')
                stats.skipped += 1
                continue

            if not app.unit_number or not app.unit_number.strip():
                logger.info(f'  App {app.id} ({app.applicant}): no unit number set - skipping')
                stats.skipped += 1
                continue

            property_id = property_ids.get(app.property.lower())
            if property_id is None:
                error = f'App {app.id}: Property "{app.property}" not found in database'
                logger.warning(f'  {error}')
                stats.errors.append(error)
                stats.skipped += 1
                continue

            unit_id = self._resolve_unit(app, property_id, unit_cache, stats)
            if unit_id is None:
                continue

            result = self.store.set_application_unit(app.id, unit_id)
            if not result.is_ok:
                error = f'App {app.id}: Failed to link - {result.error}'
                logger.error(f'  {error}')
                stats.errors.append(error)
                continue

            stats.applications_linked += 1
            if self.commit:
                logger.info(f'  App {app.id} ({app.applicant}): linked to unit {unit_id}')
            else:
                logger.info(f'  App {app.id} ({app.applicant}): would link to unit {unit_id}')

        for line in stats.summary_lines():
            logger.info(line)
        return stats

    def _resolve_unit(self, app, property_id, unit_cache, stats):
        key = unit_key(property_id, app.unit_number)
        if key in unit_cache:
            return unit_cache[key]

        existing_id = self.store.find_unit(property_id, app.unit_number)
        if existing_id is not None:
            logger.info(f'  App {app.id}: found existing unit {app.property} - Unit {app.unit_number} '
                        f'(ID: {existing_id})')
            unit_cache[key] = existing_id
            return existing_id

        result = self.store.create_unit(
            user_id=app.user_id,
            property_id=property_id,
            unit_number=app.unit_number,
            base_rent=app.rent or None,
            status=UNIT_INITIAL_STATUS,
        )
        if result.is_conflict:
            # Created by someone else between the lookup and the insert
            existing_id = self.store.find_unit(property_id, app.unit_number)
            if existing_id is not None:
                unit_cache[key] = existing_id
                return existing_id
        if not result.is_ok:
            error = f'App {app.id}: Failed to create unit - {result.error}'
            logger.error(f'  {error}')
            stats.errors.append(error)
            return None

        unit_cache[key] = result.entity_id
        stats.units_created += 1
        if self.commit:
            logger.info(f'  App {app.id}: created unit {app.property} - Unit {app.unit_number} '
                        f'(ID: {result.entity_id})')
        else:
            logger.info(f'  App {app.id}: would create unit {app.property} - Unit {app.unit_number}')
        return result.entity_id
