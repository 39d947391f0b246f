"""
CRM Data Migration Script
=========================
Moves legacy application data into the normalized CRM tables:
  - creates Person records from applicant name/email/phone
  - creates Unit records from property + unit number
  - links each application to its Person (primary link) and Unit

Original application columns are never modified or deleted, and the script
is safe to re-run: applications that are already linked are skipped.

Run from backend/:
  python migrate_to_crm.py            # dry run, shows what would happen
  python migrate_to_crm.py --execute  # apply the changes
"""

import sys
import os
import logging

sys.path.insert(0, os.path.dirname(__file__))

from crm import create_app
from crm.reconcile import ReconciliationMigrator, MigrationError
from crm.store import CrmStore

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
EXECUTE = '--execute' in sys.argv

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s', stream=sys.stdout)
log = logging.getLogger('migration')


def run_migration(execute=False):
    app = create_app()
    with app.app_context():
        migrator = ReconciliationMigrator(CrmStore(), commit=execute)
        stats = migrator.run()
    if not execute:
        log.info('To execute the migration, run:')
        log.info('   python migrate_to_crm.py --execute')
    return stats


def main():
    try:
        run_migration(execute=EXECUTE)
    except MigrationError as e:
        log.error(f'Migration failed: {e}')
        return 1
    except Exception:
        log.exception('Fatal error during migration')
        return 1
    log.info('Done!')
    return 0


if __name__ == '__main__':
    sys.exit(main())
