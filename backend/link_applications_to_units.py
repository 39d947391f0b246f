"""
Link Applications to Units
==========================
Applications store the unit as ``property`` / ``unit_number`` strings. This
finds or creates the matching Unit for each application and sets
``applications.unit_id``. The legacy string columns are kept as a backup.

Run from backend/:
  python link_applications_to_units.py            # dry run
  python link_applications_to_units.py --execute  # apply the changes
"""

import sys
import os
import logging

sys.path.insert(0, os.path.dirname(__file__))

from crm import create_app
from crm.store import CrmStore
from crm.unit_linker import UnitLinker

EXECUTE = '--execute' in sys.argv

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s', stream=sys.stdout)
log = logging.getLogger('link_units')


def main():
    app = create_app()
    try:
        with app.app_context():
            UnitLinker(CrmStore(), commit=EXECUTE).run()
    except Exception:
        log.exception('Fatal error while linking units')
        return 1
    if not EXECUTE:
        log.info('To apply these changes, run:')
        log.info('   python link_applications_to_units.py --execute')
    return 0


if __name__ == '__main__':
    sys.exit(main())
