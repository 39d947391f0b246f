"""
Default checklists for applications.

New applications get the applicant checklist (things the applicant must do)
and the agent checklist (the leasing agent's steps). ``seed_default_tasks``
back-fills the applicant checklist onto existing applications that have no
tasks at all; it is safe to run repeatedly.

To change a checklist, edit the lists below; tasks are ordered by their
position. Set the matching ``USE_*`` flag to False to stop attaching it.
"""
import logging
import secrets
import time

from crm import db
from crm.models import Application, Task

logger = logging.getLogger(__name__)

USE_DEFAULT_TASKS = True
USE_DEFAULT_AGENT_TASKS = True

DEFAULT_APPLICANT_TASKS = [
    '1. Sign the lease agreement.',
    '2. Make your initial payment.',
    '3. Provide us with your utilities account number.',
]

DEFAULT_AGENT_TASKS = [
    '1. Acknowledgement',
    '2. Screening',
    '3. Approval Message',
    '4. Lease Agreement',
    '5. Welcome Message',
    '6. Arrange Move-In',
]

_BASE36 = '0123456789abcdefghijklmnopqrstuvwxyz'


def _base36(number):
    digits = ''
    while number:
        number, rem = divmod(number, 36)
        digits = _BASE36[rem] + digits
    return digits or '0'


def generate_task_id():
    """task_<base36 epoch ms>_<random suffix>"""
    return f'task_{_base36(int(time.time() * 1000))}_{secrets.token_hex(4)}'


def get_default_tasks():
    if not USE_DEFAULT_TASKS:
        return []
    return [
        {'id': generate_task_id(), 'description': d, 'completed': False, 'type': 'APPLICANT'}
        for d in DEFAULT_APPLICANT_TASKS
    ]


def get_default_agent_tasks():
    if not USE_DEFAULT_AGENT_TASKS:
        return []
    return [
        {'id': generate_task_id(), 'description': d, 'completed': False, 'type': 'AGENT'}
        for d in DEFAULT_AGENT_TASKS
    ]


def build_tasks(application_id, task_dicts):
    """Task rows for an application, ordered by list position."""
    return [
        Task(
            id=t.get('id') or generate_task_id(),
            description=t['description'],
            completed=bool(t.get('completed', False)),
            type=t.get('type') or 'APPLICANT',
            order=index,
            application_id=application_id,
        )
        for index, t in enumerate(task_dicts)
    ]


def seed_default_tasks():
    """Give every application without tasks the applicant checklist.

    Returns a dict with 'updated', 'skipped', 'total' and 'tasks_created'.
    """
    applications = Application.query.order_by(Application.id).all()
    logger.info(f'Found {len(applications)} total applications')

    updated = 0
    skipped = 0
    defaults = DEFAULT_APPLICANT_TASKS if USE_DEFAULT_TASKS else []

    for application in applications:
        if application.tasks:
            logger.info(f'  Skipping application {application.id} ({application.applicant}) '
                        f'- already has {len(application.tasks)} tasks')
            skipped += 1
            continue
        if not defaults:
            skipped += 1
            continue

        # One transaction per application
        for task in build_tasks(application.id, get_default_tasks()):
            db.session.add(task)
        db.session.commit()

        logger.info(f'  Added {len(defaults)} default tasks to application '
                    f'{application.id} ({application.applicant})')
        updated += 1

    return {
        'updated': updated,
        'skipped': skipped,
        'total': len(applications),
        'tasks_created': updated * len(defaults),
    }
