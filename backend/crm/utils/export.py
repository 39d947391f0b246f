"""
Export utilities for CSV and Excel generation.
"""
import csv
import io
import logging
from openpyxl import Workbook
from openpyxl.styles import Font

logger = logging.getLogger(__name__)

APPLICATION_FIELDS = [
    'id', 'status', 'applicant', 'email', 'phone', 'property', 'unit_number',
    'unit_id', 'move_in_date', 'deposit', 'rent', 'pet_fee', 'pet_rent',
    'renters_insurance', 'admin_fee', 'initial_payment', 'open_tasks',
    'completed_tasks', 'created_at',
]


def _application_row(app):
    completed = sum(1 for t in app.tasks if t.completed)
    return {
        'id': app.id,
        'status': app.status or '',
        'applicant': app.applicant or '',
        'email': app.email or '',
        'phone': app.phone or '',
        'property': app.property_name or '',
        'unit_number': app.unit_number or '',
        'unit_id': app.unit_id or '',
        'move_in_date': app.move_in_date or '',
        'deposit': app.deposit or '',
        'rent': app.rent or '',
        'pet_fee': app.pet_fee or '',
        'pet_rent': app.pet_rent or '',
        'renters_insurance': app.renters_insurance or '',
        'admin_fee': app.admin_fee or '',
        'initial_payment': app.initial_payment or '',
        'open_tasks': len(app.tasks) - completed,
        'completed_tasks': completed,
        'created_at': app.created_at.isoformat() if app.created_at else '',
    }


def generate_applications_csv(applications):
    """Generate CSV export of applications.

    Args:
        applications: List of Application model objects

    Returns:
        StringIO object containing CSV data
    """
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=APPLICATION_FIELDS)
    writer.writeheader()

    for app in applications:
        writer.writerow(_application_row(app))

    output.seek(0)
    return output


def generate_applications_xlsx(applications):
    """Generate an Excel workbook of applications.

    Returns:
        BytesIO object containing the .xlsx file
    """
    wb = Workbook()
    ws = wb.active
    ws.title = 'Applications'

    ws.append(APPLICATION_FIELDS)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for app in applications:
        row = _application_row(app)
        ws.append([row[f] for f in APPLICATION_FIELDS])

    ws.freeze_panes = 'A2'

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    logger.info(f'Generated applications workbook with {len(applications)} rows')
    return output
