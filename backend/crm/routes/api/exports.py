"""Data export routes."""
from flask import request, jsonify, Response
from sqlalchemy.orm import selectinload
from crm.models import Application
from crm.utils.audit_logger import audit_log
from crm.utils.export import generate_applications_csv, generate_applications_xlsx
from . import api_bp

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


@api_bp.route('/export/applications', methods=['GET'])
def export_applications():
    """Export applications (ordered by move-in date) as CSV or XLSX."""
    fmt = request.args.get('format', 'csv').lower()
    if fmt not in ('csv', 'xlsx'):
        return jsonify({'error': 'format must be csv or xlsx'}), 400

    applications = (Application.query
                    .options(selectinload(Application.tasks))
                    .order_by(Application.move_in_date.asc(), Application.id.asc())
                    .all())

    audit_log('EXPORT', 'applications', details={'format': fmt, 'count': len(applications)})

    if fmt == 'xlsx':
        output = generate_applications_xlsx(applications)
        return Response(
            output.getvalue(),
            mimetype=XLSX_MIMETYPE,
            headers={'Content-Disposition': 'attachment; filename=applications.xlsx'},
        )

    output = generate_applications_csv(applications)
    return Response(
        output.getvalue(),
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment; filename=applications.csv'},
    )
