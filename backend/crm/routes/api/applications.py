"""Application routes."""
from flask import request, jsonify
from sqlalchemy import or_
from crm import db
from crm.default_tasks import build_tasks, get_default_tasks, get_default_agent_tasks
from crm.models import Application, Unit
from crm.models.application import MONEY_FIELDS
from crm.utils.audit_logger import audit_log, audited
from crm.utils.validators import validate_application
from . import api_bp, validation_error, not_found

UPDATABLE_FIELDS = ['status', 'move_in_date', 'applicant', 'email', 'phone',
                    'unit_number', 'unit_id'] + MONEY_FIELDS


@api_bp.route('/applications', methods=['GET'])
def list_applications():
    """List applications, newest first, with optional status filter and search."""
    query = Application.query

    status_filter = request.args.get('status', '').strip()
    if status_filter:
        query = query.filter(Application.status.in_(status_filter.split(',')))

    search = request.args.get('q', '').strip()
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(
            Application.applicant.ilike(pattern),
            Application.email.ilike(pattern),
            Application.property_name.ilike(pattern),
            Application.unit_number.ilike(pattern),
        ))

    applications = query.order_by(Application.created_at.desc(), Application.id.desc()).all()
    return jsonify({'applications': [a.to_dict() for a in applications]}), 200


@api_bp.route('/applications/<int:id>', methods=['GET'])
def get_application(id):
    app = db.session.get(Application, id)
    if not app:
        return not_found('Application')
    data = app.to_dict(include_tasks=True)
    data['unit'] = app.unit.to_dict(include_property=True) if app.unit else None
    data['persons'] = [p.to_dict() for p in app.persons]
    return jsonify(data), 200


@api_bp.route('/applications', methods=['POST'])
def create_application():
    """Create an application. Default checklists are attached when no tasks are sent."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    errors = validate_application(data)
    if errors:
        return validation_error(errors)

    unit = None
    if data.get('unit_id'):
        unit = db.session.get(Unit, int(data['unit_id']))
        if not unit:
            return not_found('Unit')

    app = Application(
        user_id=data.get('user_id'),
        status=data.get('status') or 'New',
        move_in_date=data.get('move_in_date'),
        applicant=data['applicant'].strip(),
        email=(data.get('email') or '').strip() or None,
        phone=(data.get('phone') or '').strip() or None,
        unit_id=unit.id if unit else None,
        property_name=unit.property.name if unit else data.get('property'),
        unit_number=unit.unit_number if unit else data.get('unit_number'),
    )
    for field in MONEY_FIELDS:
        setattr(app, field, data.get(field) or None)
    db.session.add(app)
    db.session.flush()

    tasks = data.get('tasks')
    if not tasks:
        tasks = get_default_tasks() + get_default_agent_tasks()
    for task in build_tasks(app.id, tasks):
        db.session.add(task)
    db.session.commit()

    audit_log('CREATE', 'application', resource_id=str(app.id),
              details={'tasks': len(tasks)})

    return jsonify(app.to_dict(include_tasks=True)), 201


@api_bp.route('/applications/<int:id>', methods=['PATCH'])
def update_application(id):
    """Update individual application fields."""
    app = db.session.get(Application, id)
    if not app:
        return not_found('Application')

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    merged = {'applicant': app.applicant}
    merged.update({k: v for k, v in data.items() if k in UPDATABLE_FIELDS or k == 'property'})
    errors = validate_application(merged)
    if errors:
        return validation_error(errors)

    if data.get('unit_id') and not db.session.get(Unit, int(data['unit_id'])):
        return not_found('Unit')

    changed = []
    for field in UPDATABLE_FIELDS:
        if field in data:
            value = data[field]
            setattr(app, field, value if value != '' else None)
            changed.append(field)
    if 'property' in data:
        app.property_name = data['property'] or None
        changed.append('property')
    db.session.commit()

    audit_log('UPDATE', 'application', resource_id=str(id), details={'fields': changed})

    return jsonify(app.to_dict()), 200


@api_bp.route('/applications/<int:id>', methods=['DELETE'])
@audited('DELETE', 'application')
def delete_application(id):
    app = db.session.get(Application, id)
    if not app:
        return not_found('Application')
    db.session.delete(app)
    db.session.commit()
    return jsonify({'success': True}), 200
