"""People routes."""
from flask import request, jsonify
from sqlalchemy import or_
from crm import db
from crm.models import Person
from crm.utils.audit_logger import audit_log
from crm.utils.validators import validate_person
from . import api_bp, validation_error, not_found

UPDATABLE_FIELDS = ['first_name', 'last_name', 'email', 'phone', 'status']


@api_bp.route('/people', methods=['GET'])
def list_people():
    """List people with optional name/email search and status filter."""
    query = Person.query

    search = request.args.get('q', '').strip()
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(
            Person.first_name.ilike(pattern),
            Person.last_name.ilike(pattern),
            Person.email.ilike(pattern),
        ))

    status_filter = request.args.get('status', '').strip()
    if status_filter:
        query = query.filter(Person.status.in_(status_filter.split(',')))

    people = query.order_by(Person.last_name, Person.first_name).all()
    return jsonify({'people': [p.to_dict() for p in people]}), 200


@api_bp.route('/people/<int:id>', methods=['GET'])
def get_person(id):
    person = db.session.get(Person, id)
    if not person:
        return not_found('Person')
    data = person.to_dict()
    data['application_ids'] = [link.application_id for link in person.application_links]
    return jsonify(data), 200


@api_bp.route('/people', methods=['POST'])
def create_person():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    errors = validate_person(data)
    if errors:
        return validation_error(errors)

    person = Person(
        user_id=data.get('user_id'),
        first_name=data['first_name'].strip(),
        last_name=data['last_name'].strip(),
        email=(data.get('email') or '').strip() or None,
        phone=(data.get('phone') or '').strip() or None,
        status=(data.get('status') or 'Prospect').strip(),
    )
    db.session.add(person)
    db.session.commit()

    audit_log('CREATE', 'person', resource_id=str(person.id))

    return jsonify(person.to_dict()), 201


@api_bp.route('/people/<int:id>', methods=['PUT'])
def update_person(id):
    person = db.session.get(Person, id)
    if not person:
        return not_found('Person')

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    merged = {f: getattr(person, f) for f in UPDATABLE_FIELDS}
    merged.update({k: v for k, v in data.items() if k in UPDATABLE_FIELDS})
    errors = validate_person(merged)
    if errors:
        return validation_error(errors)

    changed = []
    for field in UPDATABLE_FIELDS:
        if field in data:
            value = data[field]
            value = value.strip() if isinstance(value, str) else value
            if field in ('email', 'phone'):
                value = value or None
            setattr(person, field, value)
            changed.append(field)
    db.session.commit()

    audit_log('UPDATE', 'person', resource_id=str(id), details={'fields': changed})

    return jsonify(person.to_dict()), 200
