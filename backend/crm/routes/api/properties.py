"""Property routes."""
from flask import request, jsonify
from crm import db
from crm.models import Property, Unit
from crm.utils.audit_logger import audit_log
from crm.utils.validators import validate_property
from . import api_bp, validation_error, not_found


@api_bp.route('/properties', methods=['GET'])
def list_properties():
    """List properties, optionally filtered by a name search."""
    query = Property.query
    search = request.args.get('q', '').strip()
    if search:
        query = query.filter(Property.name.ilike(f'%{search}%'))
    properties = query.order_by(Property.name).all()
    return jsonify({'properties': [p.to_dict() for p in properties]}), 200


@api_bp.route('/properties/<int:id>', methods=['GET'])
def get_property(id):
    prop = db.session.get(Property, id)
    if not prop:
        return not_found('Property')
    data = prop.to_dict()
    data['units'] = [u.to_dict() for u in prop.units.order_by(Unit.unit_number)]
    return jsonify(data), 200


@api_bp.route('/properties', methods=['POST'])
def create_property():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    errors = validate_property(data)
    if errors:
        return validation_error(errors)

    prop = Property(
        user_id=data.get('user_id'),
        name=data['name'].strip(),
        street=(data.get('street') or '').strip(),
        city=(data.get('city') or '').strip(),
        state=(data.get('state') or '').strip(),
        zip=(data.get('zip') or '').strip(),
        energy_provider=(data.get('energy_provider') or '').strip(),
    )
    db.session.add(prop)
    db.session.commit()

    audit_log('CREATE', 'property', resource_id=str(prop.id), details={'name': prop.name})

    return jsonify(prop.to_dict()), 201


UPDATABLE_FIELDS = ['name', 'street', 'city', 'state', 'zip', 'energy_provider']


@api_bp.route('/properties/<int:id>', methods=['PUT'])
def update_property(id):
    prop = db.session.get(Property, id)
    if not prop:
        return not_found('Property')

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    merged = {'name': prop.name}
    merged.update({k: v for k, v in data.items() if k in UPDATABLE_FIELDS})
    errors = validate_property(merged)
    if errors:
        return validation_error(errors)

    changed = []
    for field in UPDATABLE_FIELDS:
        if field in data:
            setattr(prop, field, (data[field] or '').strip())
            changed.append(field)
    db.session.commit()

    audit_log('UPDATE', 'property', resource_id=str(id), details={'fields': changed})

    return jsonify(prop.to_dict()), 200


@api_bp.route('/properties/<int:id>', methods=['DELETE'])
def delete_property(id):
    prop = db.session.get(Property, id)
    if not prop:
        return not_found('Property')

    unit_count = prop.units.count()
    if unit_count:
        return jsonify({'error': f'Property still has {unit_count} unit(s) and cannot be deleted'}), 409

    name = prop.name
    db.session.delete(prop)
    db.session.commit()

    audit_log('DELETE', 'property', resource_id=str(id), details={'name': name})

    return jsonify({'success': True, 'message': 'Property deleted successfully'}), 200
