"""Unit routes."""
from datetime import datetime
from flask import request, jsonify
from crm import db
from crm.models import Property, Unit
from crm.store import is_unique_violation
from crm.utils.audit_logger import audit_log
from crm.utils.validators import validate_unit
from sqlalchemy.exc import IntegrityError
from . import api_bp, validation_error, not_found, logger


@api_bp.route('/units', methods=['GET'])
def list_units():
    """List units with optional property/status filters."""
    query = Unit.query
    property_id = request.args.get('property_id', type=int)
    if property_id:
        query = query.filter_by(property_id=property_id)
    status_filter = request.args.get('status', '').strip()
    if status_filter:
        query = query.filter(Unit.status.in_(status_filter.split(',')))
    units = query.order_by(Unit.property_id, Unit.unit_number).all()
    return jsonify({'units': [u.to_dict() for u in units]}), 200


@api_bp.route('/units/<int:id>', methods=['GET'])
def get_unit(id):
    unit = db.session.get(Unit, id)
    if not unit:
        return not_found('Unit')
    return jsonify(unit.to_dict(include_property=True)), 200


@api_bp.route('/units', methods=['POST'])
def create_unit():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    errors = validate_unit(data)
    if errors:
        return validation_error(errors)

    if not db.session.get(Property, int(data['property_id'])):
        return not_found('Property')

    unit = Unit(
        user_id=data.get('user_id'),
        property_id=int(data['property_id']),
        unit_number=str(data['unit_number']).strip(),
        base_rent=data.get('base_rent') or None,
        status=(data.get('status') or 'Vacant').strip(),
        bedrooms=data.get('bedrooms') if data.get('bedrooms') != '' else None,
        bathrooms=data.get('bathrooms') if data.get('bathrooms') != '' else None,
        square_feet=data.get('square_feet') if data.get('square_feet') != '' else None,
        floor=data.get('floor') if data.get('floor') != '' else None,
        available_on=(datetime.strptime(data['available_on'], '%Y-%m-%d').date()
                      if data.get('available_on') else None),
    )
    db.session.add(unit)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if is_unique_violation(e):
            return jsonify({'error': 'A unit with this number already exists for the property'}), 409
        raise

    audit_log('CREATE', 'unit', resource_id=str(unit.id),
              details={'property_id': unit.property_id, 'unit_number': unit.unit_number})

    return jsonify(unit.to_dict()), 201


@api_bp.route('/units/find-or-create', methods=['POST'])
def find_or_create_unit():
    """
    Resolve a unit by property name + unit number, creating it if missing.
    Used when application data arrives as free text (e.g. extracted from a PDF).
    """
    data = request.get_json(silent=True) or {}
    property_name = data.get('propertyName')
    unit_number = data.get('unitNumber')

    if not property_name or not unit_number:
        return jsonify({'error': 'Property name and unit number are required'}), 400

    property_name = str(property_name).strip()
    unit_number = str(unit_number).strip()
    if not property_name or not unit_number:
        return jsonify({'error': 'Property name and unit number cannot be empty'}), 400

    prop = Property.find_by_name(property_name)
    if not prop:
        return jsonify({
            'error': f'Property not found: "{property_name}"',
            'suggestion': 'Please verify the property name or create the property first.',
        }), 404

    existing = Unit.find_by_property_and_number(prop.id, unit_number)
    if existing:
        return jsonify({
            'success': True,
            'unitId': existing.id,
            'created': False,
            'unit': existing.to_dict(include_property=True),
            'message': f'Found existing unit: {prop.name} - Unit {unit_number}',
        }), 200

    unit = Unit(
        user_id=data.get('userId'),
        property_id=prop.id,
        unit_number=unit_number,
        status='Vacant',
    )
    db.session.add(unit)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if not is_unique_violation(e):
            raise
        # Lost a race with another request; return the winner's row
        existing = Unit.find_by_property_and_number(prop.id, unit_number)
        if not existing:
            logger.error(f'Unit {prop.name} - {unit_number} rejected as duplicate but not found')
            return jsonify({'error': 'Unit could not be created, please retry'}), 409
        return jsonify({
            'success': True,
            'unitId': existing.id,
            'created': False,
            'unit': existing.to_dict(include_property=True),
            'message': f'Found existing unit: {prop.name} - Unit {unit_number}',
        }), 200

    audit_log('CREATE', 'unit', resource_id=str(unit.id),
              details={'property_id': prop.id, 'unit_number': unit_number, 'via': 'find-or-create'})

    return jsonify({
        'success': True,
        'unitId': unit.id,
        'created': True,
        'unit': unit.to_dict(include_property=True),
        'message': f'Created new unit: {prop.name} - Unit {unit_number}',
    }), 201


UPDATABLE_FIELDS = ['unit_number', 'base_rent', 'status', 'bedrooms', 'bathrooms',
                    'square_feet', 'floor', 'available_on']


@api_bp.route('/units/<int:id>', methods=['PUT'])
def update_unit(id):
    unit = db.session.get(Unit, id)
    if not unit:
        return not_found('Unit')

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    merged = {'property_id': unit.property_id, 'unit_number': unit.unit_number}
    merged.update({k: v for k, v in data.items() if k in UPDATABLE_FIELDS})
    errors = validate_unit(merged)
    if errors:
        return validation_error(errors)

    changed = []
    for field in UPDATABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if value == '':
            value = None
        if field in ('unit_number', 'status'):
            value = str(value).strip()
        elif field == 'available_on' and value:
            value = datetime.strptime(value, '%Y-%m-%d').date()
        setattr(unit, field, value)
        changed.append(field)

    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if is_unique_violation(e):
            return jsonify({'error': 'A unit with this number already exists for the property'}), 409
        raise

    audit_log('UPDATE', 'unit', resource_id=str(id), details={'fields': changed})

    return jsonify(unit.to_dict()), 200


@api_bp.route('/units/<int:id>', methods=['DELETE'])
def delete_unit(id):
    unit = db.session.get(Unit, id)
    if not unit:
        return not_found('Unit')

    linked = unit.applications.count()
    if linked:
        return jsonify({'error': f'Unit is linked to {linked} application(s) and cannot be deleted'}), 409

    db.session.delete(unit)
    db.session.commit()

    audit_log('DELETE', 'unit', resource_id=str(id))

    return jsonify({'success': True, 'message': 'Unit deleted successfully'}), 200
