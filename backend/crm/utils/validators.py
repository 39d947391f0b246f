"""
Input validation for properties, units, people, and applications.
"""
import re
from datetime import datetime
from email_validator import validate_email, EmailNotValidError

MONEY_RE = re.compile(r'^\$?\s*-?[\d,]*\.?\d+$')


def _check_email(email, errors):
    if email is None or email == '':
        return
    try:
        validate_email(str(email).strip(), check_deliverability=False)
    except EmailNotValidError:
        errors.append('Invalid email address')


def _check_int(data, key, label, errors, minimum=None):
    value = data.get(key)
    if value is None or value == '':
        return
    if isinstance(value, bool):
        errors.append(f'{label} must be an integer')
        return
    try:
        number = int(value)
    except (ValueError, TypeError):
        errors.append(f'{label} must be an integer')
        return
    if minimum is not None and number < minimum:
        errors.append(f'{label} must be {minimum} or greater')


def _check_money(data, key, label, errors):
    value = data.get(key)
    if value is None or value == '' or value == 'N/A':
        return
    if not MONEY_RE.match(str(value).strip()):
        errors.append(f'{label} must be a dollar amount')


def validate_property(data: dict) -> list:
    """Validate property input. Returns list of error strings (empty = valid)."""
    errors = []

    name = (data.get('name') or '').strip()
    if not name:
        errors.append('Property name is required')
    elif len(name) > 255:
        errors.append('Property name must be 255 characters or fewer')

    for key in ('street', 'city', 'state', 'zip', 'energy_provider'):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(f'{key} must be a string')

    return errors


def validate_unit(data: dict) -> list:
    """Validate unit input. Returns list of error strings (empty = valid)."""
    errors = []

    property_id = data.get('property_id')
    if property_id is None or isinstance(property_id, bool):
        errors.append('Property ID is required')
    else:
        try:
            if int(property_id) < 1:
                errors.append('Property ID is required')
        except (ValueError, TypeError):
            errors.append('Property ID must be an integer')

    unit_number = str(data.get('unit_number') or '').strip()
    if not unit_number:
        errors.append('Unit number is required')
    elif len(unit_number) > 50:
        errors.append('Unit number must be 50 characters or fewer')

    if 'status' in data and not str(data.get('status') or '').strip():
        errors.append('Status is required')

    _check_int(data, 'bedrooms', 'Bedrooms', errors, minimum=0)
    _check_int(data, 'square_feet', 'Square feet', errors, minimum=0)
    _check_int(data, 'floor', 'Floor', errors)
    _check_money(data, 'base_rent', 'Base rent', errors)

    bathrooms = data.get('bathrooms')
    if bathrooms is not None and bathrooms != '':
        try:
            if float(bathrooms) < 0:
                errors.append('Bathrooms must be 0 or greater')
        except (ValueError, TypeError):
            errors.append('Bathrooms must be a number')

    available_on = data.get('available_on')
    if available_on:
        try:
            datetime.strptime(str(available_on), '%Y-%m-%d')
        except ValueError:
            errors.append('Available on must be in YYYY-MM-DD format')

    return errors


def validate_person(data: dict) -> list:
    """Validate person input. Returns list of error strings (empty = valid)."""
    errors = []

    first_name = (data.get('first_name') or '').strip()
    last_name = (data.get('last_name') or '').strip()
    if not first_name:
        errors.append('First name is required')
    elif len(first_name) > 100:
        errors.append('First name must be 100 characters or fewer')
    if not last_name:
        errors.append('Last name is required')
    elif len(last_name) > 100:
        errors.append('Last name must be 100 characters or fewer')

    _check_email(data.get('email'), errors)

    phone = data.get('phone')
    if phone and len(str(phone).strip()) > 50:
        errors.append('Phone must be 50 characters or fewer')

    if 'status' in data and not str(data.get('status') or '').strip():
        errors.append('Status is required')

    return errors


def validate_application(data: dict) -> list:
    """Validate application input. Returns list of error strings (empty = valid)."""
    errors = []

    name = (data.get('applicant') or '').strip()
    if not name:
        errors.append('Applicant name is required')
    elif len(name) > 255:
        errors.append('Applicant name must be 255 characters or fewer')

    _check_email(data.get('email'), errors)

    move_in_date = data.get('move_in_date')
    if move_in_date:
        if not re.match(r'^\d{2}/\d{2}/\d{4}$', str(move_in_date)):
            errors.append('Move-in date must be in MM/DD/YYYY format')
        else:
            try:
                datetime.strptime(str(move_in_date), '%m/%d/%Y')
            except ValueError:
                errors.append('Move-in date is not a valid date')

    _check_int(data, 'unit_id', 'Unit ID', errors, minimum=1)

    for key in ('deposit', 'rent', 'pet_fee', 'pet_rent', 'renters_insurance',
                'admin_fee', 'initial_payment'):
        _check_money(data, key, key.replace('_', ' ').capitalize(), errors)

    tasks = data.get('tasks')
    if tasks is not None:
        if not isinstance(tasks, list):
            errors.append('Tasks must be a list')
        elif any(not isinstance(t, dict) or not str(t.get('description') or '').strip()
                 for t in tasks):
            errors.append('Every task needs a description')

    return errors


def validate_task(data: dict, allowed_types=None) -> list:
    """Validate a new or edited task. Returns list of error strings (empty = valid)."""
    errors = []

    description = data.get('description')
    if not isinstance(description, str) or not description.strip():
        errors.append('Task description is required')

    task_type = data.get('type')
    if task_type is not None and allowed_types and task_type not in allowed_types:
        errors.append(f"Task type must be one of: {', '.join(allowed_types)}")

    return errors
