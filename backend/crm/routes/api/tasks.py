"""Task routes: application checklists and the per-user TODO list."""
from flask import request, jsonify
from crm import db
from crm.default_tasks import generate_task_id
from crm.models import Application, Task
from crm.utils.audit_logger import audit_log
from crm.utils.validators import validate_task
from . import api_bp, validation_error, not_found

APPLICATION_TASK_TYPES = ['APPLICANT', 'AGENT', 'NOTES']
TODO_TYPE = 'TODO'


def _next_order(query):
    last = query.order_by(Task.order.desc()).first()
    return last.order + 1 if last else 0


def _application_task(application_id, task_id):
    """Returns (task, error_response)."""
    task = db.session.get(Task, task_id)
    if not task:
        return None, not_found('Task')
    if task.application_id != application_id:
        return None, (jsonify({'error': 'Task does not belong to this application'}), 403)
    return task, None


# ---------------------------------------------------------------------------
# Application checklists
# ---------------------------------------------------------------------------

@api_bp.route('/applications/<int:id>/tasks', methods=['GET'])
def list_application_tasks(id):
    app = db.session.get(Application, id)
    if not app:
        return not_found('Application')
    return jsonify({'tasks': [t.to_dict() for t in app.tasks]}), 200


@api_bp.route('/applications/<int:id>/tasks', methods=['POST'])
def create_application_task(id):
    """Append a task to the end of an application's checklist."""
    app = db.session.get(Application, id)
    if not app:
        return not_found('Application')

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    errors = validate_task(data, allowed_types=APPLICATION_TASK_TYPES)
    if errors:
        return validation_error(errors)

    task = Task(
        id=generate_task_id(),
        description=data['description'].strip(),
        completed=False,
        type=data.get('type') or 'APPLICANT',
        order=_next_order(Task.query.filter_by(application_id=id)),
        application_id=id,
    )
    db.session.add(task)
    db.session.commit()

    audit_log('CREATE', 'task', resource_id=task.id, details={'application_id': id})

    return jsonify(task.to_dict()), 201


@api_bp.route('/applications/<int:id>/tasks/<task_id>', methods=['PUT'])
def update_application_task(id, task_id):
    """Edit a task's description."""
    task, error = _application_task(id, task_id)
    if error:
        return error

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    errors = validate_task(data)
    if errors:
        return validation_error(errors)

    task.description = data['description'].strip()
    db.session.commit()

    audit_log('UPDATE', 'task', resource_id=task_id, details={'fields': ['description']})

    return jsonify(task.to_dict()), 200


@api_bp.route('/applications/<int:id>/tasks/<task_id>', methods=['PATCH'])
def toggle_application_task(id, task_id):
    """Set a task's completed flag."""
    task, error = _application_task(id, task_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    if not isinstance(data.get('completed'), bool):
        return validation_error(['Completed must be true or false'])

    task.completed = data['completed']
    db.session.commit()

    audit_log('UPDATE', 'task', resource_id=task_id, details={'completed': task.completed})

    return jsonify(task.to_dict()), 200


@api_bp.route('/applications/<int:id>/tasks/<task_id>', methods=['DELETE'])
def delete_application_task(id, task_id):
    task, error = _application_task(id, task_id)
    if error:
        return error

    db.session.delete(task)
    db.session.commit()

    audit_log('DELETE', 'task', resource_id=task_id, details={'application_id': id})

    return jsonify({'success': True, 'message': 'Task deleted successfully'}), 200


@api_bp.route('/applications/<int:id>/tasks/reorder', methods=['PUT'])
def reorder_application_tasks(id):
    """
    Reorder an application's checklist. ``taskIds`` lists task ids in their
    new order; each task's ``order`` becomes its position in the list.
    """
    app = db.session.get(Application, id)
    if not app:
        return not_found('Application')

    data = request.get_json(silent=True) or {}
    task_ids = data.get('taskIds')
    if (not isinstance(task_ids, list) or not task_ids
            or not all(isinstance(t, str) for t in task_ids)):
        return validation_error(['Task IDs array is required'])

    tasks_by_id = {t.id: t for t in app.tasks}
    for task_id in task_ids:
        if task_id not in tasks_by_id:
            return jsonify({'error': f'Task {task_id} does not belong to this application'}), 403

    for index, task_id in enumerate(task_ids):
        tasks_by_id[task_id].order = index
    db.session.commit()

    audit_log('UPDATE', 'application', resource_id=str(id), details={'reordered_tasks': len(task_ids)})

    tasks = Task.query.filter_by(application_id=id).order_by(Task.order).all()
    return jsonify({'tasks': [t.to_dict() for t in tasks]}), 200


# ---------------------------------------------------------------------------
# User TODO list
# ---------------------------------------------------------------------------

@api_bp.route('/tasks', methods=['GET'])
def list_todo_tasks():
    """TODO items not attached to an application, optionally for one user."""
    query = Task.query.filter_by(type=TODO_TYPE)
    user_id = request.args.get('user_id', '').strip()
    if user_id:
        query = query.filter_by(user_id=user_id)
    tasks = query.order_by(Task.order).all()
    return jsonify({'tasks': [t.to_dict() for t in tasks]}), 200


@api_bp.route('/tasks', methods=['POST'])
def create_todo_task():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    errors = validate_task(data, allowed_types=[TODO_TYPE])
    if errors:
        return validation_error(errors)

    user_id = data.get('user_id')
    task = Task(
        id=generate_task_id(),
        description=data['description'].strip(),
        completed=False,
        type=TODO_TYPE,
        order=_next_order(Task.query.filter_by(type=TODO_TYPE, user_id=user_id)),
        user_id=user_id,
    )
    db.session.add(task)
    db.session.commit()

    audit_log('CREATE', 'task', resource_id=task.id, details={'type': TODO_TYPE})

    return jsonify(task.to_dict()), 201
