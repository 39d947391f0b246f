"""
Tests for the CRM JSON API.
"""
import io

import pytest

from openpyxl import load_workbook

from crm import db
from crm.default_tasks import DEFAULT_AGENT_TASKS, DEFAULT_APPLICANT_TASKS
from crm.models import Application, Task, Unit


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json() == {'status': 'healthy'}


def test_write_requests_require_json(client):
    response = client.post('/api/properties', data='name=Oak',
                           content_type='application/x-www-form-urlencoded')
    assert response.status_code == 415


def test_security_headers(client):
    response = client.get('/api/properties')
    assert response.headers['X-Content-Type-Options'] == 'nosniff'
    assert response.headers['X-Frame-Options'] == 'DENY'


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

class TestProperties:

    def test_create_and_list(self, client):
        response = client.post('/api/properties', json={'name': 'Oak Court', 'city': 'Austin'})
        assert response.status_code == 201
        assert response.get_json()['name'] == 'Oak Court'

        names = [p['name'] for p in client.get('/api/properties').get_json()['properties']]
        assert names == ['Oak Court']

    def test_create_requires_name(self, client):
        response = client.post('/api/properties', json={'name': '  '})
        assert response.status_code == 400
        body = response.get_json()
        assert body['error'] == 'Validation failed'
        assert 'Property name is required' in body['details']

    def test_get_includes_units(self, client, make_property, make_unit):
        prop = make_property('Oak')
        make_unit(prop, 'B')
        make_unit(prop, 'A')

        body = client.get(f'/api/properties/{prop.id}').get_json()

        assert [u['unit_number'] for u in body['units']] == ['A', 'B']

    def test_get_missing(self, client):
        assert client.get('/api/properties/999').status_code == 404


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

class TestUnits:

    def test_create_duplicate_returns_409(self, client, make_property):
        prop = make_property('Oak')
        payload = {'property_id': prop.id, 'unit_number': '1A'}

        assert client.post('/api/units', json=payload).status_code == 201
        response = client.post('/api/units', json=payload)

        assert response.status_code == 409
        assert Unit.query.count() == 1

    def test_create_validates(self, client):
        response = client.post('/api/units', json={'unit_number': '', 'bedrooms': 'two'})
        details = response.get_json()['details']
        assert response.status_code == 400
        assert 'Property ID is required' in details
        assert 'Unit number is required' in details
        assert 'Bedrooms must be an integer' in details

    def test_create_unknown_property(self, client):
        response = client.post('/api/units', json={'property_id': 42, 'unit_number': '1'})
        assert response.status_code == 404

    def test_list_filters_by_property(self, client, make_property, make_unit):
        oak = make_property('Oak')
        elm = make_property('Elm')
        make_unit(oak, '1')
        make_unit(elm, '2')

        units = client.get(f'/api/units?property_id={elm.id}').get_json()['units']

        assert [u['unit_number'] for u in units] == ['2']


class TestFindOrCreateUnit:

    def test_creates_then_finds(self, client, make_property):
        make_property('Legacy Apartments')
        payload = {'propertyName': 'legacy apartments', 'unitNumber': ' 204 '}

        created = client.post('/api/units/find-or-create', json=payload)
        found = client.post('/api/units/find-or-create', json=payload)

        assert created.status_code == 201
        assert created.get_json()['created'] is True
        assert created.get_json()['unit']['status'] == 'Vacant'
        assert created.get_json()['unit']['unit_number'] == '204'
        assert found.status_code == 200
        assert found.get_json()['created'] is False
        assert found.get_json()['unitId'] == created.get_json()['unitId']
        assert Unit.query.count() == 1

    def test_unknown_property(self, client):
        response = client.post('/api/units/find-or-create',
                               json={'propertyName': 'Nowhere', 'unitNumber': '1'})
        assert response.status_code == 404
        assert 'suggestion' in response.get_json()

    def test_missing_fields(self, client):
        assert client.post('/api/units/find-or-create',
                           json={'propertyName': 'Oak'}).status_code == 400
        assert client.post('/api/units/find-or-create',
                           json={'propertyName': '  ', 'unitNumber': '1'}).status_code == 400


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------

class TestPeople:

    def test_create_and_update(self, client):
        created = client.post('/api/people', json={
            'first_name': 'Jane', 'last_name': 'Doe', 'email': 'jane@x.com',
        })
        assert created.status_code == 201
        person_id = created.get_json()['id']
        assert created.get_json()['status'] == 'Prospect'

        updated = client.put(f'/api/people/{person_id}', json={'status': 'Resident'})

        assert updated.status_code == 200
        assert updated.get_json()['status'] == 'Resident'
        assert updated.get_json()['first_name'] == 'Jane'

    def test_invalid_email(self, client):
        response = client.post('/api/people', json={
            'first_name': 'Jane', 'last_name': 'Doe', 'email': 'not-an-email',
        })
        assert response.status_code == 400
        assert 'Invalid email address' in response.get_json()['details']

    def test_get_lists_linked_applications(self, client, make_application, link_person):
        app = make_application()
        person = link_person(app)

        body = client.get(f'/api/people/{person.id}').get_json()

        assert body['application_ids'] == [app.id]


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------

class TestApplications:

    def test_create_attaches_default_checklists(self, client):
        response = client.post('/api/applications', json={
            'applicant': 'Jane Doe', 'email': 'jane@x.com', 'rent': '1,250.00',
            'move_in_date': '03/01/2025',
        })

        assert response.status_code == 201
        tasks = response.get_json()['tasks']
        assert len(tasks) == len(DEFAULT_APPLICANT_TASKS) + len(DEFAULT_AGENT_TASKS)
        assert [t['order'] for t in tasks] == list(range(len(tasks)))
        assert tasks[0]['type'] == 'APPLICANT'
        assert tasks[-1]['type'] == 'AGENT'

    def test_create_with_explicit_tasks(self, client):
        response = client.post('/api/applications', json={
            'applicant': 'Jane Doe', 'tasks': [{'description': 'Call back'}],
        })
        assert [t['description'] for t in response.get_json()['tasks']] == ['Call back']

    def test_create_with_unit_copies_legacy_text(self, client, make_property, make_unit):
        unit = make_unit(make_property('Oak'), '3C')

        response = client.post('/api/applications', json={
            'applicant': 'Jane Doe', 'unit_id': unit.id,
        })

        body = response.get_json()
        assert body['unit_id'] == unit.id
        assert body['property'] == 'Oak'
        assert body['unit_number'] == '3C'

    def test_create_validates(self, client):
        response = client.post('/api/applications', json={
            'applicant': '', 'move_in_date': '2025-03-01', 'rent': 'lots',
        })
        details = response.get_json()['details']
        assert response.status_code == 400
        assert 'Applicant name is required' in details
        assert 'Move-in date must be in MM/DD/YYYY format' in details
        assert 'Rent must be a dollar amount' in details

    def test_get_includes_unit_and_persons(self, client, make_property, make_unit,
                                           make_application, link_person):
        unit = make_unit(make_property('Oak'), '1')
        app = make_application(unit_id=unit.id)
        person = link_person(app)

        body = client.get(f'/api/applications/{app.id}').get_json()

        assert body['unit']['id'] == unit.id
        assert body['unit']['property']['name'] == 'Oak'
        assert [p['id'] for p in body['persons']] == [person.id]

    def test_list_search(self, client, make_application):
        make_application('Jane Doe', property='Oak')
        make_application('John Roe', property='Elm')

        body = client.get('/api/applications?q=elm').get_json()

        assert [a['applicant'] for a in body['applications']] == ['John Roe']

    def test_patch(self, client, make_application):
        app = make_application()

        response = client.patch(f'/api/applications/{app.id}',
                                json={'status': 'Approved', 'property': 'Oak'})

        assert response.status_code == 200
        refreshed = db.session.get(Application, app.id)
        assert refreshed.status == 'Approved'
        assert refreshed.property_name == 'Oak'

    def test_delete_removes_tasks_and_links(self, client, make_application, link_person):
        response = client.post('/api/applications', json={'applicant': 'Jane Doe'})
        app_id = response.get_json()['id']
        link_person(db.session.get(Application, app_id))

        assert client.delete(f'/api/applications/{app_id}').status_code == 200
        assert db.session.get(Application, app_id) is None
        assert Task.query.filter_by(application_id=app_id).count() == 0


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

class TestExport:

    def test_csv(self, client, make_application):
        make_application('Late Mover', move_in_date='06/01/2025')
        make_application('Early Mover', move_in_date='02/01/2025', rent='900')

        response = client.get('/api/export/applications?format=csv')

        assert response.status_code == 200
        assert response.mimetype == 'text/csv'
        lines = response.get_data(as_text=True).splitlines()
        assert lines[0].startswith('id,status,applicant')
        assert 'Early Mover' in lines[1]
        assert 'Late Mover' in lines[2]

    def test_xlsx(self, client, make_application):
        make_application('Jane Doe', property='Oak')

        response = client.get('/api/export/applications?format=xlsx')

        assert response.status_code == 200
        ws = load_workbook(io.BytesIO(response.data)).active
        assert ws['A1'].value == 'id'
        assert ws['C2'].value == 'Jane Doe'

    def test_unknown_format(self, client):
        assert client.get('/api/export/applications?format=pdf').status_code == 400


# ---------------------------------------------------------------------------
# Property and unit maintenance
# ---------------------------------------------------------------------------

class TestPropertyUpdateDelete:

    def test_update(self, client, make_property):
        prop = make_property('Oak', city='Austin')

        response = client.put(f'/api/properties/{prop.id}', json={'city': ' Dallas '})

        assert response.status_code == 200
        assert response.get_json()['city'] == 'Dallas'
        assert response.get_json()['name'] == 'Oak'

    def test_update_rejects_blank_name(self, client, make_property):
        prop = make_property('Oak')
        response = client.put(f'/api/properties/{prop.id}', json={'name': ''})
        assert response.status_code == 400

    def test_delete(self, client, make_property):
        prop = make_property('Oak')

        assert client.delete(f'/api/properties/{prop.id}').status_code == 200
        assert client.get(f'/api/properties/{prop.id}').status_code == 404

    def test_delete_with_units_is_refused(self, client, make_property, make_unit):
        prop = make_property('Oak')
        make_unit(prop, '1')

        assert client.delete(f'/api/properties/{prop.id}').status_code == 409
        assert Unit.query.count() == 1


class TestUnitUpdateDelete:

    def test_update(self, client, make_property, make_unit):
        unit = make_unit(make_property('Oak'), '1')

        response = client.put(f'/api/units/{unit.id}', json={
            'status': 'Occupied', 'bedrooms': 2, 'available_on': '2025-04-01',
        })

        body = response.get_json()
        assert response.status_code == 200
        assert body['status'] == 'Occupied'
        assert body['bedrooms'] == 2
        assert body['available_on'] == '2025-04-01'
        assert body['unit_number'] == '1'

    def test_renumber_onto_existing_unit_returns_409(self, client, make_property, make_unit):
        prop = make_property('Oak')
        make_unit(prop, '1')
        second = make_unit(prop, '2')

        response = client.put(f'/api/units/{second.id}', json={'unit_number': '1'})

        assert response.status_code == 409
        assert db.session.get(Unit, second.id).unit_number == '2'

    def test_delete(self, client, make_property, make_unit):
        unit = make_unit(make_property('Oak'), '1')

        assert client.delete(f'/api/units/{unit.id}').status_code == 200
        assert Unit.query.count() == 0

    def test_delete_linked_unit_is_refused(self, client, make_property, make_unit,
                                           make_application):
        unit = make_unit(make_property('Oak'), '1')
        make_application(unit_id=unit.id)

        assert client.delete(f'/api/units/{unit.id}').status_code == 409
        assert Unit.query.count() == 1


def test_find_or_create_conflict_without_row_returns_409(client, make_property, make_unit,
                                                         monkeypatch):
    prop = make_property('Oak')
    make_unit(prop, '1')
    # lookups miss, so the insert hits the unique constraint and the re-fetch finds nothing
    monkeypatch.setattr(Unit, 'find_by_property_and_number',
                        classmethod(lambda cls, property_id, unit_number: None))

    response = client.post('/api/units/find-or-create',
                           json={'propertyName': 'Oak', 'unitNumber': '1'})

    assert response.status_code == 409
    assert 'error' in response.get_json()


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@pytest.fixture
def checklist(client):
    """An application created through the API, with its default tasks."""
    body = client.post('/api/applications', json={'applicant': 'Jane Doe'}).get_json()
    return body['id'], [t['id'] for t in body['tasks']]


class TestApplicationTasks:

    def test_list(self, client, checklist):
        app_id, task_ids = checklist

        tasks = client.get(f'/api/applications/{app_id}/tasks').get_json()['tasks']

        assert [t['id'] for t in tasks] == task_ids

    def test_create_appends(self, client, checklist):
        app_id, task_ids = checklist

        response = client.post(f'/api/applications/{app_id}/tasks',
                               json={'description': 'Collect pet deposit', 'type': 'AGENT'})

        body = response.get_json()
        assert response.status_code == 201
        assert body['order'] == len(task_ids)
        assert body['type'] == 'AGENT'
        assert body['completed'] is False

    def test_create_validates(self, client, checklist):
        app_id, _ = checklist
        response = client.post(f'/api/applications/{app_id}/tasks',
                               json={'description': ' ', 'type': 'TODO'})
        details = response.get_json()['details']
        assert response.status_code == 400
        assert 'Task description is required' in details
        assert any(d.startswith('Task type must be one of') for d in details)

    def test_create_for_missing_application(self, client):
        response = client.post('/api/applications/999/tasks', json={'description': 'x'})
        assert response.status_code == 404

    def test_toggle_and_edit(self, client, checklist):
        app_id, task_ids = checklist
        url = f'/api/applications/{app_id}/tasks/{task_ids[0]}'

        toggled = client.patch(url, json={'completed': True})
        edited = client.put(url, json={'description': 'Sign the lease'})

        assert toggled.get_json()['completed'] is True
        assert edited.get_json()['description'] == 'Sign the lease'
        assert db.session.get(Task, task_ids[0]).completed is True

    def test_toggle_requires_boolean(self, client, checklist):
        app_id, task_ids = checklist
        response = client.patch(f'/api/applications/{app_id}/tasks/{task_ids[0]}',
                                json={'completed': 'yes'})
        assert response.status_code == 400

    def test_task_of_other_application_is_forbidden(self, client, checklist, make_application):
        _, task_ids = checklist
        other = make_application('Other')

        response = client.delete(f'/api/applications/{other.id}/tasks/{task_ids[0]}')

        assert response.status_code == 403
        assert db.session.get(Task, task_ids[0]) is not None

    def test_delete(self, client, checklist):
        app_id, task_ids = checklist

        response = client.delete(f'/api/applications/{app_id}/tasks/{task_ids[0]}')

        assert response.status_code == 200
        assert db.session.get(Task, task_ids[0]) is None
        assert client.delete(f'/api/applications/{app_id}/tasks/{task_ids[0]}').status_code == 404

    def test_reorder(self, client, checklist):
        app_id, task_ids = checklist
        new_order = list(reversed(task_ids))

        response = client.put(f'/api/applications/{app_id}/tasks/reorder',
                              json={'taskIds': new_order})

        assert response.status_code == 200
        tasks = response.get_json()['tasks']
        assert [t['id'] for t in tasks] == new_order
        assert [t['order'] for t in tasks] == list(range(len(new_order)))

    def test_reorder_rejects_foreign_task(self, client, checklist):
        app_id, task_ids = checklist

        response = client.put(f'/api/applications/{app_id}/tasks/reorder',
                              json={'taskIds': [task_ids[0], 'task_unknown']})

        assert response.status_code == 403
        assert db.session.get(Task, task_ids[0]).order == 0

    def test_reorder_requires_ids(self, client, checklist):
        app_id, _ = checklist
        response = client.put(f'/api/applications/{app_id}/tasks/reorder', json={'taskIds': []})
        assert response.status_code == 400


class TestTodoTasks:

    def test_create_and_list_per_user(self, client):
        first = client.post('/api/tasks', json={'description': 'Call plumber', 'user_id': 'u1'})
        second = client.post('/api/tasks', json={'description': 'Order keys', 'user_id': 'u1'})
        client.post('/api/tasks', json={'description': 'Someone else', 'user_id': 'u2'})

        assert first.status_code == 201
        assert (first.get_json()['order'], second.get_json()['order']) == (0, 1)
        assert first.get_json()['application_id'] is None

        tasks = client.get('/api/tasks?user_id=u1').get_json()['tasks']
        assert [t['description'] for t in tasks] == ['Call plumber', 'Order keys']

    def test_checklist_items_are_not_todos(self, client, checklist):
        assert client.get('/api/tasks').get_json()['tasks'] == []

    def test_only_todo_type_allowed(self, client):
        response = client.post('/api/tasks', json={'description': 'x', 'type': 'AGENT'})
        assert response.status_code == 400
