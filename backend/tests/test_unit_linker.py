"""
Tests for linking applications to Unit rows.
"""
from crm import db
from crm.models import Application, Unit
from crm.store import CrmStore, WriteResult
from crm.unit_linker import UnitLinker


def _unit_id(app):
    return db.session.get(Application, app.id).unit_id


def test_links_and_creates_units(make_property, make_application):
    make_property('Legacy Apartments')
    a1 = make_application('A One', property='Legacy Apartments', unit_number='101', rent='900')
    a2 = make_application('B Two', property='legacy apartments', unit_number='101')

    stats = UnitLinker(CrmStore(), commit=True).run()

    assert stats.total_applications == 2
    assert stats.units_created == 1
    assert stats.applications_linked == 2
    unit = Unit.query.one()
    assert unit.base_rent == '900'
    assert unit.status == 'Occupied'
    assert _unit_id(a1) == _unit_id(a2) == unit.id


def test_existing_unit_is_found_not_created(make_property, make_application, make_unit):
    prop = make_property('Oak')
    unit = make_unit(prop, '5')
    app = make_application('A One', property='Oak', unit_number='5')

    stats = UnitLinker(CrmStore(), commit=True).run()

    assert stats.units_created == 0
    assert _unit_id(app) == unit.id


def test_skip_rules(make_property, make_application, make_unit):
    prop = make_property('Oak')
    unit = make_unit(prop, '1')
    make_application('Linked', property='Oak', unit_number='2', unit_id=unit.id)
    make_application('No Property', property='  ', unit_number='3')
    make_application('No Unit', property='Oak', unit_number=' ')
    missing = make_application('Unknown Property', property='Sunset', unit_number='4')

    stats = UnitLinker(CrmStore(), commit=True).run()

    assert stats.already_linked == 1
    assert stats.skipped == 3
    assert stats.applications_linked == 0
    assert stats.errors == [f'App {missing.id}: Property "Sunset" not found in database']
    assert Unit.query.count() == 1


def test_dry_run_writes_nothing(make_property, make_application):
    make_property('Oak')
    app = make_application('A One', property='Oak', unit_number='1')

    stats = UnitLinker(CrmStore(), commit=False).run()

    assert stats.units_created == 1
    assert stats.applications_linked == 1
    assert Unit.query.count() == 0
    assert _unit_id(app) is None
    assert 'DRY RUN' in stats.summary_lines()[1]


def test_second_run_is_a_no_op(make_property, make_application):
    make_property('Oak')
    make_application('A One', property='Oak', unit_number='1')
    UnitLinker(CrmStore(), commit=True).run()

    stats = UnitLinker(CrmStore(), commit=True).run()

    assert stats.already_linked == 1
    assert stats.units_created == 0
    assert stats.applications_linked == 0


def test_failures_are_recorded_and_run_continues(make_property, make_application):
    class FlakyStore(CrmStore):
        def set_application_unit(self, application_id, unit_id):
            if application_id == first.id:
                return WriteResult.failed('timeout')
            return super().set_application_unit(application_id, unit_id)

    make_property('Oak')
    first = make_application('A One', property='Oak', unit_number='1')
    second = make_application('B Two', property='Oak', unit_number='2')

    stats = UnitLinker(FlakyStore(), commit=True).run()

    assert stats.errors == [f'App {first.id}: Failed to link - timeout']
    assert stats.applications_linked == 1
    assert _unit_id(first) is None
    assert _unit_id(second) is not None
