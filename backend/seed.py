"""
Seed script to populate the database with initial data.
Run from backend/:
  python seed.py                      # reference properties + default tasks
  python seed.py path/to/tracker.csv  # also import a move-in tracker export
"""
import csv
import sys
import os
from datetime import datetime
sys.path.insert(0, os.path.dirname(__file__))

from crm import create_app, db
from crm.default_tasks import seed_default_tasks
from crm.models import Application, Property

PROPERTIES = [
    "Legacy Apartments",
    "Prairie Village",
    "Orchard Meadows Apartments",
    "Parkside Luxury Apartments",
    "Burbank Village Apartments",
    "NW Pine Apartments",
    "Norwalk Village Estates",
]

# Short names used in the move-in tracker spreadsheet
PROPERTY_ALIASES = {
    'Legacy': 'Legacy Apartments',
    'Prairie Village': 'Prairie Village',
    'Orchard': 'Orchard Meadows Apartments',
    'Parkside': 'Parkside Luxury Apartments',
    'Burbank': 'Burbank Village Apartments',
    'NW Pine': 'NW Pine Apartments',
    'Norwalk': 'Norwalk Village Estates',
}


def seed_properties():
    """Insert any missing reference properties. Returns number added."""
    added = 0
    for name in PROPERTIES:
        if Property.find_by_name(name):
            print(f"  Property '{name}' already exists, skipping.")
            continue
        db.session.add(Property(name=name))
        print(f"  Added property '{name}'")
        added += 1
    db.session.commit()
    print(f"Properties seeded: {Property.query.count()} total.\n")
    return added


def parse_tracker_rows(lines):
    """Parse move-in tracker CSV lines into application dicts.

    The export starts with a status banner row and a header row. "Pending"
    section banners and rows missing a required column are skipped.
    """
    rows = []
    reader = csv.reader(lines)
    for i, columns in enumerate(reader):
        if i < 2:
            continue
        if not columns or columns[0].strip().startswith('Pending'):
            continue
        columns = [c.strip() for c in columns] + [''] * 4
        move_in_date, prop, unit, name = columns[:4]
        if not (move_in_date and prop and unit and name):
            print(f"  Skipping row {i + 1}: missing required fields")
            continue
        rows.append({
            'move_in_date': move_in_date,
            'property': PROPERTY_ALIASES.get(prop, prop),
            'unit_number': unit,
            'applicant': name,
        })
    return rows


def import_tracker(path):
    """Create applications from a tracker CSV. Returns number created."""
    with open(path, 'r', newline='') as f:
        rows = parse_tracker_rows(f)
    for row in rows:
        db.session.add(Application(
            applicant=row['applicant'],
            move_in_date=row['move_in_date'],
            property_name=row['property'],
            unit_number=row['unit_number'],
            status='New',
            created_at=datetime.utcnow(),
        ))
    db.session.commit()
    print(f"Imported {len(rows)} applications from {path}\n")
    return len(rows)


def seed(tracker_path=None):
    app = create_app()
    with app.app_context():
        seed_properties()
        if tracker_path:
            import_tracker(tracker_path)
        result = seed_default_tasks()
        print(f"Default tasks: {result['updated']} applications updated, "
              f"{result['skipped']} skipped.")
        print("\nDone.")


if __name__ == "__main__":
    seed(sys.argv[1] if len(sys.argv) > 1 else None)
