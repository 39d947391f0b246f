from .audit_logger import audit_log, audited
from .validators import (validate_property, validate_unit, validate_person,
                         validate_application, validate_task)
from .export import generate_applications_csv, generate_applications_xlsx
