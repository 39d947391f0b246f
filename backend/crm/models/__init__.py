from .property import Property
from .unit import Unit
from .person import Person
from .application import Application
from .application_person import ApplicationPerson
from .task import Task

__all__ = ['Property', 'Unit', 'Person', 'Application', 'ApplicationPerson', 'Task']
