from roster.models.hr.employee import Employee
from roster.models.hr.shift import Shift


__all__ = [
    "Employee",
    "Shift",
]
