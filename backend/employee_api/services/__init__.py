# Services Package

from employee_api.services.auth_service import AuthService, LoginResult
from employee_api.services.employee_service import EmployeePage, EmployeeService

__all__ = [
    "AuthService",
    "LoginResult",
    "EmployeePage",
    "EmployeeService",
]
