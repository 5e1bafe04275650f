import re
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from employee_api.db.session import AsyncSessionLocal
from employee_api.core.exceptions import AuthError, ValidationError
from employee_api.core.tokens import TokenClaims, TokenService, get_token_service
from employee_api.services.auth_service import AuthService
from employee_api.services.employee_service import EmployeeService, employee_not_found

_INTEGER_ID = re.compile(r"-?[0-9]+")

# employees.id is a 32-bit integer column
MIN_EMPLOYEE_ID = -(2 ** 31)
MAX_EMPLOYEE_ID = 2 ** 31 - 1


async def get_db() -> AsyncGenerator:
    async with AsyncSessionLocal() as session:
        yield session


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthError: Header missing, not a Bearer header, or carrying no token
    """
    if not authorization or not authorization.strip():
        raise AuthError("Authorization required", "Missing Authorization header")

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        raise AuthError("Invalid authorization format", "Authorization header must start with 'Bearer '")

    token = token.strip()
    if not token:
        raise AuthError("Token required", "Empty token provided")
    return token


async def get_current_claims(
    authorization: Optional[str] = Header(None),
    token_service: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """
    Validate the bearer token of the request and return its claims.

    Raises:
        AuthError: Missing or malformed header, or the token fails validation
    """
    token = extract_bearer_token(authorization)
    return token_service.validate(token)


def parse_employee_id(employee_id: str) -> int:
    """Path ids must be plain integers. Ids no row can have are reported as missing."""
    if not _INTEGER_ID.fullmatch(employee_id):
        raise ValidationError("Invalid employee ID", "Employee ID must be a number")
    if len(employee_id.lstrip("-")) > len(str(MAX_EMPLOYEE_ID)):
        raise employee_not_found()
    value = int(employee_id)
    if not MIN_EMPLOYEE_ID <= value <= MAX_EMPLOYEE_ID:
        raise employee_not_found()
    return value


def get_employee_service(db: AsyncSession = Depends(get_db)) -> EmployeeService:
    return EmployeeService(db)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, token_service)
