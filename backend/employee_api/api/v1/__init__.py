from fastapi import APIRouter

from employee_api.api.v1 import auth, employees

api_router = APIRouter()
# Auth endpoints guard themselves; only /auth/profile needs a token
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
