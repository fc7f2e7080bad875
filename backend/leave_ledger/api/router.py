from fastapi import APIRouter

from leave_ledger.api.entitlements import entitlements_router
from leave_ledger.api.organization import employees_router, leave_types_router, positions_router
from leave_ledger.api.requests import requests_router
from leave_ledger.api.usage import employee_usage_router, usage_router

api_router = APIRouter()
api_router.include_router(positions_router)
api_router.include_router(employees_router)
api_router.include_router(leave_types_router)
api_router.include_router(entitlements_router)
api_router.include_router(requests_router)
api_router.include_router(employee_usage_router)
api_router.include_router(usage_router)
