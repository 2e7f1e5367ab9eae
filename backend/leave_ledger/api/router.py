from fastapi import APIRouter

from leave_ledger.api.balances import employee_balance_router, employee_ledger_router
from leave_ledger.api.calendars import calendars_router
from leave_ledger.api.employees import employees_router
from leave_ledger.api.jobs import jobs_router
from leave_ledger.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(employee_balance_router)
api_router.include_router(employee_ledger_router)
api_router.include_router(employees_router)
api_router.include_router(calendars_router)
api_router.include_router(jobs_router)
