from __future__ import annotations

from fastapi import APIRouter

from api.v1.endpoints import auth as auth_endpoints
from api.v1.endpoints import appointments as appointments_endpoints
from api.v1.endpoints import records as records_endpoints
from api.v1.endpoints import settings as settings_endpoints


api_router = APIRouter()

# Auth endpoints
api_router.include_router(auth_endpoints.router)
api_router.include_router(appointments_endpoints.router)
api_router.include_router(records_endpoints.clients_router)
api_router.include_router(records_endpoints.professionals_router)
api_router.include_router(records_endpoints.services_router)
api_router.include_router(records_endpoints.products_router)
# Summary route first so "/summary" is not captured as a record id
api_router.include_router(records_endpoints.finance_router)
api_router.include_router(records_endpoints.financial_entries_router)
api_router.include_router(settings_endpoints.router)
