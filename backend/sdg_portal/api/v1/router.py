from fastapi import APIRouter

from sdg_portal.api.v1 import forms, import_routes, submissions

api_router = APIRouter()

api_router.include_router(forms.router, prefix="/forms", tags=["forms"])
api_router.include_router(submissions.router, prefix="/form-submissions", tags=["form-submissions"])
api_router.include_router(import_routes.router, prefix="/import", tags=["import"])
