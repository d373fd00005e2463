from fastapi import APIRouter
from app.routes import fixed_recurring_entries, fixed_recurring_occurrences

api_router = APIRouter()

api_router.include_router(
    fixed_recurring_entries.router,
    prefix="/accounts/{account_id}/fixed-recurring-entries",
    tags=["fixed-recurring-entries"],
)
api_router.include_router(
    fixed_recurring_occurrences.router,
    prefix="/accounts/{account_id}/fixed-recurring-occurrences",
    tags=["fixed-recurring-occurrences"],
)
