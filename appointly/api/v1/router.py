"""
API v1 router setup
Organized into: public (customers, chat) and dashboard (business owners)
"""
from fastapi import APIRouter

from appointly.api.v1.public import booking, chat
from appointly.api.v1.dashboard import settings, services, employees, appointments

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    booking.router,
    prefix="/public",
    tags=["Public"]
)

api_v1_router.include_router(
    chat.router,
    prefix="/public",
    tags=["Chat"]
)

# ============================================================================
# DASHBOARD ROUTES (business scoped by path)
# ============================================================================
api_v1_router.include_router(
    settings.router,
    prefix="/dashboard/businesses",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    services.router,
    prefix="/dashboard/businesses",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    employees.router,
    prefix="/dashboard/businesses",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    appointments.business_router,
    prefix="/dashboard/businesses",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    appointments.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and route groups"""
    return {
        "version": "1.0",
        "routes": {
            "public": "Availability, booking, confirmation, cancellation and chat",
            "dashboard": "Booking settings, services, employees and appointments"
        }
    }
