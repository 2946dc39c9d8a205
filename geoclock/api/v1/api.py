"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from geoclock.api.v1.endpoints import (auth, clock, corrections, locations,
                                       shifts, workers)

api_router = APIRouter()

# Admin auth (login, logout, user management)
api_router.include_router(auth.router)

# Worker-facing: clock, registration, correction requests, health
api_router.include_router(clock.router)

# Admin: location registry, worker directory, shift ledger, corrections queue
api_router.include_router(locations.router)
api_router.include_router(workers.router)
api_router.include_router(shifts.router)
api_router.include_router(corrections.router)
