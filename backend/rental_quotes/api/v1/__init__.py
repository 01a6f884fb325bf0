"""
API v1 routes
Project: PPP Rental (Wynajem sprzętu)
"""

from fastapi import APIRouter

from rental_quotes.api.v1 import (
    clients,
    equipment,
    equipment_additional,
    equipment_categories,
    equipment_pricing,
    equipment_service_items,
    needs_assessment,
    pricing_schemas,
    public,
    quote_items,
    quotes,
)

# Aggregated v1 router
api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(clients.router)
api_v1_router.include_router(equipment_categories.router)
api_v1_router.include_router(equipment.router)
api_v1_router.include_router(equipment_pricing.router)
api_v1_router.include_router(equipment_additional.router)
api_v1_router.include_router(equipment_service_items.router)
api_v1_router.include_router(pricing_schemas.router)
api_v1_router.include_router(quotes.router)
api_v1_router.include_router(quote_items.router)
api_v1_router.include_router(needs_assessment.router)
api_v1_router.include_router(public.router)

__all__ = ["api_v1_router"]
