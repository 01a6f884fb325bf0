"""
API routes
Project: PPP Rental (Wynajem sprzętu)

Aggregates the versioned routers.
"""
