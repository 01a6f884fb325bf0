"""
PPP Rental (Wynajem sprzętu) - equipment rental quoting backend.
"""
