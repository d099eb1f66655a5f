"""Models module exporting all database models."""

from .car import Car, FuelType, Transmission
from .enquiry import BookingEnquiry, EnquirySource, EnquiryStatus

__all__ = [
    # Fleet
    "Car",
    "FuelType",
    "Transmission",

    # Enquiries and confirmed bookings
    "BookingEnquiry",
    "EnquirySource",
    "EnquiryStatus",
]
