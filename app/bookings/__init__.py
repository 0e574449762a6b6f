"""
Bookings application.

Read-mostly view of the booking lifecycle: who rented what from whom and
the per-booking claim window the owner has after the equipment comes back.
Approval and scheduling workflows live outside this service.
"""
