# backend/physio/services/bookings/__init__.py
"""
Bookings module.

validator → slot claim → booking + payment rows → notifications.
Status changes go through the state machine.
"""
