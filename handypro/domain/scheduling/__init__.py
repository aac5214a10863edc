"""
Scheduling Domain

Appointment booking with calendar-conflict checks.

Structure:
```
handypro/domain/scheduling/
├── __init__.py
├── errors.py           # BookingError hierarchy (code + HTTP status)
├── time_calculator.py  # Half-open TimeWindow, overlap test, business-hour slots
├── schemas.py          # Booking request/response, available slots
├── repository.py       # Booking database queries
├── locks.py            # Per-day in-process lock around check-then-create
├── notifications.py    # Client + staff confirmation emails
├── service.py          # BookingService, AvailabilityService
└── router.py           # /bookings endpoints
```

Booking flow (BookingService.request_booking):
1. Validate input and build the window [appointmentDate, +duration)
2. Read overlapping calendar events; any overlap -> SlotUnavailable
3. Insert booking as pending
4. Create the calendar event; on failure the booking stays pending with
   calendar_sync_error set (listed by GET /bookings/unconfirmed)
5. Mark confirmed and store the event id
6. Email client and staff; failures are logged and reported, not raised
"""
