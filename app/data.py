# app/data.py

# Google Calendar colorId per staff member
STAFF_COLORS = {
    "Cláudio Monteiro": "7",
    "André Henriques (CC)": "11",
}

# Graphite, not used by any staff member
ABSENCE_COLOR_ID = "8"

# Private extended properties written on every tagged event
TAG_PROPERTY = "bookingId"
MEMBER_PROPERTY = "bookingMember"

STAFF_NOTE_PREFIX = "Staff: "
