"""
Engine-wide constants.
Centralizes magic numbers and labels shared by several modules.
"""

# Log-safe display of booking tokens
TOKEN_PREFIX_LENGTH = 8

# Availability
DAYS_IN_WEEK = 7

# Audit labels rendered when an actor carries no name
CUSTOMER_LABEL = "Customer"
SYSTEM_LABEL = "System"
ADMIN_ROLE_LABELS = {
    "admin": "System admin",
    "owner": "Venue owner",
    "staff": "Staff member",
}
