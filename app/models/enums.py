"""
Juni — Status enumerations shared by models, services and schemas.

Members subclass ``str`` so they compare equal to the raw column values.
"""

import enum


class CompanionStatus(str, enum.Enum):
    APPLIED = "APPLIED"
    SCREENING = "SCREENING"
    TRAINING = "TRAINING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    DEACTIVATED = "DEACTIVATED"


class MatchStatus(str, enum.Enum):
    PROPOSED = "PROPOSED"
    ACCEPTED = "ACCEPTED"  # transitional, treated like PROPOSED
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"


class VisitStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PayoutStatus(str, enum.Enum):
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    FAILED = "FAILED"


class Availability(str, enum.Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    FLEXIBLE = "flexible"
    WEEKENDS = "weekends"


class VisitType(str, enum.Enum):
    REGULAR = "Regular visit"
    LEGACY_RECORDING = "Legacy recording"
    OUTDOOR_ACTIVITY = "Outdoor activity"
    MEDICAL_ACCOMPANIMENT = "Medical accompaniment"


class UserRole(str, enum.Enum):
    FAMILY = "family"
    COMPANION = "companion"
    ADMIN = "admin"
