"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ServiceType(str, Enum):
    INSTALLATION = "installation"
    REPAIR = "repair"
    MAINTENANCE = "maintenance"
    INSPECTION = "inspection"


class ExecutionContext(str, Enum):
    """Where validation runs.

    CONTROLLED runs never reach an external distance source and accept any
    override wording; PRODUCTION runs do both.
    """

    CONTROLLED = "controlled"
    PRODUCTION = "production"


class DistanceMode(str, Enum):
    GEOMETRIC = "geometric"
    EXTERNAL = "external"


class ValidationCode(str, Enum):
    OUT_OF_RANGE = "out_of_range"
    NOT_A_NUMBER = "not_a_number"


class CapacityState(str, Enum):
    NEAR_CAPACITY = "near_capacity"
    AT_CAPACITY = "at_capacity"
    OVER_CAPACITY = "over_capacity"


class ResolutionStrategy(str, Enum):
    ACCEPT = "accept"
    SUGGEST_ALTERNATIVES = "suggest_alternatives"
    RESCHEDULE = "reschedule"
    REJECT = "reject"
