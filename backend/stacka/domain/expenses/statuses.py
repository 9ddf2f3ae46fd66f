from enum import Enum

COST_ASSIGNMENT_PERSONAL = "personal"
COST_ASSIGNMENT_SHARED = "shared"
COST_ASSIGNMENT_PARTNER = "partner"

COST_TYPE_FIXED = "Fixed"
COST_TYPE_VARIABLE = "Variable"
COST_TYPE_SAVINGS = "Savings"


class CostAssignment(str, Enum):
    personal = COST_ASSIGNMENT_PERSONAL
    shared = COST_ASSIGNMENT_SHARED
    partner = COST_ASSIGNMENT_PARTNER


class CostType(str, Enum):
    fixed = COST_TYPE_FIXED
    variable = COST_TYPE_VARIABLE
    savings = COST_TYPE_SAVINGS


def normalize_cost_assignment(value: str | CostAssignment | None) -> CostAssignment:
    """Untagged expenses count as personal."""
    if value is None or value == "":
        return CostAssignment.personal
    if isinstance(value, CostAssignment):
        return value
    try:
        return CostAssignment(value)
    except ValueError as exc:
        raise ValueError("invalid_cost_assignment") from exc
