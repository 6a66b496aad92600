"""Subscription plans, ordered from least to most capable."""

PLAN_ORDER = ["free", "pro", "business"]
DEFAULT_PLAN = "free"


def is_valid_plan(plan: str | None) -> bool:
    return plan in PLAN_ORDER


def plan_allows(user_plan: str | None, required_plan: str) -> bool:
    """Return True if ``user_plan`` ranks at or above ``required_plan``.

    A missing plan is treated as the default plan. Unknown plans raise
    ``ValueError``.
    """
    user_plan = user_plan or DEFAULT_PLAN
    if not is_valid_plan(user_plan):
        raise ValueError(f"Invalid plan: {user_plan}")
    return PLAN_ORDER.index(user_plan) >= PLAN_ORDER.index(required_plan)
