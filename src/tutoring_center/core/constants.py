"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Well-known plan standing for "no real plan" (ad-hoc lessons). Never listed, never editable.
SYSTEM_SUBSCRIPTION_PLAN_ID = "00000000-0000-0000-0000-000000000000"

RECURRENCE_INTERVAL_DAYS = 7
RECURRENCE_OCCURRENCES = 52

DEFAULT_LESSON_PRICE = 0
DEFAULT_UPCOMING_EVENTS = 5

PAYMENT_DESCRIPTION = "Subscription payment"
DEBT_LESSON_DESCRIPTION = "Lesson on {date} without subscription"
DEBT_REVERSAL_DESCRIPTION = "Reversal of unpaid lesson on {date}"
DEBT_CLEARED_DESCRIPTION = "Lesson on {date} covered by new subscription"
CREDIT_REFUND_DESCRIPTION = "Refund to balance (subscription #{short_id})"
CASH_REFUND_DESCRIPTION = "Cash refund (subscription #{short_id})"
