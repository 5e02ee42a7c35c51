"""Tutoring center management core.

This package is organized by feature modules (students, attendance, ledger,
schedules, ...) with a thin Flask controller layer on top of service/repository
layers. The ledger and the recurrence expander hold the business rules; the rest
is entity bookkeeping around them.
"""
