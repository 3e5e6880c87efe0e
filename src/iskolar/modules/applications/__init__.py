"""
Scholarship Applications Module

The application lifecycle: creation behind the eligibility gate, submission
once every document requirement has an upload, cancellation, and the
administrator-driven downstream workflow through disbursement.

Status changes go through the explicit transition table in
``state_machine``; aggregate preconditions are recomputed from child rows on
every check.
"""
