"""
Community Service Module

Time-tracked service sessions, service reports (tracked or PDF), the ledger
of days completed against the program requirement, and report review.
"""
