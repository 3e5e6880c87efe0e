"""
Documents Module

Document uploads against program requirements, the per-application
verification tracker, and administrator review.
"""
