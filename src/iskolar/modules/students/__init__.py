"""
Student Profiles Module

Student profile model and lookups used by the authorization context and the
eligibility gate.
"""
