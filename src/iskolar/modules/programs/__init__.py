"""
Scholarship Programs Module

Programs, their document requirements, and the eligibility & capacity gate
shared by program listing and application creation.
"""
