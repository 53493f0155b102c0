"""
Recruitment records consumed by the matching engine.

Holds the candidate, job posting and uploaded CV models. Their CRUD surfaces
live elsewhere; this app only owns the tables the matcher reads.
"""
