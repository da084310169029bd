"""Clinic attendance validation engine.

The package is organised by feature modules (tolerance, schedules, locations, attendance, ...).
Each module keeps plain domain records, a repository interface and a MySQL implementation,
with the rule services sitting on top of the interfaces.
"""
