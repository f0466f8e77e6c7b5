"""
Version 1 of the League Registration API.

Breaking changes belong in a new version subpackage (e.g. ``v2``) so
that existing clients keep working.
"""
