"""
Pydantic schema definitions for API payloads.

Each domain (registrations, payments, users, leads) defines its own
Pydantic models for request and response bodies.  Schemas are
separated from the SQLite rows to decouple API representation from
persistence.  Field names are snake_case in Python and camelCase on
the wire (see ``common.ApiModel``).
"""
