"""
Service layer.

Each service encapsulates the business logic of one domain and is
constructed once in ``create_app`` with its collaborators (database,
payment gateway, mailer).  Services raise ``core.errors`` exceptions
and never build HTTP responses.
"""
