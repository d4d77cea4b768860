"""User records service.

HTTP API, validation, and relational data-access layer for user records.
"""

__version__ = "1.0.0"
