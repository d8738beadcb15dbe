"""Exceptions raised by the analytics engine.

Data-shape problems never raise: malformed records are dropped and empty
input has a zero value. Only setup mistakes surface as exceptions.
"""


class ConfigurationError(ValueError):
    """Invalid engine setup, such as a non-positive threshold or an unknown period."""
