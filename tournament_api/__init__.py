"""Tournament registration and admin API."""

# Registers the "objectid" path convertor before any router is built.
from tournament_api import ids  # noqa: F401
