"""Users and roles stored in MongoDB, with audit record models, query helpers and HTTP error bodies."""

__version__ = "0.1.0"