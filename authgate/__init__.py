"""authgate - credential and session service."""
