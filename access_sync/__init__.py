"""access-sync: reconcile oracle-derived substance access statuses into a store."""

__version__ = "0.1.0"
