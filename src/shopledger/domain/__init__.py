"""Domain layer for shopledger application."""
