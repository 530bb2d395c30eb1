"""Core domain types, models and errors for release-notary."""
