"""Shared helpers: errors, logging, time arithmetic, input validation and retries."""
