"""User interfaces for the Quartz plugin manager."""
