"""External interfaces of the system model service."""
