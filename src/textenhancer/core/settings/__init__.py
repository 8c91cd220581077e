"""Development config and persisted user settings."""
