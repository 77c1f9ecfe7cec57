"""Doctor slot availability and conflict-safe appointment booking."""
