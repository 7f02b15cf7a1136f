"""CA Monitor - availability monitoring for certification-authority services."""
