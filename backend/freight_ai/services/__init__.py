"""Service layer: caller-facing logistics API over the AI core."""
