"""Domain models: jobs, outcomes and retry decisions."""
