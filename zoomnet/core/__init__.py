"""Core Application Layer: Orchestrates use cases and application logic.

Contains the bounded-concurrency executor, result aggregation, cancellation
and the integration runner service.
"""
