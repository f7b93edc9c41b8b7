"""API Resilience Implementations.

Contains the clock, the Retry-After driven backoff policy and the retry loop
that applies it to outgoing HTTP requests.
Bounded Context: API Resilience
"""
