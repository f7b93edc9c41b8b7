"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like job names, user ids,
endpoint names and HTTP header maps, ensuring consistency and type safety.
"""

from typing import Mapping, NewType, Sequence, Union

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are plain values at runtime.
JobName = NewType("JobName", str)          # Registry key of an integration job
UserId = NewType("UserId", str)            # Zoom user id or 'me'
EndpointName = NewType("EndpointName", str)  # e.g. 'GET users/me'
OutcomeMessage = NewType("OutcomeMessage", str)  # One-line summary of a job outcome

# === HTTP Context ===
HeaderValue = Union[str, Sequence[str]]
HeaderMap = Mapping[str, HeaderValue]  # Header name -> value or list of values

# === Resilience Context ===
TOO_MANY_REQUESTS = 429
