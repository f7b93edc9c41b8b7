"""Domain Layer: value objects, outcomes, errors and the ports (interfaces)
that the core and infrastructure layers build on.
"""
