"""Core: configuration, domain records, flow definitions and services.

The core depends on interfaces only; concrete SDK and HTTP clients live in
`adapters`.
"""
