"""Domain records and error kinds.

- Pure data structures (Pydantic v2) plus the flow exception hierarchy.
- The domain knows nothing about HTTP, the CLI or model SDKs.
"""
