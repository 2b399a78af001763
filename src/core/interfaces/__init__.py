"""Core interfaces.

- Structural contracts (Protocol) implemented by the adapters.
- The flow runner depends on these, never on a concrete SDK.
"""
