"""Adapters: model SDK, Cloud Storage API, media and export helpers."""
