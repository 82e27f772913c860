"""Bundled storage drivers.

Each module exposes ``register(registry)``; importing a driver module pulls in
its native client library.
"""
