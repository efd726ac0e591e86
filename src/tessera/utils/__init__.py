"""Shared helpers for the Tessera compiler."""
