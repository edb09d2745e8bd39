"""Matching workflow: registry, state machine and authenticated decryption."""
