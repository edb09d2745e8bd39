"""
Social Aura — private social matching over encrypted compatibility scores.

Match records live on an external key-value ledger; compatibility is only
ever revealed after the viewer signs the session's decryption challenge.
"""

__version__ = "0.1.0"
