"""Core primitives: error taxonomy, encrypted-value codec, message signing."""
