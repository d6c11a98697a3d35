"""Adapters that connect the core to IMAP, MIME decoding and the JSON order file."""
