"""
sirius_ingestion -- File decoding, column mapping, and row validation for feeds.

Architecture:
    sirius_ingestion/ is a top-level package below sirius_wizards. It has no
    database access; it turns uploaded bytes into validated, mapped rows.
"""
