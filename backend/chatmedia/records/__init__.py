"""Record persistence for users and messages.

Users and messages live in DuckDB. The media layer reads and writes them
through ``RecordStore``; nothing else touches the tables.
"""
