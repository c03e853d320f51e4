"""JSON schemas for zipblob configuration files.

- constraints.schema.json: run constraints loaded with ``--config``
"""
