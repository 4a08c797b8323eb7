"""Ingestion helpers.

Everything that interprets raw endpoint payloads lives here so the
state layer only ever sees validated :class:`PositionSample` values.
"""
