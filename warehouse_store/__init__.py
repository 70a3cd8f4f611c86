"""Repositories for warehouse batches, boxes, racks, markers, shipments, users and audit records."""

__version__ = "0.1.0"