"""
properties package

Metadata capture workflow. The form panel that drives it is in
properties.dock.
"""

from properties.metadata import LinkOutcome, MetadataEditor

__all__ = ["LinkOutcome", "MetadataEditor"]
