# PLM to IFS Migration Toolkit
"""
PLM to IFS Migration Toolkit

Converts a PLM parts export (one wide Excel/CSV table per project) into the
normalized CSV extracts imported by the IFS ERP: parts references, technical
attribute values, engineering BOM structure and inventory parameters.
"""

__version__ = "1.0.0"
__author__ = "PLM Migration Team"
