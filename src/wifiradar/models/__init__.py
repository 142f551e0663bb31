"""Pydantic data models for wifi-radar.

- Sample: One link-quality reading
- StatusSnapshot: Latest sample per interface
- LinkInfo: Parsed link report from the operating system
"""

from wifiradar.models.base import LinkInfo, Sample, StatusSnapshot

__all__ = [
    "LinkInfo",
    "Sample",
    "StatusSnapshot",
]
