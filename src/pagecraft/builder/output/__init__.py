"""
Module: builder.output

Purpose:
    Document backends. PageSink defines the call sequence the page
    assembler drives; ReportLabPageSink renders it to PDF.

Key Classes:
    - PageSink: Abstract document backend
    - ReportLabPageSink: PDF backend using ReportLab

Key Functions:
    - save_document(): Write finalized bytes to disk

Dependencies:
    - reportlab: PDF generation

Used By:
    - builder.controller: Pipeline orchestration
    - cli
"""

from .sink import ALIGN_CENTER, ALIGN_LEFT, ALIGN_RIGHT, PageSink
from .renderer import ReportLabPageSink, save_document

__all__ = [
    "ALIGN_CENTER",
    "ALIGN_LEFT",
    "ALIGN_RIGHT",
    "PageSink",
    "ReportLabPageSink",
    "save_document",
]
