"""Core data model, classification, alignment and layout.

WHY: The core holds the pure, deterministic parts of the exporter: the
pieces that have to behave identically for every output surface.

HOW: ir.py defines the records, pos.py the part-of-speech table,
furigana.py the reading alignment, layout.py the canvas reflow.

RULES:
- No I/O anywhere in the core
- classify() and align() are total functions; they never raise
"""
