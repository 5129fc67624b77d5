"""Japanese Analysis Export: render saved sentence analyses to files.

WHY: An analyzed Japanese sentence (tokens with part-of-speech tags,
readings and romaji) is only useful outside the app once it can be shared.
This package turns a saved analysis into a PNG/JPEG card, a plain text
report, or a JSON document that round-trips back into the app.

HOW: Three layers: the core (data model, POS table, furigana alignment,
layout engine), pluggable exporters that consume an AnalysisRecord, and
the outer surfaces (history store, CLI, HTTP API) that feed them.

RULES:
- All exporters consume the same AnalysisRecord
- The POS category table in core.pos is the single source of colors/labels
- Core code never performs network or file I/O
"""

__version__ = "0.1.0"
