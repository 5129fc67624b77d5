"""HTTP API for saving, rendering and exporting analyses.

WHY: The browser front end talks to the exporter over HTTP.

HOW: app.py defines the FastAPI application, models.py the request and
response schemas. Run with ``analysis-export serve``.
"""
