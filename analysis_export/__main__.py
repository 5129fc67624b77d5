"""Package entry point for ``python -m analysis_export``.

Delegates to the CLI's main(); ``python -m analysis_export serve`` starts
the HTTP API.
"""

from analysis_export.cli import main

if __name__ == "__main__":
    main()
