"""Development entrypoint for running the Flask API locally.

Usage:
- flask --app autorag_gateway.main run --reload
- flask --app autorag_gateway.main index-pdfs
- python -m autorag_gateway.main
"""

from __future__ import annotations

from autorag_gateway import create_app

app = create_app()

if __name__ == "__main__":
    # Simple built-in server for quick smoke testing
    app.run(host="127.0.0.1", port=5000, debug=True)
