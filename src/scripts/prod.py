#!/usr/bin/env python3
"""Production server startup script."""

import os
import sys

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


def main():
    import uvicorn

    port = int(os.environ.get("PORT", "8080"))

    print(f"Starting production server on port {port}...")
    print(f"Logs: {os.environ.get('LOG_LEVEL', 'INFO')} level")
    print(f"Health check: http://0.0.0.0:{port}/health")
    print("-" * 50)

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        workers=1,  # one process, the tracking cache is in-process
        log_level="info",
    )


if __name__ == "__main__":
    main()
