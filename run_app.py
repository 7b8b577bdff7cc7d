#!/usr/bin/env python
"""Run the ClipShow web service."""

import os
import uvicorn
from dotenv import load_dotenv

load_dotenv()


def main():
    import argparse

    # Hosting platforms provide PORT
    default_port = int(os.getenv("PORT", 5000))
    is_production = bool(os.getenv("PORT"))
    default_host = "0.0.0.0" if is_production else "127.0.0.1"

    parser = argparse.ArgumentParser(description="ClipShow Web Service")
    parser.add_argument("--host", default=default_host, help="Host")
    parser.add_argument("--port", type=int, default=default_port, help="Port")
    parser.add_argument("--reload", action="store_true", help="Auto-reload")

    args = parser.parse_args()

    print(f"Server is running on http://{args.host}:{args.port}")

    uvicorn.run(
        "clipshow.app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload if not is_production else False,
    )


if __name__ == "__main__":
    main()
