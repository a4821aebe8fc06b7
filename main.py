import sys

import uvicorn


def run_http(reload: bool = False):
    """Run HTTP server on port 9106"""
    print("Starting HTTP server on port 9106...")
    uvicorn.run(
        "roster.main:app",  # Use string import
        host="0.0.0.0",
        port=9106,
        reload=reload,
    )


if __name__ == "__main__":
    run_http(reload="--reload" in sys.argv)
