#!/usr/bin/env python3
"""
Convenience script to run Family Activities.
"""

import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))


def run_cli():
    """Run the CLI application."""
    from family_activities.cli import app
    app()


def run_api():
    """Run the FastAPI server."""
    import uvicorn
    uvicorn.run(
        "family_activities.api:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


def run_convert():
    """Convert a JSON file and print the result as JSON."""
    from family_activities.cli import app
    sys.argv = [sys.argv[0], "convert", *sys.argv[1:], "--json"]
    app()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python run.py <command>")
        print()
        print("Commands:")
        print("  cli       Run the command-line interface")
        print("  api       Start the admin API server")
        print("  convert   Convert a raw extraction file to JSON")
        sys.exit(1)

    command = sys.argv[1]
    sys.argv = [sys.argv[0]] + sys.argv[2:]  # Remove command from args

    commands = {
        "cli": run_cli,
        "api": run_api,
        "convert": run_convert,
    }

    if command not in commands:
        print(f"Unknown command: {command}")
        sys.exit(1)

    commands[command]()
