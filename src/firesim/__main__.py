"""Entry point for running firesim as a module.

Usage:
    python -m firesim [command] [options]

Example:
    python -m firesim prompts scenario.json
    python -m firesim generate scenario.json --seed 42
"""

from firesim.cli import app

if __name__ == "__main__":
    app()
