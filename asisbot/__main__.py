"""Entry point for ``python -m asisbot``."""

from asisbot.cli.commands import app

if __name__ == "__main__":
    app()
