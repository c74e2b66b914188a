"""Allow ``python -m resource_spine``."""

from resource_spine.cli.app import app

if __name__ == "__main__":
    app()
