"""Allow ``python -m delay_spine``."""

from delay_spine.cli.app import app

app()
