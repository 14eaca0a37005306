"""Allow ``python -m flasher``."""

from flasher.main import cli

cli()
