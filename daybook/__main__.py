"""Allow running the CLI with `python -m daybook`."""

from .cli.main import main

main()
