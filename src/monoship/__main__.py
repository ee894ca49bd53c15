"""Allow running as ``python -m monoship``."""

from monoship.cli.app import main

main()
