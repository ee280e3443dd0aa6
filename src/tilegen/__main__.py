"""Allow ``python -m tilegen``."""

from .cli import main

main()
