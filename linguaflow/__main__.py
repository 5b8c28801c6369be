"""Allow `python -m linguaflow`."""

from .cli import main

main()
