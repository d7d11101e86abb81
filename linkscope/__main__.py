"""Allow running as `python -m linkscope`."""

from .cli import main

main()
