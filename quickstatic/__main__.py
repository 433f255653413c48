"""Run the quickstatic command line with ``python -m quickstatic``."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
