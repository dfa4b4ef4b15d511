"""Module entrypoint for ``python -m remotebrowser``.

All argument parsing and runtime setup happen in ``remotebrowser.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
