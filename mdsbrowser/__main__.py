"""Module entrypoint for ``python -m mdsbrowser``.

All argument parsing and runtime setup happen in ``mdsbrowser.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
