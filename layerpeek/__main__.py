"""Module entrypoint for ``python -m layerpeek``.

All argument parsing and runtime setup happen in ``layerpeek.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
