"""Module entrypoint for ``python -m lazyfiles``.

All argument parsing and session setup happen in ``lazyfiles.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
