"""Module entrypoint for `python -m phish_link_guard`."""

from phish_link_guard.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
