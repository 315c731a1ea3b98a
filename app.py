"""Entry point for launching the CapsTrigger scheduler."""
from __future__ import annotations

from capstrigger import app


def main() -> None:
    app.main()


if __name__ == "__main__":
    main()
