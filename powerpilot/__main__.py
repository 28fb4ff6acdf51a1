from __future__ import annotations

from .cli.entrypoint import run

if __name__ == "__main__":
    run()
