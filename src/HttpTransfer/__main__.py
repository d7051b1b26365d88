"""Allow ``python -m HttpTransfer``."""

from HttpTransfer.cli import app

if __name__ == "__main__":  # pragma: no cover
    app()
