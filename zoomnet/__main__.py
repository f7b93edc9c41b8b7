"""Main entry point when executing zoomnet as a package.

This allows running the package using python -m zoomnet.
"""

from zoomnet.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
