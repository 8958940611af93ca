"""Assetpipe - front-end asset build pipeline.

Builds stylesheets, scripts, images and HTML into a deployable tree, serves
sources with live reload and packages the result into a zip archive.
"""

import logging

__version__ = "0.1.0"

# Applications configure handlers; the CLI does so in its callback.
logging.getLogger(__name__).addHandler(logging.NullHandler())

from .cli import main  # noqa: E402

__all__ = ["__version__", "main"]
