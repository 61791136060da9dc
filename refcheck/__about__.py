"""Metadata for refcheck."""

__all__ = [
    "__title__",
    "__version__",
    "__description__",
    "__credits__",
    "__requires_python__",
]

__title__ = "refcheck"
__version__ = "0.1.0"
__description__ = (
    "Checks the links in a folder of HTML files: internal paths, external URLs, mailto and tel."
)
__credits__ = [
    {"name": "Matthew D. Martin", "email": "matthewdeanmartin@users.noreply.github.com"}
]
__requires_python__ = ">=3.9"
