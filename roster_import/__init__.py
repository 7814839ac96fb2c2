"""CSV roster importer for the classroom administration database."""

__version__ = "0.1.0"
