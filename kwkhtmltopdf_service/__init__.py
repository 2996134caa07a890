"""
kwkhtmltopdf service - HTTP front end for an external HTML to PDF renderer.

Accepts multipart uploads of renderer options and assets, runs the renderer
binary (wkhtmltopdf by default) as a subprocess and streams its output back
to the client as it is produced.
"""

__version__ = "0.1.0"
