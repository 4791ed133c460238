"""flowbridge: convert HTML and CSS into a pasteable XscpData document."""

__version__ = "0.1.0"
