"""
Exceptions raised while turning a raw payload into a canonical invoice.

Only conversion problems are exceptional. Schema, business and compliance
findings are collected into a ValidationResult instead of being raised.
"""


class ConversionError(Exception):
    """A payload could not be classified or converted to a canonical invoice."""


class UnsupportedFormatError(ConversionError):
    """The declared format hint is neither 'json' nor 'xml'."""

    def __init__(self, format_hint):
        self.format_hint = format_hint
        super().__init__(f"Unsupported format: {format_hint}")


class MalformedPayloadError(ConversionError):
    """The payload could not be decoded or has the wrong top-level shape."""
