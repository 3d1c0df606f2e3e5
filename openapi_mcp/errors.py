"""Build-time errors.

Per-call failures never raise; the dispatcher returns them as error
ToolResponses instead.
"""


class OpenAPIMCPError(Exception):
    """Base class for errors raised while building the tool set."""


class SpecLoadError(OpenAPIMCPError):
    """The OpenAPI document could not be read or is not a mapping."""


class SchemaIntegrityError(OpenAPIMCPError):
    """A $ref in the document cannot be resolved."""
