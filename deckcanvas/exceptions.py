"""Custom exceptions for deck rendering.

Content problems (missing nodes, empty lists, absent images) are never raised;
resolvers degrade them into placeholders or omissions. The exceptions below
signal misuse by the embedding application.
"""


class CanvasContractError(ValueError):
    """Invalid canvas dimensions.

    Raised when a canvas is built with non-positive or non-finite dimensions.

    Attributes:
        width: Offending width
        height: Offending height
    """

    def __init__(self, width: float, height: float, message: str = "canvas dimensions must be positive"):
        self.width = width
        self.height = height
        self.message = message
        super().__init__(f"{message} (got {width}x{height})")


class UnknownTemplateError(KeyError):
    """No resolver is registered for a template tag."""

    def __init__(self, template: str):
        self.template = template
        super().__init__(f"No resolver registered for template '{template}'")


class AssetStoreError(Exception):
    """Asset store write error.

    Raised when an uploaded image cannot be persisted. Reads never raise.
    """

    pass
