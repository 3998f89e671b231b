"""Exceptions raised by md2maml."""


class Md2MamlError(Exception):
    """Base exception for all md2maml errors."""


class TagMismatchError(Md2MamlError):
    """Raised when a closing tag does not match the innermost open tag.

    This always points at a bug in the renderer's section logic, never at
    bad input data.
    """


class MamlParseError(Md2MamlError, ValueError):
    """Raised when help Markdown does not follow the expected layout."""


class CommandNameError(Md2MamlError, ValueError):
    """Raised in strict mode for a command name without a verb-noun separator."""


class InvalidCharacterError(Md2MamlError, ValueError):
    """Raised when model text holds a character XML 1.0 cannot represent."""
