"""md2maml - convert PowerShell help Markdown to MAML XML."""

__version__ = "0.1.0"
