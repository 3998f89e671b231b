"""High-level Markdown-to-MAML conversion orchestrator.

Ties together the parser, model transformer, and renderer into a single
public API for converting help Markdown text or files to MAML XML.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from md2maml.model import MamlCommand
from md2maml.parser import MarkdownParser
from md2maml.renderer import MamlRenderer
from md2maml.transformer import ModelTransformer


class Converter:
    """Convert help Markdown content to MAML XML.

    Usage::

        converter = Converter()
        converter.convert_file("Get-Widget.md", "Widget-help.xml")

        # or from string
        maml = converter.convert_text("# Get-Widget\\n## SYNOPSIS\\nGets a widget.")
    """

    def __init__(self, *, strict_names: bool = False) -> None:
        self.parser = MarkdownParser()
        self.transformer = ModelTransformer()
        self.renderer = MamlRenderer(strict_names=strict_names)

    def convert_text(self, markdown_text: str) -> str:
        """Convert help Markdown text to a MAML XML string.

        Args:
            markdown_text: Markdown source string.

        Returns:
            The MAML document.
        """
        doc = self.parser.parse(markdown_text)
        commands = self.transformer.transform(doc)
        return self.render_commands(commands)

    def render_commands(self, commands: Iterable[MamlCommand]) -> str:
        """Render an already built command model."""
        return self.renderer.render(commands)

    def convert_file(
        self,
        input_path: str | Path,
        output_path: str | Path,
        *,
        encoding: str = "utf-8",
    ) -> None:
        """Read a Markdown file and write the MAML output as UTF-8.

        Args:
            input_path: Path to the input ``.md`` file.
            output_path: Path for the output ``.xml`` file.
            encoding: Text encoding of the source file.
        """
        input_path = Path(input_path)
        output_path = Path(output_path)

        md_text = input_path.read_text(encoding=encoding)
        maml = self.convert_text(md_text)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(maml, encoding="utf-8", newline="\n")
