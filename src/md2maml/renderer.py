"""MAML renderer - converts the command model to MAML help XML.

This module turns a sequence of :class:`~md2maml.model.MamlCommand` objects
(produced by :mod:`md2maml.transformer`) into the MAML XML dialect read by
PowerShell's ``Get-Help``.

The XML is built as text through a :class:`TagStack`, which tracks open
elements and refuses to close them out of order.  All commands share one
``<command:command>`` root, and each command's sections are written in the
fixed schema order.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional

from md2maml.errors import CommandNameError, InvalidCharacterError, TagMismatchError
from md2maml.model import (
    LINE_BREAK,
    NAME_SEPARATOR,
    MamlCommand,
    MamlInputOutput,
    MamlParameter,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fixed MAML preambles (reproduced byte for byte)
# ---------------------------------------------------------------------------

XML_PREAMBLE = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    '<helpItems schema="maml">\n'
)

COMMAND_PREAMBLE = (
    '<command:command'
    ' xmlns:maml="http://schemas.microsoft.com/maml/2004/10"'
    ' xmlns:command="http://schemas.microsoft.com/maml/dev/command/2004/10"'
    ' xmlns:dev="http://schemas.microsoft.com/maml/dev/2004/10"'
    ' xmlns:MSHelp="http://msdn.microsoft.com/mshelp">'
)

COMMAND_POSTAMBLE = "</command:command>\n"
XML_POSTAMBLE = "</helpItems>\n"

_NEWLINE = "\n"
_LIST_SEPARATOR = ", "


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Anything outside the XML 1.0 Char production
_INVALID_XML_CHAR_RE = re.compile(
    "[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


def _xml_escape(s: str, field: str) -> str:
    """Escape XML special characters for string-built XML.

    ``\\r`` becomes a character reference so it survives end-of-line
    normalisation.  *field* names the element or attribute in errors.
    """
    bad = _INVALID_XML_CHAR_RE.search(s)
    if bad is not None:
        raise InvalidCharacterError(
            f"Character U+{ord(bad.group()):04X} in {field} is not allowed in XML"
        )
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("\r", "&#13;")
    )


def _xml_escape_attr(s: str, field: str) -> str:
    """Like :func:`_xml_escape`, also keeping tabs and newlines literal."""
    return _xml_escape(s, field).replace("\n", "&#10;").replace("\t", "&#9;")


def split_paragraphs(text: Optional[str], line_break: str = LINE_BREAK) -> list[str]:
    """Split *text* into paragraph units on *line_break*.

    Splitting is exact, so two consecutive breaks yield an empty paragraph.
    ``None`` yields no paragraphs at all.
    """
    if text is None:
        return []
    return text.split(line_break)


def split_command_name(name: str) -> tuple[str, str]:
    """Return ``(verb, noun)`` split on the first separator only.

    ``"Get-Item-Extra"`` gives ``("Get", "Item-Extra")``.  A name without a
    separator gives the whole name as verb and an empty noun.
    """
    verb, _sep, noun = name.partition(NAME_SEPARATOR)
    return verb, noun


class AttributeList:
    """Ordered ``key="value"`` pairs for an opening tag.

    Pairs are serialized in insertion order.  Booleans render as
    ``True``/``False`` and lists are joined with ``", "``.
    """

    def __init__(self) -> None:
        self._pairs: list[tuple[str, str]] = []

    def add(self, key: str, value: Any) -> AttributeList:
        self._pairs.append((key, self._format_value(value)))
        return self

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, bool):
            return "True" if value else "False"
        if isinstance(value, (list, tuple)):
            return _LIST_SEPARATOR.join(str(v) for v in value)
        return str(value)

    def __len__(self) -> int:
        return len(self._pairs)

    def __str__(self) -> str:
        return " ".join(
            f'{key}="{_xml_escape_attr(value, f"attribute {key}")}"'
            for key, value in self._pairs
        )


# ---------------------------------------------------------------------------
# Tag stack
# ---------------------------------------------------------------------------

class TagStack:
    """Track open elements and write balanced tags to *out*.

    An opening tag is followed by a newline only once a child element is
    opened inside it, so empty and text-only elements stay on one line.
    """

    def __init__(self, out: list[str]) -> None:
        self._out = out
        self._tags: list[str] = []
        self._line_open = False

    def __len__(self) -> int:
        return len(self._tags)

    @property
    def open_tags(self) -> tuple[str, ...]:
        return tuple(self._tags)

    def open(self, tag: str, attributes: Optional[AttributeList] = None) -> None:
        self._break_line()
        if attributes:
            self._out.append(f"<{tag} {attributes}>")
        else:
            self._out.append(f"<{tag}>")
        self._tags.append(tag)
        self._line_open = True

    def text(self, body: str) -> None:
        field = f"<{self._tags[-1]}>" if self._tags else "text"
        self._out.append(_xml_escape(body, field))
        self._line_open = False

    def close(self, expected: str) -> None:
        """Close the innermost element, which must be *expected*."""
        if not self._tags:
            raise TagMismatchError(f"Expecting close of {expected}, but no tag is open")
        popped = self._tags.pop()
        if popped != expected:
            raise TagMismatchError(f"Expecting close of {expected}, but got {popped}")
        self._write_close(popped)

    def close_all(self) -> int:
        """Close every open element innermost first; return how many."""
        count = len(self._tags)
        while self._tags:
            self._write_close(self._tags.pop())
        return count

    def _write_close(self, tag: str) -> None:
        self._out.append(f"</{tag}>{_NEWLINE}")
        self._line_open = False

    def _break_line(self) -> None:
        if self._line_open:
            self._out.append(_NEWLINE)
            self._line_open = False


# ---------------------------------------------------------------------------
# Main renderer
# ---------------------------------------------------------------------------

class MamlRenderer:
    """Render a sequence of :class:`MamlCommand` into a MAML XML string.

    Usage::

        renderer = MamlRenderer()
        xml_text = renderer.render([command])

    Every :meth:`render` call starts from a fresh buffer and tag stack.
    With ``strict_names=True`` a command name lacking a ``-`` separator
    raises :class:`CommandNameError` instead of degrading to an empty noun.
    """

    def __init__(self, *, strict_names: bool = False, line_break: str = LINE_BREAK) -> None:
        self.strict_names = strict_names
        self.line_break = line_break
        self._out: list[str] = []
        self._stack = TagStack(self._out)

    # -- public API ---------------------------------------------------------

    def render(self, commands: Iterable[MamlCommand]) -> str:
        """Render *commands* in order and return the complete XML document."""
        self._out = []
        self._stack = TagStack(self._out)

        self._out.append(XML_PREAMBLE + _NEWLINE)
        self._out.append(COMMAND_PREAMBLE + _NEWLINE)

        count = 0
        for command in commands:
            self._close_dangling_tags()
            self._render_command(command)
            count += 1
        self._close_dangling_tags()

        self._out.append(COMMAND_POSTAMBLE)
        self._out.append(XML_POSTAMBLE)

        logger.debug("Rendered %d command(s) to MAML", count)
        return "".join(self._out)

    # -- element primitives -------------------------------------------------

    def _element(
        self,
        name: str,
        attributes: Optional[AttributeList] = None,
        body: Optional[str] = None,
    ) -> None:
        self._stack.open(name, attributes)
        if body is not None:
            self._stack.text(body)
        self._stack.close(name)

    def _add_paras(self, text: Optional[str]) -> None:
        for para in split_paragraphs(text, self.line_break):
            self._element("maml:para", body=para)

    def _close_dangling_tags(self) -> None:
        open_tags = self._stack.open_tags
        closed = self._stack.close_all()
        if closed:
            logger.warning("Force-closed %d dangling tag(s): %s", closed, ", ".join(open_tags))

    # -- command sections ---------------------------------------------------

    def _render_command(self, command: MamlCommand) -> None:
        self._render_details(command)
        self._render_description(command)
        self._render_syntax(command)
        self._render_parameters(command)
        self._render_inputs(command)
        self._render_outputs(command)
        self._render_notes(command)
        self._render_examples(command)
        self._render_links(command)

    def _render_details(self, command: MamlCommand) -> None:
        """Name, verb, noun and synopsis."""
        if NAME_SEPARATOR not in command.name:
            if self.strict_names:
                raise CommandNameError(
                    f"Command name {command.name!r} has no {NAME_SEPARATOR!r} separator"
                )
            logger.warning(
                "Command name %r has no %r separator; noun will be empty",
                command.name, NAME_SEPARATOR,
            )
        verb, noun = split_command_name(command.name)

        self._stack.open("command:details")
        self._element("command:name", body=command.name)
        self._element("command:verb", body=verb)
        self._element("command:noun", body=noun)
        self._stack.open("maml:description")
        self._add_paras(command.synopsis)
        self._stack.close("maml:description")
        self._stack.close("command:details")

    def _render_description(self, command: MamlCommand) -> None:
        self._stack.open("maml:description")
        self._add_paras(command.description)
        self._stack.close("maml:description")

    def _render_syntax(self, command: MamlCommand) -> None:
        """Syntax is not generated; ``command:syntax`` is left out."""

    def _render_parameters(self, command: MamlCommand) -> None:
        self._stack.open("command:parameters")
        for parameter in command.parameters:
            self._render_parameter(parameter)
        self._stack.close("command:parameters")

    def _render_parameter(self, parameter: MamlParameter) -> None:
        attributes = (
            AttributeList()
            .add("required", parameter.required)
            .add("variableLength", parameter.variable_length)
            .add("globbing", parameter.globbing)
            .add("pipelineInput", parameter.pipeline_input)
            .add("position", parameter.position)
            .add("Aliases", parameter.aliases)
        )
        self._stack.open("command:parameter", attributes)

        self._element("maml:Name", body=parameter.name)

        self._stack.open("maml:Description")
        self._add_paras(parameter.description)
        self._stack.close("maml:Description")

        value_attributes = (
            AttributeList()
            .add("required", parameter.value_required)
            .add("variableLength", parameter.value_variable_length)
        )
        self._element("command:parameterValue", value_attributes, body=parameter.type)

        self._stack.close("command:parameter")

    def _render_inputs(self, command: MamlCommand) -> None:
        self._render_type_entries("command:inputTypes", "command:inputType", command.inputs)

    def _render_outputs(self, command: MamlCommand) -> None:
        self._render_type_entries("command:returnValues", "command:returnValue", command.outputs)

    def _render_type_entries(
        self, container: str, entry_tag: str, entries: list[MamlInputOutput]
    ) -> None:
        self._stack.open(container)
        for entry in entries:
            self._stack.open(entry_tag)

            self._stack.open("dev:Type")
            self._element("maml:name", body=entry.type_name)
            self._stack.close("dev:Type")

            self._stack.open("maml:Description")
            self._add_paras(entry.description)
            self._stack.close("maml:Description")

            self._stack.close(entry_tag)
        self._stack.close(container)

    def _render_notes(self, command: MamlCommand) -> None:
        self._stack.open("maml:alertSet")
        self._stack.open("maml:alert")
        self._add_paras(command.notes)
        self._stack.close("maml:alert")
        self._stack.close("maml:alertSet")

    def _render_examples(self, command: MamlCommand) -> None:
        self._stack.open("command:examples")
        for example in command.examples:
            self._stack.open("command:example")
            self._element("maml:title", body=example.title)
            self._element("dev:code", body=example.code)
            self._stack.open("dev:remarks")
            self._add_paras(example.remarks)
            self._stack.close("dev:remarks")
            self._stack.close("command:example")
        self._stack.close("command:examples")

    def _render_links(self, command: MamlCommand) -> None:
        self._stack.open("command:RelatedLinks")
        for link in command.links:
            self._stack.open("maml:NavigationLink")
            self._element("maml:LinkText", body=link.link_name)
            self._element("maml:URI", body=link.link_uri)
            self._stack.close("maml:NavigationLink")
        self._stack.close("command:RelatedLinks")
