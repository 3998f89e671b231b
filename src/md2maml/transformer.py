"""Build the MAML command model from a parsed help Markdown AST.

Expected layout::

    # Verb-Noun
    ## SYNOPSIS
    ## DESCRIPTION
    ## PARAMETERS
    ### Name [Type]
    ## INPUTS
    ## OUTPUTS
    ## NOTES
    ## EXAMPLES
    ### Example title
    ## RELATED LINKS

Each parameter may carry a fenced ``yaml`` block of ``Key: value`` lines
describing its flags (see :data:`_METADATA_KEYS`).
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional, Union

from md2maml.errors import MamlParseError
from md2maml.model import (
    LINE_BREAK,
    POSITION_NAMED,
    MamlCommand,
    MamlExample,
    MamlInputOutput,
    MamlLink,
    MamlParameter,
)
from md2maml.parser import ASTNode, NodeType

logger = logging.getLogger(__name__)

_COMMAND_LEVEL = 1
_SECTION_LEVEL = 2
_ITEM_LEVEL = 3

_TEXT_SECTIONS = {
    "SYNOPSIS": "synopsis",
    "DESCRIPTION": "description",
    "NOTES": "notes",
}
_PARAMETERS = "PARAMETERS"
_INPUTS = "INPUTS"
_OUTPUTS = "OUTPUTS"
_EXAMPLES = "EXAMPLES"
_RELATED_LINKS = "RELATED LINKS"

_ITEM_SECTIONS = {_PARAMETERS, _INPUTS, _OUTPUTS, _EXAMPLES}

_METADATA_LANGUAGE = "yaml"

# Metadata key (lower-case) -> MamlParameter field
_METADATA_KEYS = {
    "required": "required",
    "position": "position",
    "aliases": "aliases",
    "accept pipeline input": "pipeline_input",
    "accept wildcard characters": "globbing",
    "variable length": "variable_length",
    "value required": "value_required",
    "value variable length": "value_variable_length",
}

_BOOL_VALUES = {
    "true": True,
    "yes": True,
    "1": True,
    "false": False,
    "no": False,
    "0": False,
}

_PARAM_HEADING_RE = re.compile(r"^-?(?P<name>\S+)(?:\s+\[(?P<type>.+)\])?$")

_DEFAULT_PARAM_TYPE = "Object"

Groups = list[tuple[str, list[ASTNode]]]


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def _inline_text(node: ASTNode) -> str:
    """Flatten inline content; soft breaks become spaces."""
    if node.type is NodeType.SOFT_BREAK:
        return " "
    if node.type is NodeType.LINE_BREAK:
        return LINE_BREAK
    parts = [node.text] if node.text else []
    parts.extend(_inline_text(child) for child in node.children)
    return "".join(parts)


def _heading_title(node: ASTNode) -> str:
    return _inline_text(node).strip()


def _collect_paragraphs(nodes: list[ASTNode], context: str) -> list[str]:
    paragraphs: list[str] = []
    for node in nodes:
        if node.type is NodeType.HEADING:
            raise MamlParseError(
                f"Unexpected heading {_heading_title(node)!r} in {context}"
            )
        if node.type in (NodeType.PARAGRAPH, NodeType.TEXT):
            paragraphs.append(_inline_text(node).strip())
        elif node.type is NodeType.CODE_BLOCK:
            paragraphs.append(node.text)
        else:
            paragraphs.extend(_collect_paragraphs(node.children, context))
    return paragraphs


def _join_paragraphs(nodes: list[ASTNode], context: str) -> Optional[str]:
    paragraphs = _collect_paragraphs(nodes, context)
    if not paragraphs:
        return None
    return LINE_BREAK.join(paragraphs)


def _find_links(node: ASTNode) -> list[ASTNode]:
    if node.type is NodeType.LINK:
        return [node]
    found: list[ASTNode] = []
    for child in node.children:
        found.extend(_find_links(child))
    return found


def _group_by_heading(nodes: list[ASTNode], level: int) -> tuple[list[ASTNode], Groups]:
    """Split *nodes* at headings of *level*.

    Returns the nodes before the first such heading and a list of
    ``(heading title, body nodes)`` pairs.
    """
    leading: list[ASTNode] = []
    groups: Groups = []
    for node in nodes:
        if node.type is NodeType.HEADING and node.level == level:
            groups.append((_heading_title(node), []))
        elif groups:
            groups[-1][1].append(node)
        else:
            leading.append(node)
    return leading, groups


# ---------------------------------------------------------------------------
# Parameter metadata
# ---------------------------------------------------------------------------

def _parse_bool(key: str, value: str, context: str) -> bool:
    try:
        return _BOOL_VALUES[value.lower()]
    except KeyError:
        raise MamlParseError(
            f"Invalid boolean {value!r} for {key!r} in {context}"
        ) from None


def _parse_position(value: str, context: str) -> Union[int, str]:
    if value.lower() == POSITION_NAMED:
        return POSITION_NAMED
    try:
        return int(value)
    except ValueError:
        raise MamlParseError(
            f"Invalid position {value!r} in {context}; expected an integer or 'named'"
        ) from None


def _parse_aliases(value: str) -> list[str]:
    if value.lower() == "none":
        return []
    return [alias.strip() for alias in value.split(",") if alias.strip()]


def parse_parameter_metadata(text: str, context: str = "parameter") -> dict[str, Any]:
    """Parse ``Key: value`` lines into :class:`MamlParameter` keyword arguments."""
    values: dict[str, Any] = {}
    for line in text.split("\n"):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            raise MamlParseError(f"Expected 'Key: value' in {context}, got {line!r}")
        key = key.strip().lower()
        value = value.strip()
        field_name = _METADATA_KEYS.get(key)
        if field_name is None:
            raise MamlParseError(f"Unknown parameter metadata key {key!r} in {context}")
        if field_name == "position":
            values[field_name] = _parse_position(value, context)
        elif field_name == "aliases":
            values[field_name] = _parse_aliases(value)
        else:
            values[field_name] = _parse_bool(key, value, context)
    return values


# ---------------------------------------------------------------------------
# Transformer
# ---------------------------------------------------------------------------

class ModelTransformer:
    """Turn a *DOCUMENT* :class:`ASTNode` into a list of :class:`MamlCommand`."""

    def transform(self, doc: ASTNode) -> list[MamlCommand]:
        leading, groups = _group_by_heading(doc.children, _COMMAND_LEVEL)
        if leading:
            raise MamlParseError("Content found before the first '#' command heading")

        commands: list[MamlCommand] = []
        for name, body in groups:
            command = self._build_command(name, body)
            logger.debug(
                "Built command %s: %d parameter(s), %d example(s), %d link(s)",
                command.name, len(command.parameters), len(command.examples), len(command.links),
            )
            commands.append(command)
        return commands

    # -- sections -----------------------------------------------------------

    def _build_command(self, name: str, body: list[ASTNode]) -> MamlCommand:
        if not name:
            raise MamlParseError("Empty command heading")
        leading, sections = _group_by_heading(body, _SECTION_LEVEL)
        if leading:
            raise MamlParseError(
                f"Content found under {name!r} before its first '##' section"
            )

        command = MamlCommand(name=name)
        for title, nodes in sections:
            section = title.upper()
            context = f"{name} / {title}"
            if section in _TEXT_SECTIONS:
                setattr(command, _TEXT_SECTIONS[section], _join_paragraphs(nodes, context))
            elif section in _ITEM_SECTIONS:
                self._add_items(command, section, nodes, context)
            elif section == _RELATED_LINKS:
                command.links.extend(self._build_links(nodes, context))
            else:
                raise MamlParseError(f"Unknown section {title!r} in command {name!r}")
        return command

    def _add_items(
        self, command: MamlCommand, section: str, nodes: list[ASTNode], context: str
    ) -> None:
        leading, items = _group_by_heading(nodes, _ITEM_LEVEL)
        if leading:
            raise MamlParseError(f"Content found in {context} before its first '###' item")
        for title, body in items:
            item_context = f"{context} / {title}"
            if section == _PARAMETERS:
                command.parameters.append(self._build_parameter(title, body, item_context))
            elif section == _INPUTS:
                command.inputs.append(self._build_type_entry(title, body, item_context))
            elif section == _OUTPUTS:
                command.outputs.append(self._build_type_entry(title, body, item_context))
            else:
                command.examples.append(self._build_example(title, body, item_context))

    # -- items --------------------------------------------------------------

    def _build_parameter(
        self, title: str, body: list[ASTNode], context: str
    ) -> MamlParameter:
        match = _PARAM_HEADING_RE.match(title)
        if match is None:
            raise MamlParseError(
                f"Invalid parameter heading {title!r}; expected 'Name [Type]'"
            )

        metadata: dict[str, Any] = {}
        description_nodes: list[ASTNode] = []
        for node in body:
            if node.type is NodeType.CODE_BLOCK and node.language == _METADATA_LANGUAGE:
                metadata.update(parse_parameter_metadata(node.text, context))
            else:
                description_nodes.append(node)

        return MamlParameter(
            name=match.group("name"),
            type=(match.group("type") or _DEFAULT_PARAM_TYPE).strip(),
            description=_join_paragraphs(description_nodes, context),
            **metadata,
        )

    def _build_type_entry(
        self, title: str, body: list[ASTNode], context: str
    ) -> MamlInputOutput:
        return MamlInputOutput(
            type_name=title,
            description=_join_paragraphs(body, context),
        )

    def _build_example(self, title: str, body: list[ASTNode], context: str) -> MamlExample:
        code: Optional[str] = None
        remark_nodes: list[ASTNode] = []
        for node in body:
            if code is None and node.type is NodeType.CODE_BLOCK:
                code = node.text
            else:
                remark_nodes.append(node)
        return MamlExample(
            title=title,
            code=code or "",
            remarks=_join_paragraphs(remark_nodes, context),
        )

    def _build_links(self, nodes: list[ASTNode], context: str) -> list[MamlLink]:
        links: list[MamlLink] = []
        for node in nodes:
            if node.type is NodeType.HEADING:
                raise MamlParseError(
                    f"Unexpected heading {_heading_title(node)!r} in {context}"
                )
            if node.type in (NodeType.LIST, NodeType.LIST_ITEM, NodeType.BLOCKQUOTE):
                links.extend(self._build_links(node.children, context))
                continue
            found = _find_links(node)
            if found:
                links.extend(
                    MamlLink(link_name=_inline_text(link).strip(), link_uri=link.url)
                    for link in found
                )
            else:
                text = _inline_text(node).strip()
                if text:
                    links.append(MamlLink(link_name=text))
        return links
