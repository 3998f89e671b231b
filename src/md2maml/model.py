"""MAML document model shared by the transformer and the renderer.

The model is a plain tree of dataclasses.  Text fields hold free text where
paragraphs are separated by :data:`LINE_BREAK`; ``None`` means the field is
absent and renders nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

# Paragraph separator inside model text fields.  Independent of os.linesep.
LINE_BREAK = "\n"

# Separator between the verb and the noun of a command name.
NAME_SEPARATOR = "-"

POSITION_NAMED = "named"


@dataclass
class MamlParameter:
    name: str
    type: str = "Object"
    description: Optional[str] = None
    required: bool = False
    variable_length: bool = False
    globbing: bool = False
    pipeline_input: bool = False
    position: Union[int, str] = POSITION_NAMED
    aliases: list[str] = field(default_factory=list)
    value_required: bool = True
    value_variable_length: bool = False


@dataclass
class MamlInputOutput:
    """An entry of the INPUTS or OUTPUTS section."""

    type_name: str
    description: Optional[str] = None


@dataclass
class MamlExample:
    title: str
    code: str = ""
    remarks: Optional[str] = None


@dataclass
class MamlLink:
    link_name: str
    link_uri: str = ""


@dataclass
class MamlCommand:
    """Full help model of a single command."""

    name: str
    synopsis: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    parameters: list[MamlParameter] = field(default_factory=list)
    inputs: list[MamlInputOutput] = field(default_factory=list)
    outputs: list[MamlInputOutput] = field(default_factory=list)
    examples: list[MamlExample] = field(default_factory=list)
    links: list[MamlLink] = field(default_factory=list)
