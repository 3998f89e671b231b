"""Tests for building the command model from help Markdown."""

from __future__ import annotations

from pathlib import Path

import pytest

from md2maml.errors import MamlParseError
from md2maml.model import (
    POSITION_NAMED,
    MamlCommand,
    MamlExample,
    MamlInputOutput,
    MamlLink,
)
from md2maml.parser import MarkdownParser
from md2maml.transformer import ModelTransformer, parse_parameter_metadata

FIXTURE_DIR = Path(__file__).parent / "fixtures"
SAMPLE_MD = FIXTURE_DIR / "sample.md"


def transform(markdown: str) -> list[MamlCommand]:
    return ModelTransformer().transform(MarkdownParser().parse(markdown))


def single(markdown: str) -> MamlCommand:
    commands = transform(markdown)
    assert len(commands) == 1
    return commands[0]


@pytest.fixture(scope="module")
def sample() -> list[MamlCommand]:
    return transform(SAMPLE_MD.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Sample document
# ---------------------------------------------------------------------------

class TestSampleDocument:
    def test_commands(self, sample: list[MamlCommand]) -> None:
        assert [c.name for c in sample] == ["Get-Widget", "Set-Widget"]

    def test_text_sections(self, sample: list[MamlCommand]) -> None:
        cmd = sample[0]
        assert cmd.synopsis == "Gets a widget."
        assert cmd.description == (
            "The Get-Widget cmdlet gets widgets from the widget store.\n"
            "Widgets are returned in the order they were created."
        )
        assert cmd.notes == "Widgets are cached for one minute."

    def test_parameters(self, sample: list[MamlCommand]) -> None:
        name, force = sample[0].parameters
        assert name.name == "Name"
        assert name.type == "String"
        assert name.description == "Specifies the name of the widget."
        assert name.required is True
        assert name.position == 0
        assert name.aliases == ["n", "WidgetName"]
        assert name.pipeline_input is True
        assert name.globbing is True
        assert name.variable_length is False
        assert name.value_required is True
        assert name.value_variable_length is False

        assert force.name == "Force"
        assert force.type == "SwitchParameter"
        assert force.required is False
        assert force.position == POSITION_NAMED
        assert force.aliases == []
        assert force.value_required is False

    def test_inputs_outputs(self, sample: list[MamlCommand]) -> None:
        cmd = sample[0]
        assert cmd.inputs == [
            MamlInputOutput("System.String", "You can pipe a widget name to Get-Widget.")
        ]
        assert cmd.outputs == [
            MamlInputOutput("Contoso.Widget", "Get-Widget returns widget objects.")
        ]

    def test_examples(self, sample: list[MamlCommand]) -> None:
        assert sample[0].examples == [
            MamlExample(
                title="Example 1: Get a widget by name",
                code='PS C:\\> Get-Widget -Name "Sprocket"',
                remarks="This command gets the widget named Sprocket.",
            )
        ]

    def test_links(self, sample: list[MamlCommand]) -> None:
        assert sample[0].links == [
            MamlLink("Online Version", "https://example.com/get-widget"),
            MamlLink("Set-Widget", "https://example.com/set-widget"),
        ]

    def test_sparse_command(self, sample: list[MamlCommand]) -> None:
        cmd = sample[1]
        assert cmd.synopsis == "Changes a widget."
        assert cmd.description is None
        assert cmd.notes is None
        assert cmd.links == []
        assert cmd.parameters[0].description is None
        assert cmd.examples[0].remarks is None


# ---------------------------------------------------------------------------
# Text handling
# ---------------------------------------------------------------------------

class TestText:
    def test_soft_break_joins_lines(self) -> None:
        cmd = single("# Get-A\n## SYNOPSIS\nGets\na widget.\n")
        assert cmd.synopsis == "Gets a widget."

    def test_hard_break_splits_paragraph(self) -> None:
        cmd = single("# Get-A\n## SYNOPSIS\nFirst  \nSecond\n")
        assert cmd.synopsis == "First\nSecond"

    def test_empty_section_is_none(self) -> None:
        cmd = single("# Get-A\n## NOTES\n\n## SYNOPSIS\nx\n")
        assert cmd.notes is None

    def test_section_names_case_insensitive(self) -> None:
        cmd = single("# Get-A\n## Synopsis\nx\n## Related Links\n[a](b)\n")
        assert cmd.synopsis == "x"
        assert cmd.links == [MamlLink("a", "b")]

    def test_list_items_become_paragraphs(self) -> None:
        cmd = single("# Get-A\n## DESCRIPTION\n- one\n- two\n")
        assert cmd.description == "one\ntwo"

    def test_crlf_input(self) -> None:
        cmd = single("# Get-A\r\n## SYNOPSIS\r\nOne.\r\n\r\nTwo.\r\n")
        assert cmd.synopsis == "One.\nTwo."


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

class TestItems:
    def test_parameter_without_type(self) -> None:
        cmd = single("# Get-A\n## PARAMETERS\n### Path\nThe path.\n")
        param = cmd.parameters[0]
        assert param.name == "Path"
        assert param.type == "Object"
        assert param.position == POSITION_NAMED

    @pytest.mark.parametrize("type_name", ["String[]", "Object[]", "Dictionary[String, Int32]"])
    def test_parameter_bracketed_types(self, type_name: str) -> None:
        cmd = single(f"# Get-A\n## PARAMETERS\n### -Name [{type_name}]\nNames.\n")
        param = cmd.parameters[0]
        assert param.name == "Name"
        assert param.type == type_name
        assert param.description == "Names."

    def test_example_without_code(self) -> None:
        cmd = single("# Get-A\n## EXAMPLES\n### Example 1\nJust words.\n")
        assert cmd.examples == [MamlExample("Example 1", "", "Just words.")]

    def test_second_code_block_goes_to_remarks(self) -> None:
        md = "# Get-A\n## EXAMPLES\n### Ex\n```\nfirst\n```\n\n```\nsecond\n```\n"
        example = single(md).examples[0]
        assert example.code == "first"
        assert example.remarks == "second"

    def test_link_list(self) -> None:
        md = "# Get-A\n## RELATED LINKS\n- [A](https://a.example)\n- [B](https://b.example)\n"
        assert single(md).links == [
            MamlLink("A", "https://a.example"),
            MamlLink("B", "https://b.example"),
        ]

    def test_plain_text_link(self) -> None:
        assert single("# Get-A\n## RELATED LINKS\nGet-B\n").links == [MamlLink("Get-B", "")]


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

class TestParameterMetadata:
    def test_all_keys(self) -> None:
        values = parse_parameter_metadata(
            "Required: yes\n"
            "Position: 2\n"
            "Aliases: a, b\n"
            "Accept pipeline input: 1\n"
            "Accept wildcard characters: False\n"
            "Variable length: true\n"
            "Value required: no\n"
            "Value variable length: TRUE\n"
        )
        assert values == {
            "required": True,
            "position": 2,
            "aliases": ["a", "b"],
            "pipeline_input": True,
            "globbing": False,
            "variable_length": True,
            "value_required": False,
            "value_variable_length": True,
        }

    def test_blank_and_comment_lines_ignored(self) -> None:
        assert parse_parameter_metadata("\n# comment\nRequired: true\n") == {"required": True}

    def test_aliases_none(self) -> None:
        assert parse_parameter_metadata("Aliases: None") == {"aliases": []}

    def test_position_named(self) -> None:
        assert parse_parameter_metadata("Position: Named") == {"position": POSITION_NAMED}

    @pytest.mark.parametrize("text", [
        "Required: maybe",
        "Position: first",
        "Colour: red",
        "Required true",
    ])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(MamlParseError):
            parse_parameter_metadata(text)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TestStructureErrors:
    def test_content_before_first_command(self) -> None:
        with pytest.raises(MamlParseError, match="before the first"):
            transform("Intro text.\n\n# Get-A\n")

    def test_content_before_first_section(self) -> None:
        with pytest.raises(MamlParseError):
            transform("# Get-A\nStray text.\n## SYNOPSIS\nx\n")

    def test_unknown_section(self) -> None:
        with pytest.raises(MamlParseError, match="BOGUS"):
            transform("# Get-A\n## BOGUS\nx\n")

    def test_item_heading_in_text_section(self) -> None:
        with pytest.raises(MamlParseError, match="Sub"):
            transform("# Get-A\n## SYNOPSIS\n### Sub\nx\n")

    def test_content_before_first_item(self) -> None:
        with pytest.raises(MamlParseError):
            transform("# Get-A\n## PARAMETERS\nStray.\n### Name\n")

    def test_bad_parameter_heading(self) -> None:
        with pytest.raises(MamlParseError, match="Invalid parameter heading"):
            transform("# Get-A\n## PARAMETERS\n### Name [String] extra\n")

    def test_bad_metadata_in_document(self) -> None:
        md = "# Get-A\n## PARAMETERS\n### Name\n```yaml\nRequired: sometimes\n```\n"
        with pytest.raises(MamlParseError, match="Get-A / PARAMETERS / Name"):
            transform(md)

    def test_parse_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            transform("# Get-A\n## BOGUS\n")

    def test_empty_document(self) -> None:
        assert transform("") == []
