"""Markdown parser that produces an intermediate AST for MAML conversion.

Uses mistune v3 to parse Markdown and converts the token stream into
a normalised AST representation defined by :class:`ASTNode`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import mistune


# ---------------------------------------------------------------------------
# AST node definitions
# ---------------------------------------------------------------------------

class NodeType(Enum):
    DOCUMENT = "document"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE_BLOCK = "code_block"
    LIST = "list"
    LIST_ITEM = "list_item"
    BLOCKQUOTE = "blockquote"
    TEXT = "text"
    STRONG = "strong"
    EMPHASIS = "emphasis"
    INLINE_CODE = "inline_code"
    LINK = "link"
    LINE_BREAK = "line_break"
    SOFT_BREAK = "soft_break"


@dataclass
class ASTNode:
    type: NodeType
    children: list[ASTNode] = field(default_factory=list)
    text: str = ""
    # Heading
    level: int = 0
    # Code block
    language: str = ""
    # Link
    url: str = ""
    title: str = ""


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class MarkdownParser:
    """Parse Markdown text into an :class:`ASTNode` tree."""

    def __init__(self) -> None:
        self._md = mistune.create_markdown(renderer=None)  # AST mode

    # -- public API ---------------------------------------------------------

    def parse(self, markdown_text: str) -> ASTNode:
        """Return a *DOCUMENT* ``ASTNode`` for *markdown_text*.

        Line endings are normalised to ``\\n`` first.
        """
        text = markdown_text.replace("\r\n", "\n").replace("\r", "\n")
        tokens: list[dict[str, Any]] = self._md(text)  # type: ignore[assignment]
        children = self._convert_tokens(tokens)
        return ASTNode(type=NodeType.DOCUMENT, children=children)

    # -- token conversion ---------------------------------------------------

    def _convert_tokens(self, tokens: list[dict[str, Any]]) -> list[ASTNode]:
        nodes: list[ASTNode] = []
        for tok in tokens:
            node = self._convert_token(tok)
            if node is not None:
                nodes.append(node)
        return nodes

    def _convert_token(self, tok: dict[str, Any]) -> Optional[ASTNode]:
        ttype = tok.get("type", "")
        handler = getattr(self, f"_handle_{ttype}", None)
        if handler:
            return handler(tok)
        # Fallback – treat unknown tokens as plain text if they carry text.
        raw = tok.get("raw", tok.get("text", ""))
        if raw:
            return ASTNode(type=NodeType.TEXT, text=str(raw))
        return None

    def _convert_inline(self, children: Any) -> list[ASTNode]:
        if children is None:
            return []
        if isinstance(children, str):
            return [ASTNode(type=NodeType.TEXT, text=children)]
        if isinstance(children, list):
            return self._convert_tokens(children)
        return []

    def _convert_blocks(self, children: Any) -> list[ASTNode]:
        if isinstance(children, list):
            return self._convert_tokens(children)
        return self._convert_inline(children)

    # -- block handlers -----------------------------------------------------

    def _handle_heading(self, tok: dict) -> ASTNode:
        children_raw = tok.get("children") or tok.get("text", "")
        return ASTNode(
            type=NodeType.HEADING,
            level=tok.get("attrs", {}).get("level", tok.get("level", 1)),
            children=self._convert_inline(children_raw),
        )

    def _handle_paragraph(self, tok: dict) -> ASTNode:
        children_raw = tok.get("children") or tok.get("text", "")
        return ASTNode(
            type=NodeType.PARAGRAPH,
            children=self._convert_inline(children_raw),
        )

    def _handle_block_text(self, tok: dict) -> ASTNode:
        """Block text inside list items."""
        return self._handle_paragraph(tok)

    def _handle_block_code(self, tok: dict) -> ASTNode:
        """Fenced / indented code block, without its final newline."""
        attrs = tok.get("attrs", {})
        raw = tok.get("raw", tok.get("text", ""))
        text = raw if isinstance(raw, str) else str(raw)
        if text.endswith("\n"):
            text = text[:-1]
        return ASTNode(
            type=NodeType.CODE_BLOCK,
            text=text,
            language=(attrs.get("info", tok.get("info", "")) or "").strip(),
        )

    def _handle_list(self, tok: dict) -> ASTNode:
        return ASTNode(
            type=NodeType.LIST,
            children=self._convert_blocks(tok.get("children", [])),
        )

    def _handle_list_item(self, tok: dict) -> ASTNode:
        return ASTNode(
            type=NodeType.LIST_ITEM,
            children=self._convert_blocks(tok.get("children", [])),
        )

    def _handle_block_quote(self, tok: dict) -> ASTNode:
        return ASTNode(
            type=NodeType.BLOCKQUOTE,
            children=self._convert_blocks(tok.get("children", [])),
        )

    # -- inline handlers ----------------------------------------------------

    def _handle_text(self, tok: dict) -> ASTNode:
        raw = tok.get("raw", tok.get("text", tok.get("children", "")))
        if isinstance(raw, str):
            return ASTNode(type=NodeType.TEXT, text=raw)
        return ASTNode(type=NodeType.TEXT, children=self._convert_inline(raw))

    def _handle_strong(self, tok: dict) -> ASTNode:
        children_raw = tok.get("children") or tok.get("text", "")
        return ASTNode(type=NodeType.STRONG, children=self._convert_inline(children_raw))

    def _handle_emphasis(self, tok: dict) -> ASTNode:
        children_raw = tok.get("children") or tok.get("text", "")
        return ASTNode(type=NodeType.EMPHASIS, children=self._convert_inline(children_raw))

    def _handle_codespan(self, tok: dict) -> ASTNode:
        raw = tok.get("raw", tok.get("text", ""))
        return ASTNode(type=NodeType.INLINE_CODE, text=str(raw))

    def _handle_link(self, tok: dict) -> ASTNode:
        attrs = tok.get("attrs", {})
        children_raw = tok.get("children") or tok.get("text", "")
        return ASTNode(
            type=NodeType.LINK,
            url=attrs.get("url", tok.get("link", "")),
            title=attrs.get("title", "") or "",
            children=self._convert_inline(children_raw),
        )

    # -- breaks -------------------------------------------------------------

    def _handle_linebreak(self, _tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.LINE_BREAK)

    def _handle_softbreak(self, _tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.SOFT_BREAK)

    # -- blank / unknown ----------------------------------------------------

    def _handle_blank_line(self, _tok: dict) -> Optional[ASTNode]:
        return None

    def _handle_thematic_break(self, _tok: dict) -> Optional[ASTNode]:
        return None
