"""Tree-sitter powered extraction for JavaScript and TypeScript sources."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .base import Extractor
from ..constants import EXCERPT_LINE_WINDOW
from ..errors import ExtractionError
from ..models import (
    ClassFact,
    EndpointFact,
    FileFacts,
    FunctionFact,
    HttpMethod,
    Parameter,
)

_GRAMMARS: Dict[str, Language] = {
    "javascript": Language(tree_sitter_javascript.language()),
    "typescript": Language(tree_sitter_typescript.language_typescript()),
    "tsx": Language(tree_sitter_typescript.language_tsx()),
}

_GRAMMAR_BY_SUFFIX = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

_FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
_ANONYMOUS_FUNCTIONS = {"function_expression", "function"}
_CLASS_DECLARATIONS = {"class_declaration", "abstract_class_declaration"}
_HTTP_VERBS = {method.value.lower(): method for method in HttpMethod}


def _decode_escape(sequence: str) -> str:
    try:
        if sequence.startswith("\\u{"):
            return chr(int(sequence[3:-1], 16))
        return sequence.encode("utf-8").decode("unicode_escape")
    except (UnicodeDecodeError, ValueError):
        return sequence[1:]


class TreeSitterExtractor(Extractor):
    """Walks a tree-sitter syntax tree collecting functions, classes and routes."""

    def __init__(self, excerpt_lines: int = EXCERPT_LINE_WINDOW) -> None:
        self.excerpt_lines = excerpt_lines
        self._parsers: Dict[str, Parser] = {}

    def extract(self, content: str, path: str) -> FileFacts:
        source_bytes = content.encode("utf-8")
        grammar = self._grammar_for(path)
        tree = self._get_parser(grammar).parse(source_bytes)
        if tree.root_node.has_error:
            raise ExtractionError(f"syntax error while parsing {path} as {grammar}")

        facts = FileFacts()
        lines = content.split("\n")
        for node in self._walk(tree.root_node):
            if node.type in _FUNCTION_DECLARATIONS:
                name_node = node.child_by_field_name("name")
                name = self._node_text(name_node, source_bytes) if name_node else None
                facts.functions.append(self._function_fact(node, name, lines, source_bytes, path))
            elif node.type == "arrow_function":
                name = self._bound_variable_name(node, source_bytes)
                if name is not None:
                    facts.functions.append(
                        self._function_fact(node, name or None, lines, source_bytes, path)
                    )
            elif node.type in _ANONYMOUS_FUNCTIONS and self._is_default_export(node):
                name_node = node.child_by_field_name("name")
                name = self._node_text(name_node, source_bytes) if name_node else None
                facts.functions.append(self._function_fact(node, name, lines, source_bytes, path))
            elif node.type in _CLASS_DECLARATIONS:
                name_node = node.child_by_field_name("name")
                if name_node is None:
                    continue
                facts.classes.append(
                    ClassFact(
                        name=self._node_text(name_node, source_bytes),
                        line_start=node.start_point[0] + 1,
                        line_end=node.end_point[0] + 1,
                        file=path,
                    )
                )
            elif node.type == "call_expression":
                endpoint = self._detect_endpoint(node, source_bytes, path)
                if endpoint is not None:
                    facts.endpoints.append(endpoint)
        return facts

    def _get_parser(self, grammar: str) -> Parser:
        parser = self._parsers.get(grammar)
        if parser is None:
            parser = Parser(_GRAMMARS[grammar])
            self._parsers[grammar] = parser
        return parser

    @staticmethod
    def _grammar_for(path: str) -> str:
        suffix = PurePosixPath(path).suffix.lower()
        return _GRAMMAR_BY_SUFFIX.get(suffix, "javascript")

    @staticmethod
    def _walk(root: Node) -> Iterator[Node]:
        # Pre-order, so facts come out in source order without recursion limits.
        stack: List[Node] = [root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @staticmethod
    def _node_text(node: Node, source_bytes: bytes) -> str:
        return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def _string_value(self, node: Node, source_bytes: bytes) -> str:
        """Return the value of a string literal with its escape sequences decoded."""
        parts = []
        for child in node.named_children:
            text = self._node_text(child, source_bytes)
            parts.append(_decode_escape(text) if child.type == "escape_sequence" else text)
        return "".join(parts)

    def _function_fact(
        self,
        node: Node,
        name: Optional[str],
        lines: List[str],
        source_bytes: bytes,
        path: str,
    ) -> FunctionFact:
        line_start = node.start_point[0] + 1
        line_end = node.end_point[0] + 1
        stop = min(line_end, line_start - 1 + self.excerpt_lines)
        return FunctionFact(
            name=name or "anonymous",
            parameters=self._parameters(node, source_bytes),
            is_async=any(child.type == "async" for child in node.children),
            line_start=line_start,
            line_end=line_end,
            source_excerpt="\n".join(lines[line_start - 1 : stop]),
            file=path,
        )

    def _parameters(self, node: Node, source_bytes: bytes) -> tuple[Parameter, ...]:
        single = node.child_by_field_name("parameter")
        if single is not None:
            return (self._parameter(single, source_bytes),)
        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            return ()
        return tuple(
            self._parameter(child, source_bytes)
            for child in params_node.named_children
            if child.type != "comment"
        )

    def _parameter(self, node: Node, source_bytes: bytes) -> Parameter:
        if node.type in {"required_parameter", "optional_parameter"}:
            pattern = node.child_by_field_name("pattern")
            if pattern is None:
                return Parameter("param")
            node = pattern
        if node.type == "identifier":
            return Parameter(self._node_text(node, source_bytes))
        if node.type == "rest_pattern":
            target = next(
                (child for child in node.named_children if child.type == "identifier"),
                None,
            )
            name = self._node_text(target, source_bytes) if target is not None else "param"
            return Parameter(name, rest=True)
        return Parameter("param")

    def _bound_variable_name(self, node: Node, source_bytes: bytes) -> Optional[str]:
        """Return the declarator name for ``const x = () => ...``.

        Returns "" for a destructuring declarator and None when the arrow is not
        the declarator's value.
        """
        parent = node.parent
        if parent is None or parent.type != "variable_declarator":
            return None
        value = parent.child_by_field_name("value")
        if value is None or value.start_byte != node.start_byte or value.end_byte != node.end_byte:
            return None
        name_node = parent.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            return ""
        return self._node_text(name_node, source_bytes)

    @staticmethod
    def _is_default_export(node: Node) -> bool:
        parent = node.parent
        return parent is not None and parent.type == "export_statement"

    def _detect_endpoint(
        self, node: Node, source_bytes: bytes, path: str
    ) -> Optional[EndpointFact]:
        callee = node.child_by_field_name("function")
        if callee is None or callee.type != "member_expression":
            return None
        prop = callee.child_by_field_name("property")
        if prop is None:
            return None
        method = _HTTP_VERBS.get(self._node_text(prop, source_bytes))
        if method is None:
            return None
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return None
        args = [child for child in arguments.named_children if child.type != "comment"]
        if not args or args[0].type != "string":
            return None
        literal = self._string_value(args[0], source_bytes)
        handler = "handler"
        if len(args) > 1 and args[1].type == "identifier":
            handler = self._node_text(args[1], source_bytes)
        return EndpointFact(method=method, path=literal, handler=handler, file=path)


__all__ = ["TreeSitterExtractor"]
