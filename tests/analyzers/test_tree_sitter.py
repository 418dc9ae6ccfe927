"""Tests for the tree-sitter JavaScript/TypeScript extractor."""

from __future__ import annotations

import pytest

from codedocs.analyzers.tree_sitter import TreeSitterExtractor
from codedocs.errors import ExtractionError
from codedocs.models import HttpMethod

ROUTES_JS = """\
import express from 'express';
const router = express.Router();

function listUsers(req, res) {
  res.json([]);
}

async function createUser(req, res, ...rest) {
  return res.status(201).json(req.body);
}

const handle = (event) => {
  return event;
};

class UserService {
  constructor(db) {
    this.db = db;
  }

  find(id) {
    return this.db.get(id);
  }
}

router.get('/users', listUsers);
router.post('/users', createUser);
router.get(`/users/${id}`, listUsers);
"""


def test_extracts_functions_classes_and_routes() -> None:
    facts = TreeSitterExtractor().extract(ROUTES_JS, "src/routes.js")

    assert [fn.name for fn in facts.functions] == ["listUsers", "createUser", "handle"]
    assert [cls.name for cls in facts.classes] == ["UserService"]
    assert facts.classes[0].line_start == 16
    assert facts.classes[0].line_end == 24
    assert all(fn.file == "src/routes.js" for fn in facts.functions)


def test_function_facts_capture_signature_details() -> None:
    facts = TreeSitterExtractor().extract(ROUTES_JS, "src/routes.js")
    by_name = {fn.name: fn for fn in facts.functions}

    create_user = by_name["createUser"]
    assert create_user.is_async is True
    assert create_user.signature == "async createUser(req, res, ...rest)"
    assert create_user.line_start == 8
    assert create_user.line_end == 10
    assert create_user.source_excerpt.splitlines()[0].startswith("async function createUser")

    assert by_name["listUsers"].is_async is False


def test_arrow_function_named_after_variable() -> None:
    facts = TreeSitterExtractor().extract("const handle = () => {};\n", "handle.js")

    assert len(facts.functions) == 1
    fn = facts.functions[0]
    assert fn.name == "handle"
    assert fn.parameters == ()
    assert fn.line_start == 1


def test_literal_route_becomes_endpoint() -> None:
    facts = TreeSitterExtractor().extract("router.post('/users', createUser);\n", "api.js")

    assert len(facts.endpoints) == 1
    endpoint = facts.endpoints[0]
    assert endpoint.method is HttpMethod.POST
    assert endpoint.path == "/users"
    assert endpoint.handler == "createUser"
    assert endpoint.file == "api.js"


def test_route_path_decodes_escape_sequences() -> None:
    source = (
        "app.get('/it\\'s', show);\n"
        "app.put(\"/caf\\u00e9/\\u{1F600}\", update);\n"
        "app.post('/plain', create);\n"
    )
    facts = TreeSitterExtractor().extract(source, "app.js")

    assert [e.path for e in facts.endpoints] == ["/it's", "/caf\u00e9/\U0001F600", "/plain"]
    assert [e.handler for e in facts.endpoints] == ["show", "update", "create"]


def test_template_literal_route_is_ignored() -> None:
    facts = TreeSitterExtractor().extract(ROUTES_JS, "src/routes.js")

    assert [(e.method, e.path) for e in facts.endpoints] == [
        (HttpMethod.GET, "/users"),
        (HttpMethod.POST, "/users"),
    ]


def test_inline_handler_falls_back_to_placeholder_name() -> None:
    source = "app.delete('/items/:id', (req, res) => res.sendStatus(204));\n"
    facts = TreeSitterExtractor().extract(source, "app.js")

    assert facts.endpoints[0].method is HttpMethod.DELETE
    assert facts.endpoints[0].handler == "handler"
    # Inline arrows are not bound to a variable, so they are not functions.
    assert facts.functions == []


def test_excerpt_is_capped_at_twenty_lines() -> None:
    body = "\n".join(f"  const v{i} = {i};" for i in range(30))
    source = f"function big() {{\n{body}\n}}\n"
    facts = TreeSitterExtractor().extract(source, "big.js")

    excerpt = facts.functions[0].source_excerpt.split("\n")
    assert len(excerpt) == 20
    assert excerpt[0] == "function big() {"


def test_typescript_parameters_and_abstract_class() -> None:
    source = """\
export abstract class Repository<T> {
  abstract find(id: string): T;
}

export function add(a: number, b?: number): number {
  return a + (b ?? 0);
}
"""
    facts = TreeSitterExtractor().extract(source, "src/repo.ts")

    assert [cls.name for cls in facts.classes] == ["Repository"]
    assert len(facts.functions) == 1
    assert [param.name for param in facts.functions[0].parameters] == ["a", "b"]


def test_tsx_files_parse_jsx() -> None:
    source = "export const Banner = (props: { title: string }) => <h1>{props.title}</h1>;\n"
    facts = TreeSitterExtractor().extract(source, "src/Banner.tsx")

    assert [fn.name for fn in facts.functions] == ["Banner"]


def test_syntax_errors_raise_extraction_error() -> None:
    with pytest.raises(ExtractionError):
        TreeSitterExtractor().extract("function broken( {\n", "broken.js")
