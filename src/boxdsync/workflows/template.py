"""Minimal note templates.

Syntax::

    {{title}}                         plain substitution
    {{#if description}}...{{/if}}     kept only when the field is set
    {{#each directors}}- {{this}}
    {{/each}}                         body repeated per list element

A conditional drops its body when the field is missing, None, False or an
empty list. Blocks nest. Unknown placeholders render as an empty string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

_TOKEN_RE = re.compile(r"\{\{\s*(#if|#each|/if|/each|[\w.@]+)\s*([\w.]*)\s*\}\}")

ITEM_PLACEHOLDER = "this"


class TemplateSyntaxError(ValueError):
    pass


@dataclass
class _Var:
    name: str


@dataclass
class _Block:
    kind: str
    name: str
    children: List["_Node"] = field(default_factory=list)


_Node = Union[str, _Var, _Block]


@dataclass
class CompiledTemplate:
    nodes: List[_Node]

    def render(self, context: Mapping[str, Any]) -> str:
        return _render_nodes(self.nodes, context, None)


def compile_template(template: str) -> CompiledTemplate:
    """Parse a template, raising TemplateSyntaxError on unbalanced blocks."""

    root: List[_Node] = []
    stack: List[_Block] = []
    pos = 0

    def sink() -> List[_Node]:
        return stack[-1].children if stack else root

    for match in _TOKEN_RE.finditer(template or ""):
        if match.start() > pos:
            sink().append(template[pos:match.start()])
        pos = match.end()
        head, arg = match.group(1), match.group(2)
        if head in {"#if", "#each"}:
            if not arg:
                raise TemplateSyntaxError(f"{{{{{head}}}}} needs a field name at offset {match.start()}")
            block = _Block(kind=head[1:], name=arg)
            sink().append(block)
            stack.append(block)
        elif head in {"/if", "/each"}:
            if not stack or stack[-1].kind != head[1:]:
                raise TemplateSyntaxError(f"Unexpected {{{{{head}}}}} at offset {match.start()}")
            stack.pop()
        else:
            sink().append(_Var(head))
    if pos < len(template or ""):
        sink().append(template[pos:])
    if stack:
        raise TemplateSyntaxError(f"Unclosed {{{{#{stack[-1].kind} {stack[-1].name}}}}} block")
    return CompiledTemplate(root)


def render_template(template: str, context: Mapping[str, Any]) -> str:
    return compile_template(template).render(context)


def is_truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (list, tuple)) and not value:
        return False
    return True


def _lookup(name: str, context: Mapping[str, Any], item: Optional[Any]) -> Any:
    if name == ITEM_PLACEHOLDER:
        return item
    return context.get(name)


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(_format(v) for v in value)
    return str(value)


def _render_nodes(nodes: List[_Node], context: Mapping[str, Any], item: Optional[Any]) -> str:
    out: List[str] = []
    for node in nodes:
        if isinstance(node, str):
            out.append(node)
        elif isinstance(node, _Var):
            out.append(_format(_lookup(node.name, context, item)))
        elif node.kind == "if":
            if is_truthy(_lookup(node.name, context, item)):
                out.append(_render_nodes(node.children, context, item))
        else:
            values = _lookup(node.name, context, item)
            if isinstance(values, (list, tuple)):
                for value in values:
                    out.append(_render_nodes(node.children, context, value))
    return "".join(out)


__all__ = [
    "CompiledTemplate",
    "TemplateSyntaxError",
    "compile_template",
    "is_truthy",
    "render_template",
]
