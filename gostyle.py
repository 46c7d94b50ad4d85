#!/usr/bin/env python3
"""
gostyle - Style convention checker for Go

High-level goals:
- Parse one Go source file (via tree-sitter) into a concrete syntax tree
- Run a fixed, individually togglable set of naming / documentation / idiom rules
- Report advisory problems with a confidence score, filtered at emission time
- Emit plain text or structured JSON for CI / editors

The checker never rewrites code and never looks beyond the single file it is
given. Each rule is a plain function over a FileContext; the registry at the
bottom of the rule section fixes the order in which they run.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple
import argparse
import codecs
import json
import re
import sys

import tree_sitter_go as tsgo
import yaml
from tree_sitter import Language, Node, Parser, Tree

__version__ = "0.1.0"

GO_LANGUAGE = Language(tsgo.language())

STYLE_GUIDE_BASE = "http://golang.org/s/comments"
DOC_COMMENTS_LINK = STYLE_GUIDE_BASE + "#Doc_Comments"


# ============================================================
# ========================= ERRORS ===========================
# ============================================================

class GostyleError(Exception):
    """Base class for errors raised by gostyle."""


class ParseError(GostyleError):
    """Raised when the source cannot be turned into a syntax tree."""

    def __init__(self, filename: str, line: int, column: int) -> None:
        super().__init__(f"{filename}:{line}:{column}: syntax error")
        self.filename = filename
        self.line = line
        self.column = column


class ConfigError(GostyleError):
    """Raised for configuration values gostyle cannot use."""


# ============================================================
# =================== POSITIONS & PROBLEMS ===================
# ============================================================

@dataclass(frozen=True)
class Position:
    filename: str
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Problem:
    """
    One reported deviation from the style conventions.

    confidence is a value in (0, 1] estimating how likely the problem is real;
    line_text is the complete source line the problem points into.
    """
    file: str
    position: Position
    text: str
    link: str = ""
    confidence: float = 1.0
    line_text: str = ""
    category: str = ""

    def __str__(self) -> str:
        if self.link:
            return self.text + "\n\n" + self.link
        return self.text


# ============================================================
# ====================== CONFIGURATION =======================
# ============================================================

DEFAULT_INITIALISMS = frozenset({
    "ACL", "API", "ASCII", "CPU", "CSS", "DNS", "EOF", "GUID", "HTML", "HTTP",
    "HTTPS", "ID", "IP", "JSON", "LHS", "QPS", "RAM", "RHS", "RPC", "SLA",
    "SMTP", "SQL", "SSH", "TCP", "TLS", "TTL", "UDP", "UI", "UID", "UUID",
    "URI", "URL", "UTF8", "VM", "XML", "XMPP", "XSRF", "XSS",
})

DEFAULT_DISALLOWED_RECEIVER_NAMES = frozenset({"me", "this", "self"})


@dataclass(frozen=True)
class Config:
    """
    Options recognised by the checker. Built once by the caller and shared
    read-only by every file analysed with it.
    """
    min_confidence: float = 0.2

    enable_package_doc_check: bool = True
    enable_import_checks: bool = True
    enable_exported_doc_checks: bool = True
    allow_package_prefix_in_names: bool = False
    enable_naming_checks: bool = True
    flag_underscore_in_package_name: bool = True
    enable_var_decl_checks: bool = True
    enable_else_checks: bool = True
    enable_range_checks: bool = True
    enable_error_checks: bool = True
    enable_receiver_checks: bool = True
    enable_inc_dec_checks: bool = True
    enable_make_slice_checks: bool = True
    enable_error_return_position_check: bool = True
    enable_ignored_return_check: bool = True
    enable_named_return_check: bool = True

    use_fixed_receiver_name: bool = False
    fixed_receiver_name: str = "this"
    disallowed_receiver_names: frozenset = DEFAULT_DISALLOWED_RECEIVER_NAMES
    initialisms: frozenset = DEFAULT_INITIALISMS

    def __post_init__(self) -> None:
        # Initialisms are matched by their upper-case form.
        object.__setattr__(self, "initialisms", frozenset(str(v).upper() for v in self.initialisms))
        object.__setattr__(self, "disallowed_receiver_names", frozenset(self.disallowed_receiver_names))

    @classmethod
    def from_mapping(
        cls, raw: Mapping[str, Any], origin: str = "<config>", base: Optional["Config"] = None
    ) -> "Config":
        """
        Build a Config from a plain mapping (typically a parsed YAML document),
        starting from base or the defaults. Unknown keys are reported and
        skipped; badly typed values raise ConfigError.
        """
        known = {f.name: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in raw.items():
            name = str(key).replace("-", "_")
            if name not in known:
                sys.stderr.write(f"[gostyle] Ignoring unknown option '{key}' in {origin}.\n")
                continue
            values[name] = _coerce_option(name, value, origin)
        return replace(base or cls(), **values)


_BOOL_OPTIONS = frozenset(
    f.name for f in fields(Config) if f.name.startswith(("enable_", "allow_", "flag_", "use_"))
)
_SET_OPTIONS = frozenset({"disallowed_receiver_names", "initialisms"})


def _coerce_option(name: str, value: Any, origin: str) -> Any:
    if name in _BOOL_OPTIONS:
        if not isinstance(value, bool):
            raise ConfigError(f"{origin}: option '{name}' must be true or false, got {value!r}")
        return value
    if name in _SET_OPTIONS:
        if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
            raise ConfigError(f"{origin}: option '{name}' must be a list of strings")
        items = [str(v) for v in value if v is not None]
        if name == "initialisms":
            items = [v.upper() for v in items]
        return frozenset(items)
    if name == "min_confidence":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{origin}: option 'min_confidence' must be a number")
        if not 0.0 <= float(value) <= 1.0:
            raise ConfigError(f"{origin}: option 'min_confidence' must be within [0, 1], got {value}")
        return float(value)
    if name == "fixed_receiver_name":
        if not isinstance(value, str) or not value:
            raise ConfigError(f"{origin}: option 'fixed_receiver_name' must be a non-empty string")
        return value
    return value


# ============================================================
# ==================== SYNTAX TREE ACCESS ====================
# ============================================================

def parse_source(src: bytes, filename: str = "<input>") -> Tree:
    """
    Parse Go source with tree-sitter. Any error or missing node in the result
    is a parse failure; there is no partial analysis of broken files.

    The grammar is more lenient than Go at the top level, so a file must also
    open with a package clause and hold nothing but declarations after it.
    """
    parser = Parser(GO_LANGUAGE)
    tree = parser.parse(src)
    root = tree.root_node
    if root.has_error:
        bad = _first_error_node(root) or root
        raise ParseError(filename, bad.start_point[0] + 1, bad.start_point[1] + 1)

    top = named(root)
    if not top or top[0].type != "package_clause":
        bad = top[0] if top else root
        raise ParseError(filename, bad.start_point[0] + 1, bad.start_point[1] + 1)
    for child in top[1:]:
        if child.type not in _TOP_LEVEL_DECLARATIONS:
            raise ParseError(filename, child.start_point[0] + 1, child.start_point[1] + 1)
    return tree


_TOP_LEVEL_DECLARATIONS = frozenset({
    "import_declaration", "function_declaration", "method_declaration",
    "type_declaration", "var_declaration", "const_declaration",
})


def _first_error_node(root: Node) -> Optional[Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


def node_key(node: Node) -> Tuple[int, int, str]:
    # tree-sitter hands out fresh wrappers; identity lives in the span.
    return (node.start_byte, node.end_byte, node.type)


def named(node: Optional[Node]) -> List[Node]:
    """Named children of node, without comments."""
    if node is None:
        return []
    return [c for c in node.named_children if c.type != "comment"]


def _is_whitespace_token(node: Node) -> bool:
    return not node.is_named and node.type.strip("\n\r\0 \t") == ""


def _prev_significant(node: Node) -> Optional[Node]:
    sib = node.prev_sibling
    while sib is not None and _is_whitespace_token(sib):
        sib = sib.prev_sibling
    return sib


def _next_significant(node: Node) -> Optional[Node]:
    sib = node.next_sibling
    while sib is not None and _is_whitespace_token(sib):
        sib = sib.next_sibling
    return sib


def block_statements(block: Optional[Node]) -> List[Node]:
    if block is None:
        return []
    out: List[Node] = []
    for child in named(block):
        if child.type == "statement_list":
            out.extend(named(child))
        else:
            out.append(child)
    return out


def declaration_specs(decl: Node, spec_types: Iterable[str]) -> List[Node]:
    """Specs of a const/var/type/import declaration, grouped or not."""
    wanted = set(spec_types)
    specs: List[Node] = []
    for child in named(decl):
        if child.type in wanted:
            specs.append(child)
        elif child.type.endswith("_list"):
            specs.extend(c for c in named(child) if c.type in wanted)
    return specs


def is_grouped(decl: Node) -> bool:
    for child in decl.children:
        if child.type == "(" or child.type.endswith("_spec_list"):
            return True
    return False


def enclosing_declaration(spec: Node) -> Optional[Node]:
    node = spec.parent
    while node is not None and not node.type.endswith("_declaration"):
        node = node.parent
    return node


def param_decls(param_list: Optional[Node]) -> List[Node]:
    if param_list is None or param_list.type != "parameter_list":
        return []
    return [
        c for c in named(param_list)
        if c.type in ("parameter_declaration", "variadic_parameter_declaration")
    ]


def field_names(node: Node) -> List[Node]:
    return list(node.children_by_field_name("name"))


def is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def is_blank(node: Optional[Node]) -> bool:
    return node is not None and node.type in ("identifier", "blank_identifier") and node.text == b"_"


# ============================================================
# ====================== COMMENT GROUPS ======================
# ============================================================

def _is_trailing_comment(comment: Node) -> bool:
    prev = _prev_significant(comment)
    return prev is not None and prev.type != "comment" and prev.end_point[0] == comment.start_point[0]


def doc_comment(node: Node) -> List[Node]:
    """
    The comment group directly above node: adjacent comments whose last line
    is the line before node starts. A comment trailing the previous token on
    its own line is not part of it.
    """
    group: List[Node] = []
    row = node.start_point[0]
    sib = _prev_significant(node)
    while sib is not None and sib.type == "comment" and sib.end_point[0] >= row - 1:
        if _is_trailing_comment(sib):
            break
        group.append(sib)
        row = sib.start_point[0]
        sib = _prev_significant(sib)
    group.reverse()
    return group


def line_comment(node: Node) -> Optional[Node]:
    """A comment starting on the line node ends on, if any."""
    sib = _next_significant(node)
    if sib is not None and sib.type == "comment" and sib.start_point[0] == node.end_point[0]:
        return sib
    return None


_DIRECTIVE_RE = re.compile(r"^(?:line |extern |export )|^[a-z0-9]+:[a-z0-9]")


def comment_text(group: List[Node]) -> str:
    """
    Text of a comment group with comment markers removed, the first space of
    a line comment removed, directives dropped, trailing whitespace stripped,
    leading blank lines removed and interior blank runs collapsed.
    """
    lines: List[str] = []
    for comment in group:
        text = comment.text.decode("utf-8", "replace")
        if text.startswith("//"):
            text = text[2:]
            if text.startswith(" "):
                text = text[1:]
            elif _DIRECTIVE_RE.match(text):
                continue
        else:
            text = text[2:-2]
        lines.extend(line.rstrip() for line in text.split("\n"))

    kept: List[str] = []
    for line in lines:
        if line or (kept and kept[-1]):
            kept.append(line)
    if kept and kept[-1]:
        kept.append("")
    return "\n".join(kept)


# ============================================================
# ==================== TRAVERSAL ENGINE ======================
# ============================================================

def walk(root: Node, visit: Callable[[Node], bool]) -> None:
    """
    Pre-order depth-first traversal over named nodes in source order.
    visit is called on every node including root; a falsy return prunes the
    node's children while the traversal carries on with the remaining nodes.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        if visit(node):
            stack.extend(reversed(node.named_children))


# ============================================================
# ===================== NAME NORMALIZER ======================
# ============================================================

def normalize_name(name: str, initialisms: Iterable[str] = DEFAULT_INITIALISMS) -> str:
    """
    Return the canonical MixedCaps spelling of name.

    Words are split at underscores (runs collapse to one boundary, underscores
    are dropped) and at every lower-to-non-lower transition. A word that is a
    known initialism is written in its upper-case form (lower-case when it is
    the leading word of an unexported name); any later all-lowercase word gets
    its first letter capitalised.
    """
    if name == "_":
        return name
    if all(ch.islower() for ch in name):
        return name

    known = frozenset(v.upper() for v in initialisms)
    runes = list(name)
    w = i = 0  # start of the current word, scan position
    while i + 1 <= len(runes):
        eow = False
        if i + 1 == len(runes):
            eow = True
        elif runes[i + 1] == "_":
            # Drop the whole run of underscores; it is a single boundary.
            eow = True
            n = 1
            while i + n + 1 < len(runes) and runes[i + n + 1] == "_":
                n += 1
            del runes[i + 1:i + n + 1]
        elif runes[i].islower() and not runes[i + 1].islower():
            eow = True
        i += 1
        if not eow:
            continue

        # runes[w:i] is a word.
        word = "".join(runes[w:i])
        upper = word.upper()
        if upper in known and len(upper) == len(word):
            # Keep the leading case: lowercase only at the start of an unexported name.
            if w == 0 and runes[w].islower():
                upper = upper.lower()
            runes[w:i] = list(upper)
        elif w > 0 and word.lower() == word:
            head = runes[w].upper()
            if len(head) == 1:
                runes[w] = head
        w = i
    return "".join(runes)


# ============================================================
# ==================== SYMBOL RESOLUTION =====================
# ============================================================

@dataclass
class LocalResolver:
    """
    Conservative name -> function declaration lookup for one file.

    Only top-level function declarations are candidates. A name declared more
    than once, or bound anywhere in the file as something other than a
    function, resolves to None.
    """
    functions: Dict[str, Node] = field(default_factory=dict)
    ambiguous: Set[str] = field(default_factory=set)
    type_names: Set[str] = field(default_factory=set)

    @classmethod
    def build(cls, root: Node) -> "LocalResolver":
        resolver = cls()
        other: Set[str] = set()

        for decl in named(root):
            if decl.type != "function_declaration":
                continue
            ident = decl.child_by_field_name("name")
            if ident is None:
                continue
            name = ident.text.decode("utf-8")
            if name in resolver.functions:
                resolver.ambiguous.add(name)
            else:
                resolver.functions[name] = decl

        def visit(node: Node) -> bool:
            t = node.type
            if t in ("var_spec", "const_spec", "parameter_declaration",
                     "variadic_parameter_declaration"):
                other.update(n.text.decode("utf-8") for n in field_names(node))
            elif t == "import_spec":
                other.add(_import_binding(node))
            elif t in ("type_spec", "type_alias"):
                for n in field_names(node):
                    name = n.text.decode("utf-8")
                    other.add(name)
                    resolver.type_names.add(name)
            elif t in ("short_var_declaration", "range_clause"):
                for item in named(node.child_by_field_name("left")):
                    if item.type == "identifier":
                        other.add(item.text.decode("utf-8"))
            return True

        walk(root, visit)
        resolver.ambiguous.update(other & set(resolver.functions))
        return resolver

    def lookup(self, name: str) -> Optional[Node]:
        if name in self.ambiguous:
            return None
        return self.functions.get(name)

    def resolve_call(self, expr: Optional[Node]) -> Optional[Node]:
        """Declaration invoked by a call expression with a bare identifier callee."""
        if expr is None or expr.type != "call_expression":
            return None
        callee = expr.child_by_field_name("function")
        if callee is None or callee.type != "identifier":
            return None
        return self.lookup(callee.text.decode("utf-8"))


def _import_binding(spec: Node) -> str:
    """Name an import binds in the file: its explicit name, else the last path element."""
    name = spec.child_by_field_name("name")
    if name is not None:
        return name.text.decode("utf-8")
    path = spec.child_by_field_name("path")
    if path is None:
        return ""
    return unquote(path.text.decode("utf-8")).rsplit("/", 1)[-1]


def result_positions(func: Node) -> List[Tuple[Optional[Node], Optional[Node]]]:
    """
    Flatten a function's results to (name, type) pairs, one per position.
    "(a, b int, err error)" has three positions.
    """
    result = func.child_by_field_name("result")
    if result is None:
        return []
    if result.type != "parameter_list":
        return [(None, result)]
    positions: List[Tuple[Optional[Node], Optional[Node]]] = []
    for param in param_decls(result):
        typ = param.child_by_field_name("type")
        names = field_names(param)
        if names:
            positions.extend((n, typ) for n in names)
        else:
            positions.append((None, typ))
    return positions


def is_error_type(typ: Optional[Node], resolver: Optional[LocalResolver] = None) -> bool:
    if typ is None or typ.type not in ("type_identifier", "identifier") or typ.text != b"error":
        return False
    return resolver is None or "error" not in resolver.type_names


def error_result_indices(func: Optional[Node], resolver: Optional[LocalResolver] = None) -> List[int]:
    """
    Positions of results declared as the bare type "error".
    For "func foo() (error, int, string, error)" this is [0, 3].
    """
    if func is None:
        return []
    return [i for i, (_, typ) in enumerate(result_positions(func)) if is_error_type(typ, resolver)]


def receiver_type(method: Node) -> Optional[str]:
    """
    Name of a method's receiver base type, or None when the receiver is
    written in a shape that does not name a type directly.
    """
    params = param_decls(method.child_by_field_name("receiver"))
    if not params:
        return None
    typ = params[0].child_by_field_name("type")
    if typ is not None and typ.type == "pointer_type":
        inner = named(typ)
        typ = inner[0] if inner else None
    if typ is not None and typ.type == "generic_type":
        typ = typ.child_by_field_name("type")
    if typ is not None and typ.type == "type_identifier":
        return typ.text.decode("utf-8")
    return None


def receiver_name(method: Node) -> Optional[str]:
    params = param_decls(method.child_by_field_name("receiver"))
    if not params:
        return None
    names = field_names(params[0])
    if not names:
        return None
    return names[0].text.decode("utf-8")


# ============================================================
# ======================= FILE CONTEXT =======================
# ============================================================

@dataclass
class FileContext:
    """
    Per-file state for one lint run: the tree, the raw bytes, and the facts
    derived from them up front. Discarded once the run finishes.
    """
    filename: str
    src: bytes
    root: Node
    config: Config
    package_name: str = ""
    is_test: bool = False
    is_main: bool = False
    sortable: Set[str] = field(default_factory=set)
    resolver: LocalResolver = field(default_factory=LocalResolver)
    problems: List[Problem] = field(default_factory=list)

    @classmethod
    def build(cls, filename: str, src: bytes, tree: Tree, config: Config) -> "FileContext":
        root = tree.root_node
        ctx = cls(filename=filename, src=src, root=root, config=config)
        clause = ctx.package_clause()
        if clause is not None:
            idents = named(clause)
            if idents:
                ctx.package_name = ctx.render(idents[0])
        ctx.is_test = filename.endswith("_test.go")
        ctx.is_main = ctx.package_name == "main"
        ctx.sortable = scan_sortable(root)
        ctx.resolver = LocalResolver.build(root)
        return ctx

    def package_clause(self) -> Optional[Node]:
        for child in named(self.root):
            if child.type == "package_clause":
                return child
        return None

    def walk(self, visit: Callable[[Node], bool]) -> None:
        walk(self.root, visit)

    def render(self, node: Node) -> str:
        try:
            return self.src[node.start_byte:node.end_byte].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RuntimeError(f"cannot render {node.type} node at byte {node.start_byte}") from exc

    def name_of(self, node: Node) -> str:
        ident = node.child_by_field_name("name")
        return self.render(ident) if ident is not None else ""

    def position(self, node: Node) -> Position:
        row, col = node.start_point
        return Position(self.filename, row + 1, col + 1, node.start_byte)

    def source_line(self, offset: int) -> str:
        """The complete line containing offset, including its terminating newline."""
        lo = self.src.rfind(b"\n", 0, offset) + 1
        hi = self.src.find(b"\n", offset)
        hi = len(self.src) if hi < 0 else hi + 1
        return self.src[lo:hi].decode("utf-8", "replace")

    def report(
        self,
        node: Node,
        confidence: float,
        text: str,
        *,
        link: str = "",
        category: str = "",
    ) -> None:
        """Record a problem at node unless its confidence is below the configured minimum."""
        if confidence < self.config.min_confidence:
            return
        pos = self.position(node)
        self.problems.append(Problem(
            file=self.filename,
            position=pos,
            text=text,
            link=link,
            confidence=confidence,
            line_text=self.source_line(pos.offset),
            category=category,
        ))


def scan_sortable(root: Node) -> Set[str]:
    """Types with Len, Less and Swap methods declared in this file."""
    has: Dict[str, Set[str]] = {}
    for decl in named(root):
        if decl.type != "method_declaration":
            continue
        ident = decl.child_by_field_name("name")
        recv = receiver_type(decl)
        if ident is None or recv is None:
            continue
        method = ident.text.decode("utf-8")
        if method in ("Len", "Less", "Swap"):
            has.setdefault(recv, set()).add(method)
    return {typ for typ, methods in has.items() if len(methods) == 3}


# ============================================================
# ===================== EXPRESSION SHAPES ====================
# ============================================================

def is_ident(node: Optional[Node], name: str) -> bool:
    return node is not None and node.type in ("identifier", "type_identifier") and node.text == name.encode()


def is_pkg_dot(node: Optional[Node], pkg: str, name: str) -> bool:
    if node is None or node.type != "selector_expression":
        return False
    sel = node.child_by_field_name("field")
    return is_ident(node.child_by_field_name("operand"), pkg) and sel is not None and sel.text == name.encode()


def call_args(call: Node) -> List[Node]:
    return named(call.child_by_field_name("arguments"))


def _is_int_literal_value(node: Optional[Node], value: str) -> bool:
    return node is not None and node.type == "int_literal" and node.text == value.encode()


def is_zero(node: Optional[Node]) -> bool:
    return _is_int_literal_value(node, "0")


def is_one(node: Optional[Node]) -> bool:
    return _is_int_literal_value(node, "1")


def is_int_literal(node: Optional[Node]) -> bool:
    """An int literal, possibly negated and/or parenthesised."""
    while node is not None:
        if node.type == "unary_expression":
            op = node.child_by_field_name("operator")
            if op is None or op.text != b"-":
                return False
            node = node.child_by_field_name("operand")
        elif node.type == "parenthesized_expression":
            inner = named(node)
            node = inner[0] if inner else None
        else:
            return node.type == "int_literal"
    return False


_LITERAL_DEFAULT_TYPES = {
    "float_literal": "float64",
    "imaginary_literal": "complex128",
    "rune_literal": "rune",
    "interpreted_string_literal": "string",
    "raw_string_literal": "string",
}


def untyped_const_type(node: Node) -> Optional[str]:
    """Default type of an untyped constant expression, or None if node is not one."""
    if is_int_literal(node):
        return "int"
    return _LITERAL_DEFAULT_TYPES.get(node.type)


_ZERO_LITERALS = frozenset({
    "false",
    "'\\x00'", "'\\000'",
    '""', "``",
    "0", "0.", "0.0", "0i",
})

_LITERAL_TYPES = frozenset(_LITERAL_DEFAULT_TYPES) | {"int_literal", "false"}


def is_zero_value(node: Node) -> bool:
    if node.type in ("nil", "identifier") and node.text == b"nil":
        return True
    return node.type in _LITERAL_TYPES and node.text.decode("utf-8") in _ZERO_LITERALS


def unquote(literal: str) -> str:
    if literal.startswith("`"):
        return literal[1:-1].replace("\r", "")
    body = literal[1:-1]
    try:
        return codecs.decode(body.encode("latin-1", "backslashreplace"), "unicode_escape")
    except UnicodeDecodeError:
        return body


# ============================================================
# ========================== RULES ===========================
# ============================================================

def lint_package_comment(ctx: FileContext) -> None:
    """
    Check the package comment: it must exist and be of the form
    "Package foo ...". A package comment may rightfully live in another file
    of the same package, hence the low confidence for a missing one.
    """
    if ctx.is_test:
        return
    clause = ctx.package_clause()
    if clause is None:
        return

    ref = STYLE_GUIDE_BASE + "#Package_Comments"
    doc = doc_comment(clause)
    if not doc:
        ctx.report(clause, 0.2, "should have a package comment, unless it's in another file for this package",
                   link=ref, category="comments")
        return
    text = comment_text(doc)
    prefix = "Package " + ctx.package_name + " "
    stripped = text.lstrip(" \t")
    if stripped != text:
        ctx.report(doc[0], 1, "package comment should not have leading space", link=ref, category="comments")
        text = stripped
    # Only non-main packages need to keep to this form.
    if not ctx.is_main and not text.startswith(prefix):
        ctx.report(doc[0], 1, f'package comment should be of the form "{prefix}..."', link=ref, category="comments")


def _import_specs(ctx: FileContext) -> List[Tuple[Node, Node]]:
    out: List[Tuple[Node, Node]] = []
    for decl in named(ctx.root):
        if decl.type == "import_declaration":
            out.extend((decl, spec) for spec in declaration_specs(decl, ("import_spec",)))
    return out


def lint_imports(ctx: FileContext) -> None:
    if ctx.is_test:
        return
    for _, spec in _import_specs(ctx):
        name = spec.child_by_field_name("name")
        if name is not None and name.text == b".":
            ctx.report(spec, 1, "should not use dot imports",
                       link=STYLE_GUIDE_BASE + "#Import_Dot", category="imports")


def lint_blank_imports(ctx: FileContext) -> None:
    """The first blank import of each contiguous group needs a comment justifying it."""
    if ctx.is_main or ctx.is_test:
        return

    imports = _import_specs(ctx)
    for i, (decl, spec) in enumerate(imports):
        if not is_blank(spec.child_by_field_name("name")):
            continue
        if i > 0:
            _, prev = imports[i - 1]
            if is_blank(prev.child_by_field_name("name")) and prev.start_point[0] + 1 == spec.start_point[0]:
                continue

        holder = spec if is_grouped(decl) else decl
        if not doc_comment(holder) and line_comment(holder) is None:
            ctx.report(spec, 1, "a blank import should be only in a main or test package, or have a comment justifying it",
                       category="imports")


_COMMON_METHODS = frozenset({"Error", "Read", "ServeHTTP", "String", "Write"})


def lint_exported(ctx: FileContext) -> None:
    """
    Check doc comments on exported names, and names that stutter when
    combined with the package name.
    """
    if ctx.is_test:
        return
    allow_prefix = ctx.config.allow_package_prefix_in_names
    flagged_decls: Set[Tuple[int, int, str]] = set()

    def visit(node: Node) -> bool:
        t = node.type
        if t == "import_declaration":
            return False
        if t in ("function_declaration", "method_declaration"):
            _lint_func_doc(ctx, node)
            if not allow_prefix:
                thing = "method" if t == "method_declaration" else "func"
                _check_stutter(ctx, node.child_by_field_name("name"), thing)
            return False
        if t in ("type_spec", "type_alias"):
            decl = enclosing_declaration(node)
            doc = doc_comment(node) if decl is not None and is_grouped(decl) else []
            if not doc and decl is not None:
                doc = doc_comment(decl)
            _lint_type_doc(ctx, node, doc)
            if not allow_prefix:
                _check_stutter(ctx, node.child_by_field_name("name"), "type")
            return False
        if t in ("var_spec", "const_spec"):
            _lint_value_spec_doc(ctx, node, flagged_decls)
            return False
        return True

    ctx.walk(visit)


def _lint_type_doc(ctx: FileContext, spec: Node, doc: List[Node]) -> None:
    name = ctx.name_of(spec)
    if not is_exported(name):
        return
    if not doc:
        ctx.report(spec, 1, f"exported type {name} should have comment or be unexported",
                   link=DOC_COMMENTS_LINK, category="comments")
        return
    text = comment_text(doc)
    for article in ("A", "An", "The"):
        if text.startswith(article + " "):
            text = text[len(article) + 1:]
            break
    if not text.startswith(name + " "):
        ctx.report(doc[0], 1,
                   f'comment on exported type {name} should be of the form "{name} ..." (with optional leading article)',
                   link=DOC_COMMENTS_LINK, category="comments")


def _lint_func_doc(ctx: FileContext, func: Node) -> None:
    name = ctx.name_of(func)
    if not is_exported(name):
        return
    kind = "function"
    display = name
    if func.type == "method_declaration":
        kind = "method"
        recv = receiver_type(func)
        if recv is None or not is_exported(recv):
            return
        if name in _COMMON_METHODS:
            return
        if name in ("Len", "Less", "Swap") and recv in ctx.sortable:
            return
        display = recv + "." + name
    doc = doc_comment(func)
    if not doc:
        ctx.report(func, 1, f"exported {kind} {display} should have comment or be unexported",
                   link=DOC_COMMENTS_LINK, category="comments")
        return
    prefix = name + " "
    if not comment_text(doc).startswith(prefix):
        ctx.report(doc[0], 1, f'comment on exported {kind} {display} should be of the form "{prefix}..."',
                   link=DOC_COMMENTS_LINK, category="comments")


def _lint_value_spec_doc(ctx: FileContext, spec: Node, flagged_decls: Set[Tuple[int, int, str]]) -> None:
    decl = enclosing_declaration(spec)
    if decl is None:
        return
    kind = "const" if decl.type == "const_declaration" else "var"
    names = [ctx.render(n) for n in field_names(spec)]
    if not names:
        return

    for extra in names[1:]:
        if is_exported(extra):
            ctx.report(spec, 1, f"exported {kind} {extra} should have its own declaration", category="comments")
            return

    name = names[0]
    if not is_exported(name):
        return

    grouped = is_grouped(decl)
    decl_doc = doc_comment(decl)
    doc = doc_comment(spec) if grouped else decl_doc
    if not doc:
        key = node_key(decl)
        if not decl_doc and key not in flagged_decls:
            block = " (or a comment on this block)" if kind == "const" and grouped else ""
            ctx.report(spec, 1, f"exported {kind} {name} should have comment{block} or be unexported",
                       link=DOC_COMMENTS_LINK, category="comments")
            flagged_decls.add(key)
        return
    prefix = name + " "
    if not comment_text(doc).startswith(prefix):
        ctx.report(doc[0], 1, f'comment on exported {kind} {name} should be of the form "{prefix}..."',
                   link=DOC_COMMENTS_LINK, category="comments")


def _check_stutter(ctx: FileContext, ident: Optional[Node], thing: str) -> None:
    if ident is None:
        return
    pkg, name = ctx.package_name, ctx.render(ident)
    if not pkg or not is_exported(name):
        return
    # A name equal in length to the package name is allowed to match it.
    if len(name) <= len(pkg):
        return
    if pkg.lower() != name[:len(pkg)].lower():
        return
    rem = name[len(pkg):]
    if rem[0] == "_" or rem[0].isupper():
        ctx.report(ident, 0.8,
                   f"{thing} name will be used as {pkg}.{name} by other packages, and that stutters; "
                   f"consider calling this {rem}",
                   category="naming")


_ALL_CAPS_RE = re.compile(r"^[A-Z0-9_]+$")
_TEST_FUNC_PREFIXES = ("Example", "Test", "Benchmark")


def lint_names(ctx: FileContext) -> None:
    """Complain about names that use underscores or miscased initialisms."""
    pkg = ctx.package_name
    if ctx.config.flag_underscore_in_package_name and "_" in pkg and not pkg.endswith("_test"):
        clause = ctx.package_clause()
        if clause is not None:
            ctx.report(clause, 1, "don't use an underscore in package name",
                       link="http://golang.org/doc/effective_go.html#package-names", category="naming")

    initialisms = ctx.config.initialisms

    def check(ident: Node, thing: str) -> None:
        name = ctx.render(ident)
        if name == "_":
            return

        if len(name) >= 5 and _ALL_CAPS_RE.match(name) and "_" in name:
            ctx.report(ident, 0.6, "don't use ALL_CAPS in Go names; use CamelCase",
                       link=STYLE_GUIDE_BASE + "#Mixed_Caps", category="naming")
            return
        if len(name) > 2 and name[0] == "k" and "A" <= name[1] <= "Z":
            should = name[1].lower() + name[2:]
            ctx.report(ident, 0.6, f"don't use leading k in Go names; {thing} {name} should be {should}",
                       link=STYLE_GUIDE_BASE + "#Mixed_Caps", category="naming")

        should = normalize_name(name, initialisms)
        if name == should:
            return
        if len(name) > 2 and "_" in name[1:]:
            ctx.report(ident, 0.8, f"don't use underscores in Go names; {thing} {name} should be {should}",
                       link="http://golang.org/doc/effective_go.html#mixed-caps", category="naming")
            return
        ctx.report(ident, 0.8, f"{thing} {name} should be {should}",
                   link=STYLE_GUIDE_BASE + "#Initialisms", category="naming")

    def check_params(param_list: Optional[Node], thing: str) -> None:
        for param in param_decls(param_list):
            for ident in field_names(param):
                check(ident, thing)

    def visit(node: Node) -> bool:
        t = node.type
        if t == "short_var_declaration" or (
            t == "assignment_statement" and _operator(node) != "="
        ):
            for item in named(node.child_by_field_name("left")):
                if item.type == "identifier":
                    check(item, "var")
        elif t in ("function_declaration", "method_declaration"):
            ident = node.child_by_field_name("name")
            if ident is None:
                return True
            if ctx.is_test and ctx.render(ident).startswith(_TEST_FUNC_PREFIXES):
                return True
            check(ident, "func")
            thing = "method" if t == "method_declaration" else "func"
            check_params(node.child_by_field_name("parameters"), thing + " parameter")
            check_params(node.child_by_field_name("result"), thing + " result")
        elif t in ("const_declaration", "type_declaration", "var_declaration"):
            thing = t.split("_", 1)[0]
            for spec in declaration_specs(node, ("const_spec", "var_spec", "type_spec", "type_alias")):
                for ident in field_names(spec):
                    check(ident, thing)
        elif t == "interface_type":
            # Interface method names are often dictated by concrete types; only check their signatures.
            for method in _interface_methods(node):
                check_params(method.child_by_field_name("parameters"), "interface method parameter")
                check_params(method.child_by_field_name("result"), "interface method result")
        elif t == "range_clause":
            if _range_token(node) == ":=":
                for item in named(node.child_by_field_name("left")):
                    if item.type == "identifier":
                        check(item, "range var")
        elif t == "struct_type":
            for fld in declaration_specs(node, ("field_declaration",)):
                for ident in field_names(fld):
                    check(ident, "struct field")
        return True

    ctx.walk(visit)


def _operator(stmt: Node) -> str:
    op = stmt.child_by_field_name("operator")
    return op.text.decode("utf-8") if op is not None else ""


def _range_token(clause: Node) -> str:
    for child in clause.children:
        if child.type in (":=", "="):
            return child.type
    return ""


def _interface_methods(iface: Node) -> List[Node]:
    return declaration_specs(iface, ("method_elem", "method_spec"))


def lint_var_decls(ctx: FileContext) -> None:
    """
    Complain about var declarations whose explicit type or initializer is
    redundant: a zero-value initializer, or a type that an untyped constant
    would produce anyway.
    """
    def visit(node: Node) -> bool:
        if node.type == "const_declaration":
            return False
        if node.type != "var_spec":
            return True
        names = field_names(node)
        typ = node.child_by_field_name("type")
        values = named(node.child_by_field_name("value"))
        if len(names) > 1 or typ is None or not values:
            return False
        # "var _ Interface = (*Concrete)(nil)" asserts interface satisfaction.
        if is_blank(names[0]):
            return False
        rhs = values[0]
        name = ctx.render(names[0])
        if is_zero_value(rhs):
            ctx.report(rhs, 0.9, f"should drop = {ctx.render(rhs)} from declaration of var {name}; it is the zero value",
                       category="zero-value")
            return False
        if typ.type == "interface_type":
            return False
        default_type = untyped_const_type(rhs)
        if default_type is None or not is_ident(typ, default_type):
            return False
        ctx.report(typ, 0.8,
                   f"should omit type {ctx.render(typ)} from declaration of var {name}; "
                   "it will be inferred from the right-hand side",
                   category="type-inference")
        return False

    ctx.walk(visit)


def lint_elses(ctx: FileContext) -> None:
    """Complain about an else block whose if block ends in a return."""
    # else-if chains are never flagged: the nested if of a chain is remembered
    # here and skipped when the walk reaches it.
    ignore: Set[Tuple[int, int, str]] = set()

    def visit(node: Node) -> bool:
        if node.type != "if_statement":
            return True
        alternative = node.child_by_field_name("alternative")
        if alternative is None or node_key(node) in ignore:
            return True
        if alternative.type == "if_statement":
            ignore.add(node_key(alternative))
            return True
        if alternative.type != "block":
            return True
        body = block_statements(node.child_by_field_name("consequence"))
        if not body:
            return True
        init = node.child_by_field_name("initializer")
        short_decl = init is not None and init.type == "short_var_declaration"
        if body[-1].type == "return_statement":
            extra = " (move short variable declaration to its own line if necessary)" if short_decl else ""
            ctx.report(alternative, 1, "if block ends with a return statement, so drop this else and outdent its block" + extra,
                       link=STYLE_GUIDE_BASE + "#Indent_Error_Flow", category="indent")
        return True

    ctx.walk(visit)


def lint_ranges(ctx: FileContext) -> None:
    def visit(node: Node) -> bool:
        if node.type != "range_clause":
            return True
        left = named(node.child_by_field_name("left"))
        if len(left) < 2 or not is_blank(left[1]):
            return True
        ctx.report(left[1], 1,
                   f"should omit 2nd value from range; this loop is equivalent to "
                   f"`for {ctx.render(left[0])} {_range_token(node)} range ...`",
                   category="range-loop")
        return True

    ctx.walk(visit)


def lint_errorf(ctx: FileContext) -> None:
    def visit(node: Node) -> bool:
        if node.type != "call_expression":
            return True
        if not is_pkg_dot(node.child_by_field_name("function"), "errors", "New"):
            return True
        args = call_args(node)
        if len(args) != 1 or args[0].type != "call_expression":
            return True
        if not is_pkg_dot(args[0].child_by_field_name("function"), "fmt", "Sprintf"):
            return True
        ctx.report(node, 1, "should replace errors.New(fmt.Sprintf(...)) with fmt.Errorf(...)", category="errors")
        return True

    ctx.walk(visit)


def _is_error_constructor(call: Node) -> bool:
    fn = call.child_by_field_name("function")
    return is_pkg_dot(fn, "errors", "New") or is_pkg_dot(fn, "fmt", "Errorf")


def lint_error_vars(ctx: FileContext) -> None:
    """Package-level error vars should be named errFoo or ErrFoo."""
    for decl in named(ctx.root):
        if decl.type != "var_declaration":
            continue
        for spec in declaration_specs(decl, ("var_spec",)):
            names = field_names(spec)
            values = named(spec.child_by_field_name("value"))
            if len(names) != 1 or len(values) != 1:
                continue
            if values[0].type != "call_expression" or not _is_error_constructor(values[0]):
                continue
            name = ctx.render(names[0])
            prefix = "Err" if is_exported(name) else "err"
            if not name.startswith(prefix):
                ctx.report(names[0], 0.9, f"error var {name} should have name of the form {prefix}Foo",
                           category="naming")


def cap_and_punct(s: str) -> Tuple[bool, bool]:
    is_punct = s[-1] in ".:!"
    is_cap = s[0].isupper()
    # Strings starting with something that looks like an initialism are fine.
    if is_cap and len(s) > 1 and s[1].isupper():
        is_cap = False
    return is_cap, is_punct


def lint_error_strings(ctx: FileContext) -> None:
    def visit(node: Node) -> bool:
        if node.type != "call_expression" or not _is_error_constructor(node):
            return True
        args = call_args(node)
        if not args or args[0].type not in ("interpreted_string_literal", "raw_string_literal"):
            return True
        s = unquote(ctx.render(args[0]))
        if not s:
            return True
        is_cap, is_punct = cap_and_punct(s)
        if is_cap and is_punct:
            msg = "error strings should not be capitalized and should not end with punctuation"
        elif is_cap:
            msg = "error strings should not be capitalized"
        elif is_punct:
            msg = "error strings should not end with punctuation"
        else:
            return True
        # Proper nouns and exported identifiers start error strings often enough.
        conf = 0.6 if is_cap else 0.8
        ctx.report(args[0], conf, msg, link=STYLE_GUIDE_BASE + "#Error_Strings", category="errors")
        return True

    ctx.walk(visit)


def lint_receivers(ctx: FileContext) -> None:
    if ctx.config.use_fixed_receiver_name:
        _lint_fixed_receiver_name(ctx)
    else:
        _lint_receiver_names(ctx)


def _lint_fixed_receiver_name(ctx: FileContext) -> None:
    wanted = ctx.config.fixed_receiver_name

    def visit(node: Node) -> bool:
        if node.type != "method_declaration":
            return True
        name = receiver_name(node)
        if name is not None and name != wanted:
            ctx.report(node, 1, f"receiver name should be '{wanted}'", category="naming")
        return True

    ctx.walk(visit)


def _lint_receiver_names(ctx: FileContext) -> None:
    """Receiver names must be consistent per type and not generic."""
    ref = STYLE_GUIDE_BASE + "#Receiver_Names"
    type_receiver: Dict[str, str] = {}

    def visit(node: Node) -> bool:
        if node.type != "method_declaration":
            return True
        name = receiver_name(node)
        if name is None:
            return True
        if name == "_":
            ctx.report(node, 1, "receiver name should not be an underscore", link=ref, category="naming")
            return True
        if name in ctx.config.disallowed_receiver_names:
            ctx.report(node, 1,
                       "receiver name should be a reflection of its identity; "
                       f'don\'t use generic names such as "{name}"',
                       link=ref, category="naming")
            return True
        recv = receiver_type(node)
        if recv is None:
            return True
        prev = type_receiver.get(recv)
        if prev is not None and prev != name:
            ctx.report(node, 1,
                       f"receiver name {name} should be consistent with previous receiver name {prev} for {recv}",
                       link=ref, category="naming")
            return True
        type_receiver[recv] = name
        return True

    ctx.walk(visit)


def lint_inc_dec(ctx: FileContext) -> None:
    def visit(node: Node) -> bool:
        if node.type != "assignment_statement":
            return True
        left = named(node.child_by_field_name("left"))
        right = named(node.child_by_field_name("right"))
        if len(left) != 1 or not right or not is_one(right[0]):
            return True
        suffix = {"+=": "++", "-=": "--"}.get(_operator(node))
        if suffix is None:
            return True
        ctx.report(node, 0.8, f"should replace {ctx.render(node)} with {ctx.render(left[0])}{suffix}",
                   category="unary-op")
        return True

    ctx.walk(visit)


def lint_make_slice(ctx: FileContext) -> None:
    """Complain about "x := make([]T, 0)"; a nil slice declaration does the same job."""
    def visit(node: Node) -> bool:
        if node.type != "short_var_declaration":
            return True
        left = named(node.child_by_field_name("left"))
        right = named(node.child_by_field_name("right"))
        if len(left) != 1 or not right or right[0].type != "call_expression":
            return True
        call = right[0]
        args = call_args(call)
        if not is_ident(call.child_by_field_name("function"), "make") or len(args) != 2 or not is_zero(args[1]):
            return True
        if args[0].type != "slice_type":
            return True
        ctx.report(node, 0.8, f'can probably use "var {ctx.render(left[0])} {ctx.render(args[0])}" instead',
                   category="slice")
        return True

    ctx.walk(visit)


def lint_error_return(ctx: FileContext) -> None:
    def visit(node: Node) -> bool:
        if node.type not in ("function_declaration", "method_declaration"):
            return True
        positions = result_positions(node)
        if len(positions) <= 1:
            return True
        if any(is_error_type(typ, ctx.resolver) for _, typ in positions[:-1]):
            ctx.report(node, 0.9, "error should be the last type when returning multiple items",
                       category="arg-order")
        return True

    ctx.walk(visit)


def lint_ignored_return(ctx: FileContext) -> None:
    """
    Complain about results of locally declared functions that are thrown
    away. Errors can be ignored silently (a bare call statement) or
    intentionally (assigned to "_"). Calls whose target cannot be resolved to
    a declaration in this file are left alone.
    """
    resolver = ctx.resolver

    def visit(node: Node) -> bool:
        t = node.type
        if t == "expression_statement":
            exprs = named(node)
            func = resolver.resolve_call(exprs[0] if exprs else None)
            if func is None:
                return True
            name = ctx.name_of(func)
            if error_result_indices(func, resolver):
                ctx.report(node, 1.0, f"function '{name}' returns an error, it should not be silently ignored",
                           category="result-ignore")
            elif result_positions(func):
                ctx.report(node, 0.9, f"result of '{name}' should not be silently ignored",
                           category="result-ignore")
        elif t in ("assignment_statement", "short_var_declaration"):
            right = named(node.child_by_field_name("right"))
            # "a, b := f1(), f2()" cannot be matched against results without types.
            if len(right) != 1:
                return True
            func = resolver.resolve_call(right[0])
            if func is None:
                return True
            left = named(node.child_by_field_name("left"))
            for i in error_result_indices(func, resolver):
                if i >= len(left):
                    # Arity mismatch; the compiler reports that.
                    return True
                if is_blank(left[i]):
                    ctx.report(node, 0.8,
                               f"function '{ctx.name_of(func)}' returns an error, "
                               "generally it should not be intentionally ignored",
                               category="result-ignore")
                    return True
        return True

    ctx.walk(visit)


def lint_named_return(ctx: FileContext) -> None:
    def visit(node: Node) -> bool:
        if node.type not in ("function_declaration", "method_declaration"):
            return True
        i = 0
        for name, _ in result_positions(node):
            if name is None:
                continue
            ctx.report(node, 0.9, f'return value #{i}("{ctx.render(name)}") should not be named',
                       category="named-return")
            i += 1
        return True

    ctx.walk(visit)


# ============================================================
# ====================== RULE REGISTRY =======================
# ============================================================

@dataclass(frozen=True)
class RuleEntry:
    name: str
    run: Callable[[FileContext], None]
    enabled: Callable[[Config], bool]


def _flag(option: str) -> Callable[[Config], bool]:
    return lambda config: bool(getattr(config, option))


# Order matters only for the order problems come out in.
RULES: List[RuleEntry] = [
    RuleEntry("package-comment", lint_package_comment, _flag("enable_package_doc_check")),
    RuleEntry("dot-imports", lint_imports, _flag("enable_import_checks")),
    RuleEntry("blank-imports", lint_blank_imports, _flag("enable_import_checks")),
    RuleEntry("exported", lint_exported, _flag("enable_exported_doc_checks")),
    RuleEntry("names", lint_names, _flag("enable_naming_checks")),
    RuleEntry("var-decls", lint_var_decls, _flag("enable_var_decl_checks")),
    RuleEntry("elses", lint_elses, _flag("enable_else_checks")),
    RuleEntry("ranges", lint_ranges, _flag("enable_range_checks")),
    RuleEntry("errorf", lint_errorf, _flag("enable_error_checks")),
    RuleEntry("error-vars", lint_error_vars, _flag("enable_error_checks")),
    RuleEntry("error-strings", lint_error_strings, _flag("enable_error_checks")),
    RuleEntry("receivers", lint_receivers, _flag("enable_receiver_checks")),
    RuleEntry("inc-dec", lint_inc_dec, _flag("enable_inc_dec_checks")),
    RuleEntry("make-slice", lint_make_slice, _flag("enable_make_slice_checks")),
    RuleEntry("error-return", lint_error_return, _flag("enable_error_return_position_check")),
    RuleEntry("ignored-return", lint_ignored_return, _flag("enable_ignored_return_check")),
    RuleEntry("named-return", lint_named_return, _flag("enable_named_return_check")),
]

# CLI group name -> Config option.
RULE_GROUPS: Dict[str, str] = {
    "package-comment": "enable_package_doc_check",
    "imports": "enable_import_checks",
    "exported-doc": "enable_exported_doc_checks",
    "naming": "enable_naming_checks",
    "var-decls": "enable_var_decl_checks",
    "else-drop": "enable_else_checks",
    "range-loop": "enable_range_checks",
    "errors": "enable_error_checks",
    "receivers": "enable_receiver_checks",
    "inc-dec": "enable_inc_dec_checks",
    "make-slice": "enable_make_slice_checks",
    "error-return": "enable_error_return_position_check",
    "ignored-return": "enable_ignored_return_check",
    "named-return": "enable_named_return_check",
}


# ============================================================
# ======================= ENTRY POINTS =======================
# ============================================================

def lint(filename: str, config: Optional[Config], src: bytes) -> List[Problem]:
    """
    Lint one Go source file. Raises ParseError if src does not parse;
    otherwise returns the problems in the order the rules found them.
    """
    if config is None:
        config = Config()
    tree = parse_source(src, filename)
    ctx = FileContext.build(filename, src, tree, config)
    for rule in RULES:
        if rule.enabled(config):
            rule.run(ctx)
    return ctx.problems


class Linter:
    """
    Convenience front end holding a default Config. Each file is analysed
    on its own; nothing carries over between calls.
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()

    def lint(self, filename: str, src: bytes, config: Optional[Config] = None) -> List[Problem]:
        return lint(filename, config or self.config, src)

    def lint_files(
        self, paths: List[str], config: Optional[Config] = None
    ) -> Tuple[Dict[str, List[Problem]], Dict[str, str]]:
        """
        Lint each path independently. Returns (problems by path, failures by
        path); unreadable or unparsable files are reported on stderr and
        recorded as failures while the remaining files are still linted.
        """
        results: Dict[str, List[Problem]] = {}
        failures: Dict[str, str] = {}
        for path in paths:
            try:
                with open(path, "rb") as handle:
                    src = handle.read()
            except OSError as exc:
                sys.stderr.write(f"[gostyle] Could not read {path}: {exc}\n")
                failures[path] = str(exc)
                continue
            try:
                results[path] = self.lint(path, src, config)
            except ParseError as exc:
                sys.stderr.write(f"[gostyle] {exc}\n")
                failures[path] = str(exc)
        return results, failures


# ============================================================
# ==================== YAML CONFIG LOADING ===================
# ============================================================

def load_config_from_yaml(path: str, base: Optional[Config] = None) -> Config:
    """
    Load a Config from a YAML file. Options may sit at the top level or under
    a "gostyle:" key; anything not set keeps the value from base (or the
    defaults).
    """
    try:
        with open(path, "r", encoding="utf-8") as handle:
            doc = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {path}") from exc
    except OSError as exc:
        raise ConfigError(f"could not read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if doc is None:
        doc = {}
    if isinstance(doc, dict) and isinstance(doc.get("gostyle"), dict):
        doc = doc["gostyle"]
    if not isinstance(doc, dict):
        raise ConfigError(f"{path}: expected a mapping of options")

    return Config.from_mapping(doc, origin=path, base=base)


# ============================================================
# ===================== PROBLEM OUTPUT =======================
# ============================================================

def problem_to_json_obj(p: Problem) -> Dict[str, Any]:
    """
    Convert a Problem into a JSON-friendly dict with a stable field order.
    """
    return {
        "file": p.file,
        "line": p.position.line,
        "column": p.position.column,
        "offset": p.position.offset,
        "category": p.category,
        "confidence": p.confidence,
        "text": p.text,
        "link": p.link or None,
        "line_text": p.line_text,
        "tool": "gostyle",
        "version": __version__,
    }


def emit_problems_json(problems: List[Problem], out: Optional[str] = None) -> None:
    as_json = [problem_to_json_obj(p) for p in problems]
    text = json.dumps(as_json, indent=2, sort_keys=False)
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)


def format_problem_text(p: Problem) -> str:
    return f"{p.position}: {p.text}"


def emit_problems_text(problems: List[Problem], out: Optional[str] = None) -> None:
    text = "\n".join(format_problem_text(p) for p in problems)
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(text + ("\n" if text else ""))
    elif text:
        print(text)


# ============================================================
# ============================ CLI ===========================
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.
    Intended usage:
      gostyle lint --config gostyle.yaml --min-confidence 0.8 pkg/a.go pkg/b.go

    Exit status: 0 clean, 1 problems reported, 2 a file could not be read or parsed.
    """
    parser = argparse.ArgumentParser(
        prog="gostyle",
        description="gostyle: style convention checker for Go"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    lint_p = subparsers.add_parser(
        "lint",
        help="Lint one or more Go source files."
    )
    lint_p.add_argument(
        "--config",
        metavar="CONFIG_YAML",
        help="YAML file with checker options.",
        required=False,
    )
    lint_p.add_argument(
        "--min-confidence",
        type=float,
        metavar="FLOAT",
        help="Only report problems with at least this confidence.",
        required=False,
    )
    lint_p.add_argument(
        "--disable",
        action="append",
        choices=sorted(RULE_GROUPS),
        default=[],
        metavar="GROUP",
        help="Disable a rule group (repeatable): " + ", ".join(sorted(RULE_GROUPS)) + ".",
    )
    lint_p.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format.",
    )
    lint_p.add_argument(
        "--out",
        metavar="OUT_FILE",
        help="Write problems to this file instead of stdout.",
        required=False,
    )
    lint_p.add_argument(
        "files",
        nargs="+",
        help="Go source files to lint."
    )

    args = parser.parse_args(argv)

    if args.command == "lint":
        # 1. Build the config: file first, then command-line overrides.
        try:
            config = load_config_from_yaml(args.config) if args.config else Config()
            overrides: Dict[str, Any] = {RULE_GROUPS[group]: False for group in args.disable}
            if args.min_confidence is not None:
                overrides["min_confidence"] = _coerce_option(
                    "min_confidence", args.min_confidence, "--min-confidence"
                )
            config = replace(config, **overrides)
        except ConfigError as exc:
            sys.stderr.write(f"[gostyle] {exc}\n")
            return 2

        # 2. Lint every file on its own.
        results, failures = Linter(config).lint_files(args.files)

        # 3. Emit in input order.
        problems = [p for path in args.files for p in results.get(path, [])]
        if args.format == "json":
            emit_problems_json(problems, out=args.out)
        else:
            emit_problems_text(problems, out=args.out)

        if failures:
            return 2
        return 1 if problems else 0

    # unreachable if parser is correct
    return 1


if __name__ == "__main__":
    sys.exit(main())
