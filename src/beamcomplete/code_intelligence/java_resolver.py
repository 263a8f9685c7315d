"""
Best-effort symbol resolution over a single parsed Java file.

Answers the two questions the completion trigger needs:
- what is the static type of this expression?
- which class declares the method this call invokes?

Resolution only looks at the current file and the Beam SDK catalog.
Anything it cannot prove resolves to None, never to a guess.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from beamcomplete.beam.sdk import BEAM_SDK_TYPES
from beamcomplete.code_intelligence.treesitter_parser import ParsedSource


CLASS_LIKE_TYPES = (
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
)

# Statement containers whose earlier statements are visible to later ones
BLOCK_TYPES = ("block", "constructor_body", "switch_block_statement_group", "program")

# Recursion guard for self-referencing initializers (`var a = a.apply(x)`)
MAX_RESOLVE_DEPTH = 32


@dataclass(frozen=True)
class ResolvedType:
    """
    Static type of an expression.

    ``is_static`` marks a class name used as a receiver (``Pipeline.create()``)
    rather than an instance of that class.
    """
    qualified_name: str
    is_static: bool = False


@dataclass(frozen=True)
class ResolvedMethod:
    """Declaration a method call resolves to."""
    name: str
    containing_class: str
    return_type: Optional[str] = None


@dataclass(frozen=True)
class VariableDeclaration:
    type_node: object
    value_node: Optional[object] = None


class JavaSymbolResolver:
    """
    Resolve types and method declarations in one compilation unit.

    Usage:
        resolver = JavaSymbolResolver(parsed)
        method = resolver.resolve_method(call_node)
        if method:
            print(method.containing_class)
    """

    def __init__(self, parsed: ParsedSource):
        self.parsed = parsed
        self._local_classes: Dict[str, object] = {}       # qualified name -> declaration
        self._local_simple_names: Dict[str, str] = {}     # simple name -> qualified name
        self._single_imports: Dict[str, str] = {}         # simple name -> qualified name
        self._wildcard_packages: List[str] = []

        for imp in parsed.imports:
            if imp.is_static:
                continue
            if imp.is_wildcard:
                self._wildcard_packages.append(imp.path)
            else:
                self._single_imports[imp.simple_name] = imp.path

        self._index_local_classes()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def resolve_method(self, call, depth: int = 0) -> Optional[ResolvedMethod]:
        """
        Resolve a ``method_invocation`` node to its declaration.

        Returns:
            ResolvedMethod, or None when the receiver or method is unknown
        """
        if call is None or call.type != "method_invocation" or depth > MAX_RESOLVE_DEPTH:
            return None

        name_node = call.child_by_field_name("name")
        if name_node is None:
            return None
        name = self._text(name_node)

        receiver = call.child_by_field_name("object")
        if receiver is None:
            return self._resolve_unqualified_call(call, name, depth)

        receiver_type = self.type_of(receiver, depth + 1)
        if receiver_type is None:
            return None

        return self._find_method(receiver_type, name, depth)

    def type_of(self, expr, depth: int = 0) -> Optional[ResolvedType]:
        """Static type of an expression node, or None if unknown."""
        if expr is None or depth > MAX_RESOLVE_DEPTH:
            return None

        kind = expr.type

        if kind == "identifier":
            return self._type_of_identifier(expr, depth)

        if kind == "method_invocation":
            method = self.resolve_method(expr, depth + 1)
            if method and method.return_type:
                return ResolvedType(method.return_type)
            return None

        if kind == "field_access":
            return self._type_of_field_access(expr, depth)

        if kind == "object_creation_expression":
            qualified = self.resolve_type_node(expr.child_by_field_name("type"))
            return ResolvedType(qualified) if qualified else None

        if kind == "cast_expression":
            qualified = self.resolve_type_node(expr.child_by_field_name("type"))
            return ResolvedType(qualified) if qualified else None

        if kind == "parenthesized_expression":
            inner = expr.named_children
            return self.type_of(inner[0], depth + 1) if inner else None

        if kind == "this":
            enclosing = self._enclosing_class(expr)
            if enclosing is not None:
                return ResolvedType(self._class_qualified_name(enclosing))
            return None

        return None

    def resolve_type_node(self, type_node) -> Optional[str]:
        """Qualified name for a type node; generics erased, primitives/arrays -> None."""
        if type_node is None:
            return None

        kind = type_node.type
        if kind == "generic_type":
            for child in type_node.named_children:
                if child.type in ("type_identifier", "scoped_type_identifier"):
                    return self.resolve_type_node(child)
            return None

        if kind == "type_identifier":
            return self.resolve_type_name(self._text(type_node))

        if kind == "scoped_type_identifier":
            return self.resolve_type_name("".join(self._text(type_node).split()))

        return None

    def resolve_type_name(self, name: str) -> Optional[str]:
        """
        Resolve a simple or qualified type name as written in the file.

        Order: qualified names as written, classes declared in this file,
        single-type imports, wildcard imports (checked against the catalog).
        """
        if not name or name == "var":
            return None

        if "." in name:
            return name

        if name in self._local_simple_names:
            return self._local_simple_names[name]

        if name in self._single_imports:
            return self._single_imports[name]

        for package in self._wildcard_packages:
            candidate = f"{package}.{name}"
            if candidate in BEAM_SDK_TYPES:
                return candidate

        return None

    # =========================================================================
    # METHODS
    # =========================================================================

    def _find_method(self, receiver: ResolvedType, name: str, depth: int) -> Optional[ResolvedMethod]:
        beam_type = BEAM_SDK_TYPES.get(receiver.qualified_name)
        if beam_type is not None:
            methods = beam_type.static_methods if receiver.is_static else beam_type.methods
            if name in methods:
                return ResolvedMethod(name, beam_type.qualified_name, methods[name])
            return None

        class_node = self._local_classes.get(receiver.qualified_name)
        if class_node is not None:
            return self._method_in_class(class_node, name)

        return None

    def _resolve_unqualified_call(self, call, name: str, depth: int) -> Optional[ResolvedMethod]:
        node = call.parent
        while node is not None:
            if node.type in CLASS_LIKE_TYPES:
                method = self._method_in_class(node, name)
                if method is not None:
                    return method
            node = node.parent
        return None

    def _method_in_class(self, class_node, name: str) -> Optional[ResolvedMethod]:
        for member in self._class_members(class_node):
            if member.type != "method_declaration":
                continue
            name_node = member.child_by_field_name("name")
            if name_node is not None and self._text(name_node) == name:
                return_type = self.resolve_type_node(member.child_by_field_name("type"))
                return ResolvedMethod(name, self._class_qualified_name(class_node), return_type)
        return None

    # =========================================================================
    # EXPRESSIONS
    # =========================================================================

    def _type_of_identifier(self, ident, depth: int) -> Optional[ResolvedType]:
        name = self._text(ident)

        declaration = self._lookup_variable(ident, name)
        if declaration is not None:
            return self._type_of_declaration(declaration, depth)

        # Not a variable in scope: maybe a class used as a static receiver
        qualified = self.resolve_type_name(name)
        if qualified:
            return ResolvedType(qualified, is_static=True)
        return None

    def _type_of_field_access(self, expr, depth: int) -> Optional[ResolvedType]:
        target = expr.child_by_field_name("object")
        field_node = expr.child_by_field_name("field")
        if target is None or field_node is None:
            return None

        field_name = self._text(field_node)

        if target.type == "this":
            enclosing = self._enclosing_class(expr)
            if enclosing is None:
                return None
            declaration = self._field_in_class(enclosing, field_name)
            return self._type_of_declaration(declaration, depth) if declaration else None

        # Fully qualified class name used as a static receiver
        written = "".join(self._text(expr).split())
        if written in BEAM_SDK_TYPES or written in self._local_classes:
            return ResolvedType(written, is_static=True)

        owner = self.type_of(target, depth + 1)
        if owner is None:
            return None
        class_node = self._local_classes.get(owner.qualified_name)
        if class_node is None:
            return None
        declaration = self._field_in_class(class_node, field_name)
        return self._type_of_declaration(declaration, depth) if declaration else None

    def _type_of_declaration(self, declaration: VariableDeclaration, depth: int) -> Optional[ResolvedType]:
        type_node = declaration.type_node
        if type_node is not None and self._text(type_node) == "var":
            return self.type_of(declaration.value_node, depth + 1)

        qualified = self.resolve_type_node(type_node)
        return ResolvedType(qualified) if qualified else None

    # =========================================================================
    # SCOPES
    # =========================================================================

    def _lookup_variable(self, usage, name: str) -> Optional[VariableDeclaration]:
        """Walk enclosing scopes outward looking for a declaration of ``name``."""
        before = usage.start_byte
        node = usage.parent
        while node is not None:
            found = self._declared_in(node, name, before)
            if found is not None:
                return found
            node = node.parent
        return None

    def _declared_in(self, scope, name: str, before: int) -> Optional[VariableDeclaration]:
        kind = scope.type

        if kind in BLOCK_TYPES:
            for statement in scope.named_children:
                if statement.start_byte >= before:
                    break
                if statement.type == "local_variable_declaration":
                    found = self._match_declarators(statement, name)
                    if found is not None:
                        return found
            return None

        if kind in ("method_declaration", "constructor_declaration"):
            return self._match_parameters(scope.child_by_field_name("parameters"), name)

        if kind == "lambda_expression":
            parameters = scope.child_by_field_name("parameters")
            if parameters is None:
                return None
            if parameters.type == "formal_parameters":
                return self._match_parameters(parameters, name)
            # Untyped lambda parameters shadow outer names with an unknown type
            untyped = [parameters] if parameters.type == "identifier" else parameters.named_children
            if any(self._text(p) == name for p in untyped):
                return VariableDeclaration(None)
            return None

        if kind == "enhanced_for_statement":
            name_node = scope.child_by_field_name("name")
            if name_node is not None and self._text(name_node) == name:
                return VariableDeclaration(scope.child_by_field_name("type"))
            return None

        if kind == "for_statement":
            for init in scope.children_by_field_name("init"):
                if init.type == "local_variable_declaration":
                    found = self._match_declarators(init, name)
                    if found is not None:
                        return found
            return None

        if kind == "catch_clause":
            for child in scope.named_children:
                if child.type != "catch_formal_parameter":
                    continue
                name_node = child.child_by_field_name("name")
                if name_node is not None and self._text(name_node) == name:
                    catch_type = next((c for c in child.named_children if c.type == "catch_type"), None)
                    first = catch_type.named_children[0] if catch_type and catch_type.named_children else None
                    return VariableDeclaration(first)
            return None

        if kind == "try_with_resources_statement":
            resources = scope.child_by_field_name("resources")
            if resources is None:
                return None
            for resource in resources.named_children:
                if resource.type != "resource" or resource.start_byte >= before:
                    continue
                name_node = resource.child_by_field_name("name")
                if name_node is not None and self._text(name_node) == name:
                    return VariableDeclaration(
                        resource.child_by_field_name("type"),
                        resource.child_by_field_name("value"),
                    )
            return None

        if kind in CLASS_LIKE_TYPES:
            return self._field_in_class(scope, name)

        return None

    def _match_declarators(self, declaration, name: str) -> Optional[VariableDeclaration]:
        type_node = declaration.child_by_field_name("type")
        for declarator in declaration.children_by_field_name("declarator"):
            name_node = declarator.child_by_field_name("name")
            if name_node is not None and self._text(name_node) == name:
                return VariableDeclaration(type_node, declarator.child_by_field_name("value"))
        return None

    def _match_parameters(self, parameters, name: str) -> Optional[VariableDeclaration]:
        if parameters is None:
            return None
        for param in parameters.named_children:
            if param.type == "formal_parameter":
                name_node = param.child_by_field_name("name")
                if name_node is not None and self._text(name_node) == name:
                    return VariableDeclaration(param.child_by_field_name("type"))
            elif param.type == "spread_parameter":
                # Varargs are arrays; the element type never receives `apply`
                continue
        return None

    def _field_in_class(self, class_node, name: str) -> Optional[VariableDeclaration]:
        for member in self._class_members(class_node):
            if member.type == "field_declaration":
                found = self._match_declarators(member, name)
                if found is not None:
                    return found
        return None

    # =========================================================================
    # CLASSES
    # =========================================================================

    def _index_local_classes(self) -> None:
        stack = [self.parsed.root]
        while stack:
            node = stack.pop()
            if node.type in CLASS_LIKE_TYPES:
                name_node = node.child_by_field_name("name")
                if name_node is not None:
                    qualified = self._class_qualified_name(node)
                    self._local_classes[qualified] = node
                    self._local_simple_names.setdefault(self._text(name_node), qualified)
            stack.extend(reversed(node.named_children))

    def _class_qualified_name(self, class_node) -> str:
        names = []
        node = class_node
        while node is not None:
            if node.type in CLASS_LIKE_TYPES:
                name_node = node.child_by_field_name("name")
                if name_node is not None:
                    names.append(self._text(name_node))
            node = node.parent
        names.reverse()
        if self.parsed.package:
            names.insert(0, self.parsed.package)
        return ".".join(names)

    def _class_members(self, class_node) -> list:
        body = class_node.child_by_field_name("body")
        if body is None:
            return []
        members = []
        for child in body.named_children:
            if child.type == "enum_body_declarations":
                members.extend(child.named_children)
            else:
                members.append(child)
        return members

    def _enclosing_class(self, node):
        node = node.parent
        while node is not None:
            if node.type in CLASS_LIKE_TYPES:
                return node
            node = node.parent
        return None

    def _text(self, node) -> str:
        return self.parsed.node_text(node)
