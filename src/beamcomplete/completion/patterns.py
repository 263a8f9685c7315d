"""
Completion trigger patterns.

A completion is offered when the caret sits on an identifier that is an
argument of ``apply(...)`` called on a Beam ``Pipeline`` or ``PCollection``:

    pipeline.apply(|)
    lines.apply("Count", Co|)

Both predicates are pure: unresolved symbols simply do not match.
"""

from beamcomplete.beam.sdk import is_apply_receiver
from beamcomplete.code_intelligence.java_resolver import JavaSymbolResolver


APPLY_METHOD_NAME = "apply"


def apply_method_condition(call, resolver: JavaSymbolResolver) -> bool:
    """
    Match ``method_invocation`` nodes calling ``apply`` declared on
    ``org.apache.beam.sdk.Pipeline`` or ``org.apache.beam.sdk.values.PCollection``.
    """
    if call is None or call.type != "method_invocation":
        return False

    name_node = call.child_by_field_name("name")
    if name_node is None or resolver.parsed.node_text(name_node) != APPLY_METHOD_NAME:
        return False

    method = resolver.resolve_method(call)
    if method is None:
        return False

    return is_apply_receiver(method.containing_class)


def is_after_apply_call(position, resolver: JavaSymbolResolver) -> bool:
    """
    Match an identifier sitting directly in the argument list of a call
    accepted by ``apply_method_condition``.
    """
    if position is None or position.type != "identifier":
        return False

    argument_list = position.parent
    if argument_list is None or argument_list.type != "argument_list":
        return False

    return apply_method_condition(argument_list.parent, resolver)
