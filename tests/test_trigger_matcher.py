"""
Tests for the Beam `apply(...)` completion trigger.

Covers caret parameters, single-file Java resolution and the trigger
pattern itself. Sources mark the caret with <caret>.
"""

import os
import sys
import textwrap

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from beamcomplete.code_intelligence.java_resolver import JavaSymbolResolver
from beamcomplete.completion.parameters import (
    DUMMY_IDENTIFIER,
    CompletionParametersBuilder,
)
from beamcomplete.completion.patterns import apply_method_condition, is_after_apply_call


CARET = "<caret>"

HEADER = textwrap.dedent("""\
    package com.example;

    import org.apache.beam.sdk.Pipeline;
    import org.apache.beam.sdk.options.PipelineOptions;
    import org.apache.beam.sdk.transforms.Count;
    import org.apache.beam.sdk.transforms.Create;
    import org.apache.beam.sdk.values.PCollection;

""")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def in_main(body: str, header: str = HEADER) -> str:
    """Wrap statements in a class with a main method."""
    indented = textwrap.indent(textwrap.dedent(body), " " * 8)
    return (
        header
        + "public class WordCount {\n"
        + "    public static void main(String[] args) {\n"
        + indented
        + "    }\n"
        + "}\n"
    )


def build(source: str):
    """Build completion parameters for a source containing one <caret>."""
    offset = source.index(CARET)
    content = source.replace(CARET, "", 1)
    return CompletionParametersBuilder().build("WordCount.java", content, offset)


def triggers(source: str) -> bool:
    parameters = build(source)
    resolver = JavaSymbolResolver(parameters.parsed)
    return is_after_apply_call(parameters.position, resolver)


# ===========================================================================
# Completion parameters
# ===========================================================================

class TestCompletionParameters:
    def test_position_is_dummy_identifier(self):
        parameters = build(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(<caret>);
        """))
        assert parameters.position is not None
        assert parameters.position.type == "identifier"
        assert parameters.parsed.node_text(parameters.position) == DUMMY_IDENTIFIER
        assert parameters.prefix == ""

    def test_typed_prefix(self):
        parameters = build(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(Co<caret>);
        """))
        assert parameters.prefix == "Co"
        assert parameters.parsed.node_text(parameters.position) == "Co" + DUMMY_IDENTIFIER

    def test_code_to_complete_is_text_before_caret(self):
        source = in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(<caret>);
        """)
        parameters = build(source)
        assert parameters.code_to_complete == source[:source.index(CARET)]
        assert parameters.code_to_complete.endswith("p.apply(")
        assert DUMMY_IDENTIFIER not in parameters.original_text

    def test_offset_out_of_range_raises(self):
        with pytest.raises(ValueError):
            CompletionParametersBuilder().build("A.java", "class A {}", 99)
        with pytest.raises(ValueError):
            CompletionParametersBuilder().build("A.java", "class A {}", -1)

    def test_offset_for_line_and_character(self):
        content = "abc\ndefg\nhi"
        assert CompletionParametersBuilder.offset_for(content, 0, 0) == 0
        assert CompletionParametersBuilder.offset_for(content, 1, 2) == 6
        assert CompletionParametersBuilder.offset_for(content, 2, 2) == 11

    def test_offset_for_clamps(self):
        content = "abc\ndefg\nhi"
        # Past end of line -> end of line
        assert CompletionParametersBuilder.offset_for(content, 0, 50) == 3
        # Past last line -> last line
        assert CompletionParametersBuilder.offset_for(content, 10, 1) == 10

    def test_offset_for_negative_raises(self):
        with pytest.raises(ValueError):
            CompletionParametersBuilder.offset_for("abc", -1, 0)

    def test_build_at_matches_build(self):
        source = in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(<caret>);
        """)
        offset = source.index(CARET)
        content = source.replace(CARET, "", 1)
        line = content[:offset].count("\n")
        character = offset - (content.rfind("\n", 0, offset) + 1)

        parameters = CompletionParametersBuilder().build_at("WordCount.java", content, line, character)
        assert parameters.offset == offset

    def test_non_ascii_text_before_caret(self):
        parameters = build(in_main("""\
            String greeting = "héllo wörld";
            Pipeline p = Pipeline.create();
            p.apply(<caret>);
        """))
        assert parameters.parsed.node_text(parameters.position) == DUMMY_IDENTIFIER


# ===========================================================================
# Resolver
# ===========================================================================

class TestJavaSymbolResolver:
    def _resolver(self, source: str):
        parameters = build(source)
        return parameters, JavaSymbolResolver(parameters.parsed)

    def test_package_and_imports_parsed(self):
        parameters, _ = self._resolver(in_main("p.apply(<caret>);"))
        assert parameters.parsed.package == "com.example"
        paths = [imp.path for imp in parameters.parsed.imports]
        assert "org.apache.beam.sdk.Pipeline" in paths
        assert "org.apache.beam.sdk.values.PCollection" in paths

    def test_resolve_type_name_from_single_import(self):
        _, resolver = self._resolver(in_main("p.apply(<caret>);"))
        assert resolver.resolve_type_name("Pipeline") == "org.apache.beam.sdk.Pipeline"
        assert resolver.resolve_type_name("PCollection") == "org.apache.beam.sdk.values.PCollection"

    def test_resolve_type_name_local_class(self):
        _, resolver = self._resolver(in_main("p.apply(<caret>);"))
        assert resolver.resolve_type_name("WordCount") == "com.example.WordCount"

    def test_resolve_type_name_unknown(self):
        _, resolver = self._resolver(in_main("p.apply(<caret>);"))
        assert resolver.resolve_type_name("Nope") is None
        assert resolver.resolve_type_name("var") is None

    def test_resolve_type_name_wildcard_import(self):
        header = textwrap.dedent("""\
            package com.example;

            import org.apache.beam.sdk.values.*;

        """)
        _, resolver = self._resolver(in_main("x.apply(<caret>);", header=header))
        assert resolver.resolve_type_name("PCollection") == "org.apache.beam.sdk.values.PCollection"
        # Wildcards only resolve names the SDK catalog knows
        assert resolver.resolve_type_name("Whatever") is None

    def test_resolve_method_on_pipeline(self):
        parameters, resolver = self._resolver(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(<caret>);
        """))
        call = parameters.position.parent.parent
        method = resolver.resolve_method(call)
        assert method is not None
        assert method.name == "apply"
        assert method.containing_class == "org.apache.beam.sdk.Pipeline"
        assert method.return_type == "org.apache.beam.sdk.values.PCollection"

    def test_resolve_method_unknown_receiver(self):
        parameters, resolver = self._resolver(in_main("mystery.apply(<caret>);"))
        call = parameters.position.parent.parent
        assert resolver.resolve_method(call) is None

    def test_type_of_static_receiver(self):
        parameters, resolver = self._resolver(in_main("Pipeline.create().apply(<caret>);"))
        call = parameters.position.parent.parent
        receiver = call.child_by_field_name("object")
        resolved = resolver.type_of(receiver)
        assert resolved is not None
        assert resolved.qualified_name == "org.apache.beam.sdk.Pipeline"
        assert resolved.is_static is False

    def test_self_referencing_initializer_terminates(self):
        parameters, resolver = self._resolver(in_main("var a = a.apply(<caret>);"))
        call = parameters.position.parent.parent
        assert resolver.resolve_method(call) is None


# ===========================================================================
# Trigger pattern: matches
# ===========================================================================

class TestTriggerMatches:
    def test_pipeline_apply(self):
        assert triggers(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(<caret>);
        """))

    def test_pcollection_apply(self):
        assert triggers(in_main("""\
            Pipeline p = Pipeline.create();
            PCollection<String> words = p.apply(Create.of("a", "b"));
            words.apply(<caret>);
        """))

    def test_identifier_with_prefix(self):
        assert triggers(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(Co<caret>);
        """))

    def test_second_argument(self):
        assert triggers(in_main("""\
            Pipeline p = Pipeline.create();
            PCollection<String> words = p.apply(Create.of("a"));
            words.apply("CountWords", <caret>);
        """))

    def test_chained_apply(self):
        assert triggers(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(Create.of("a")).apply(<caret>);
        """))

    def test_static_factory_receiver(self):
        assert triggers(in_main("Pipeline.create().apply(<caret>);"))

    def test_var_declaration(self):
        assert triggers(in_main("""\
            var p = Pipeline.create();
            p.apply(<caret>);
        """))

    def test_fully_qualified_type(self):
        header = "package com.example;\n\n"
        assert triggers(in_main("""\
            org.apache.beam.sdk.Pipeline p = org.apache.beam.sdk.Pipeline.create();
            p.apply(<caret>);
        """, header=header))

    def test_wildcard_import(self):
        header = textwrap.dedent("""\
            package com.example;

            import org.apache.beam.sdk.Pipeline;
            import org.apache.beam.sdk.values.*;

        """)
        assert triggers(in_main("""\
            Pipeline p = Pipeline.create();
            PCollection<String> lines = p.apply(null);
            lines.apply(<caret>);
        """, header=header))

    def test_method_parameter(self):
        source = HEADER + textwrap.dedent("""\
            public class CountWords {
                public PCollection<String> expand(PCollection<String> input) {
                    return input.apply(<caret>);
                }
            }
        """)
        assert triggers(source)

    def test_field_and_this_field(self):
        source = HEADER + textwrap.dedent("""\
            public class Job {
                private final Pipeline pipeline;

                Job(Pipeline pipeline) {
                    this.pipeline = pipeline;
                }

                void build() {
                    pipeline.apply(<caret>);
                }
            }
        """)
        assert triggers(source)
        assert triggers(source.replace("pipeline.apply(<caret>)", "this.pipeline.apply(<caret>)"))

    def test_cast_receiver(self):
        assert triggers(in_main("""\
            Object o = Pipeline.create();
            ((Pipeline) o).apply(<caret>);
        """))


# ===========================================================================
# Trigger pattern: argument list still being typed
# ===========================================================================

class TestUnclosedArgumentList:
    def test_open_paren(self):
        assert triggers(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(<caret>
        """))

    def test_open_paren_with_prefix(self):
        source = in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(Co<caret>
        """)
        parameters = build(source)

        assert parameters.prefix == "Co"
        assert parameters.code_to_complete.endswith("p.apply(Co")
        assert triggers(source)

    def test_open_second_argument(self):
        assert triggers(in_main("""\
            Pipeline p = Pipeline.create();
            PCollection<String> words = p.apply(Create.of("a"));
            words.apply("CountWords", Co<caret>
        """))

    def test_open_paren_unresolved_receiver(self):
        assert not triggers(in_main("""\
            q.apply(<caret>
        """))

    def test_closed_paren_parse_is_kept(self):
        parameters = build(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(<caret>);
        """))
        assert parameters.parsed.text.count(DUMMY_IDENTIFIER + ");") == 1
        assert DUMMY_IDENTIFIER + "));" not in parameters.parsed.text


# ===========================================================================
# Trigger pattern: non-matches
# ===========================================================================

class TestTriggerRejects:
    def test_apply_on_unrelated_local_class(self):
        source = HEADER + textwrap.dedent("""\
            public class Registry {
                Object apply(Object value) {
                    return value;
                }

                void use(Registry registry) {
                    registry.apply(<caret>);
                }
            }
        """)
        assert not triggers(source)

    def test_apply_on_other_beam_type(self):
        # PBegin declares its own apply
        assert not triggers(in_main("""\
            Pipeline p = Pipeline.create();
            p.begin().apply(<caret>);
        """))

    def test_unresolved_receiver(self):
        assert not triggers(in_main("somethingUnknown.apply(<caret>);"))

    def test_unimported_type(self):
        header = "package com.example;\n\n"
        assert not triggers(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(<caret>);
        """, header=header))

    def test_same_named_local_pipeline_class(self):
        source = "package com.example;\n\n" + textwrap.dedent("""\
            class Pipeline {
                void apply(Object o) {
                }
            }

            public class Main {
                void run(Pipeline p) {
                    p.apply(<caret>);
                }
            }
        """)
        assert not triggers(source)

    def test_other_method_name(self):
        assert not triggers(in_main("""\
            Pipeline p = Pipeline.create();
            p.run(<caret>);
        """))

    def test_nested_call_argument(self):
        # The identifier belongs to Count.perElement(...), not to apply(...)
        assert not triggers(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(Count.perElement(<caret>));
        """))

    def test_identifier_outside_argument_list(self):
        assert not triggers(in_main("""\
            Pipeline p = Pipeline.create();
            p.apply(Create.of("a"));
            int size = count<caret>;
        """))

    def test_top_level_position(self):
        source = HEADER + "public class A {\n    int x = y<caret>;\n}\n"
        assert not triggers(source)

    def test_caret_in_comment(self):
        assert not triggers(in_main("""\
            Pipeline p = Pipeline.create();
            // p.apply(<caret>)
        """))

    def test_apply_condition_rejects_non_call(self):
        parameters = build(in_main("p.apply(<caret>);"))
        resolver = JavaSymbolResolver(parameters.parsed)
        assert apply_method_condition(None, resolver) is False
        assert apply_method_condition(parameters.position, resolver) is False

    def test_none_position(self):
        parameters = build(in_main("p.apply(<caret>);"))
        assert is_after_apply_call(None, JavaSymbolResolver(parameters.parsed)) is False
