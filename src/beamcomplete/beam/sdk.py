"""
Apache Beam Java SDK catalog.

Static knowledge about the Beam SDK types that show up while building a
pipeline: which methods they declare and what those methods return. The
resolver only needs enough of the SDK surface to follow a chain like
``Pipeline.create(options).apply(...).apply(...)`` back to its receiver.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


PIPELINE = "org.apache.beam.sdk.Pipeline"
PCOLLECTION = "org.apache.beam.sdk.values.PCollection"
PBEGIN = "org.apache.beam.sdk.values.PBegin"
PCOLLECTION_TUPLE = "org.apache.beam.sdk.values.PCollectionTuple"
PCOLLECTION_LIST = "org.apache.beam.sdk.values.PCollectionList"
PDONE = "org.apache.beam.sdk.values.PDone"
PIPELINE_RESULT = "org.apache.beam.sdk.PipelineResult"

# Receivers of `apply(...)` whose argument position triggers a completion
APPLY_RECEIVER_TYPES = frozenset({PIPELINE, PCOLLECTION})

# Transforms shipped with the Beam Java SDK
BEAM_JAVA_SDK_TRANSFORMS = (
    "Filter", "FlatMapElements", "Keys", "KvSwap", "MapElements", "ParDo",
    "Partition", "Regex", "Reify", "ToString", "WithKeys", "WithTimestamps",
    "Values", "ApproximateQuantiles", "ApproximateUnique", "CoGroupByKey", "Combine",
    "CombineWithContext", "Count", "Distinct", "GroupByKey", "GroupIntoBatches",
    "HllCount", "Latest", "Max", "Mean", "Min", "Sample", "Sum", "Top",
    "Create", "Flatten", "PAssert", "View", "Window",
)


@dataclass(frozen=True)
class BeamType:
    """
    A Beam SDK class as seen by the resolver.

    ``methods`` and ``static_methods`` map a method name to the qualified
    name of its return type (None when the return type is not modelled).
    """
    qualified_name: str
    methods: Dict[str, Optional[str]] = field(default_factory=dict)
    static_methods: Dict[str, Optional[str]] = field(default_factory=dict)


BEAM_SDK_TYPES: Dict[str, BeamType] = {
    PIPELINE: BeamType(
        qualified_name=PIPELINE,
        methods={
            # Pipeline.apply returns OutputT; in practice a PCollection
            "apply": PCOLLECTION,
            "begin": PBEGIN,
            "run": PIPELINE_RESULT,
            "getOptions": None,
            "getCoderRegistry": None,
            "getSchemaRegistry": None,
        },
        static_methods={
            "create": PIPELINE,
        },
    ),
    PCOLLECTION: BeamType(
        qualified_name=PCOLLECTION,
        methods={
            "apply": PCOLLECTION,
            "setCoder": PCOLLECTION,
            "setName": PCOLLECTION,
            "setRowSchema": PCOLLECTION,
            "setSchema": PCOLLECTION,
            "setTypeDescriptor": PCOLLECTION,
            "setWindowingStrategyInternal": PCOLLECTION,
            "getPipeline": PIPELINE,
            "getCoder": None,
            "getName": None,
        },
    ),
    PBEGIN: BeamType(
        qualified_name=PBEGIN,
        methods={
            "apply": PCOLLECTION,
            "getPipeline": PIPELINE,
        },
        static_methods={
            "in": PBEGIN,
        },
    ),
    PCOLLECTION_TUPLE: BeamType(
        qualified_name=PCOLLECTION_TUPLE,
        methods={
            "apply": PCOLLECTION,
            "and": PCOLLECTION_TUPLE,
            "get": PCOLLECTION,
            "has": None,
            "getPipeline": PIPELINE,
        },
        static_methods={
            "of": PCOLLECTION_TUPLE,
            "empty": PCOLLECTION_TUPLE,
        },
    ),
    PCOLLECTION_LIST: BeamType(
        qualified_name=PCOLLECTION_LIST,
        methods={
            "apply": PCOLLECTION,
            "and": PCOLLECTION_LIST,
            "get": PCOLLECTION,
            "size": None,
            "getPipeline": PIPELINE,
        },
        static_methods={
            "of": PCOLLECTION_LIST,
            "empty": PCOLLECTION_LIST,
        },
    ),
    PDONE: BeamType(
        qualified_name=PDONE,
        methods={
            "getPipeline": PIPELINE,
        },
        static_methods={
            "in": PDONE,
        },
    ),
}


def is_apply_receiver(qualified_name: Optional[str]) -> bool:
    """True if `apply` declared on this class triggers a completion."""
    return qualified_name in APPLY_RECEIVER_TYPES


def match_transforms(prefix: str = "") -> list:
    """
    Transform names starting with ``prefix`` (case-sensitive, like Java).

    An empty prefix returns the whole list in SDK order.
    """
    return [name for name in BEAM_JAVA_SDK_TRANSFORMS if name.startswith(prefix)]
