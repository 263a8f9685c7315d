"""
Beam module - Static knowledge about the Apache Beam Java SDK.
"""

from beamcomplete.beam.sdk import (
    APPLY_RECEIVER_TYPES,
    BEAM_JAVA_SDK_TRANSFORMS,
    BEAM_SDK_TYPES,
    BeamType,
    is_apply_receiver,
    match_transforms,
)

__all__ = [
    "APPLY_RECEIVER_TYPES",
    "BEAM_JAVA_SDK_TRANSFORMS",
    "BEAM_SDK_TYPES",
    "BeamType",
    "is_apply_receiver",
    "match_transforms",
]
