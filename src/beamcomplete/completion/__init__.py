"""
beamcomplete Completion Module

Triggers model completions for Apache Beam `apply(...)` arguments.
"""

from .contributor import BeamCompletionContributor
from .parameters import CompletionParameters, CompletionParametersBuilder
from .patterns import apply_method_condition, is_after_apply_call
from .results import CompletionResultSet, LookupElement
from .service import CompletionService, create_service
from .session import CompletionSession

__all__ = [
    'BeamCompletionContributor',
    'CompletionParameters',
    'CompletionParametersBuilder',
    'CompletionResultSet',
    'CompletionService',
    'CompletionSession',
    'LookupElement',
    'apply_method_condition',
    'create_service',
    'is_after_apply_call',
]
