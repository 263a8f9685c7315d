"""
Completion result collection.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional


SOURCE_INFERENCE = "inference"
SOURCE_TRANSFORM = "transform"


@dataclass(frozen=True)
class LookupElement:
    """A single completion item."""
    lookup_string: str
    source: str = SOURCE_INFERENCE   # 'inference' or 'transform'
    type_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.lookup_string,
            'source': self.source,
            'type_text': self.type_text,
        }


class CompletionResultSet:
    """
    Collects completion items for one request.

    Transform names are filtered by the identifier prefix typed before the
    caret. Inference items are continuations of the code at the caret and
    are kept as-is.
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix
        self._elements: List[LookupElement] = []

    def add_element(self, element: LookupElement) -> bool:
        """
        Add an item unless it is filtered out or already present.

        Returns:
            True if the item was added
        """
        if element.source == SOURCE_TRANSFORM and not element.lookup_string.startswith(self.prefix):
            return False
        if any(e.lookup_string == element.lookup_string for e in self._elements):
            return False
        self._elements.append(element)
        return True

    def add_all(self, elements) -> int:
        return sum(1 for element in elements if self.add_element(element))

    @property
    def elements(self) -> List[LookupElement]:
        return list(self._elements)

    def to_list(self) -> List[Dict[str, Any]]:
        return [element.to_dict() for element in self._elements]

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[LookupElement]:
        return iter(list(self._elements))
