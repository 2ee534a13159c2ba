"""
Election Manifest
=================
Describes the contests and their options. Its canonical bytes feed the
manifest hash H_M, so the encoding is the canonical JSON form.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from errors import InvalidParameterError, SerializationError
from utils.serialization import CanonicalSerializable, require, require_list

logger = logging.getLogger(__name__)


@dataclass
class ContestOption:
    """A selectable option within a contest"""
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {'label': self.label}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContestOption':
        return cls(label=require(data, 'label', str))


@dataclass
class Contest:
    """A contest with its options and selection limit"""
    label: str
    options: List[ContestOption] = field(default_factory=list)
    selection_limit: int = 1

    def __post_init__(self):
        if not self.options:
            raise InvalidParameterError(f"Contest '{self.label}' has no options")
        if self.selection_limit < 1:
            raise InvalidParameterError(
                f"Contest '{self.label}' selection limit must be positive, got {self.selection_limit}")
        if self.selection_limit > len(self.options):
            raise InvalidParameterError(
                f"Contest '{self.label}' selection limit {self.selection_limit} exceeds its {len(self.options)} options")

    @property
    def num_options(self) -> int:
        return len(self.options)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'selection_limit': self.selection_limit,
            'options': [option.to_dict() for option in self.options],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Contest':
        options = [ContestOption.from_dict(o)
                   for o in require_list(data, 'options')]
        try:
            return cls(label=require(data, 'label', str),
                       options=options,
                       selection_limit=require(data, 'selection_limit', int))
        except InvalidParameterError as e:
            raise SerializationError(str(e)) from e


@dataclass
class ElectionManifest(CanonicalSerializable):
    """The list of contests, indexed from 1 in manifest order"""
    label: str
    contests: List[Contest]

    def __post_init__(self):
        if not self.contests:
            raise InvalidParameterError(f"Election manifest '{self.label}' has no contests")

    def get_contest(self, contest_index: int) -> Contest:
        """Contest by 1-based index"""
        if not 1 <= contest_index <= len(self.contests):
            raise InvalidParameterError(
                f"Contest index {contest_index} does not exist in the election manifest")
        return self.contests[contest_index - 1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'contests': [contest.to_dict() for contest in self.contests],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ElectionManifest':
        contests = [Contest.from_dict(c) for c in require_list(data, 'contests')]
        try:
            return cls(label=require(data, 'label', str), contests=contests)
        except InvalidParameterError as e:
            raise SerializationError(str(e)) from e
