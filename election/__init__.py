"""Election manifest and election parameters."""

from .manifest import ElectionManifest, Contest, ContestOption
from .parameters import VaryingParameters, ElectionParameters, MAX_GUARDIANS

__all__ = [
    'ElectionManifest',
    'Contest',
    'ContestOption',
    'VaryingParameters',
    'ElectionParameters',
    'MAX_GUARDIANS'
]
