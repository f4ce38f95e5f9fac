from __future__ import annotations

from enum import Enum, unique

@unique
class Mode(Enum):
    encrypt = 'encrypt'
    decrypt = 'decrypt'


class FeistelError(ValueError):
    pass


class FormatError(FeistelError):
    """block or key is not a 16 character binary string"""


class InvalidModeError(FeistelError):
    """mode is neither 'encrypt' nor 'decrypt'"""
