"""
ER Wait Sampler - periodic fetch-transform-append of emergency room wait metrics
"""

from .errors import SamplerError, NetworkError, HttpStatusError, ParseError, AuthError, ConfigError
from .models import Sample, TIMESTAMP_FORMAT
from .sampler import Sampler

__all__ = [
    'Sample',
    'Sampler',
    'TIMESTAMP_FORMAT',
    'SamplerError',
    'NetworkError',
    'HttpStatusError',
    'ParseError',
    'AuthError',
    'ConfigError',
]
