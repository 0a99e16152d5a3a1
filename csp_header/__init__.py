"""
csp_header - Content-Security-Policy parser, model and serializer
"""

__version__ = "0.1.0"

from csp_header.model.source import (
    HashAlgorithm,
    HashSource,
    HostSource,
    KeywordSource,
    NonceSource,
    OpaqueSource,
    SchemeSource,
    Source,
    SourceValue,
    classify,
    generate_nonce,
)
from csp_header.model.directive import Directive, DirectiveName, parse_directive
from csp_header.model.policy import Policy
from csp_header.headers import HEADER_NAMES, apply_policy, find_policy_header

__all__ = [
    'Directive', 'DirectiveName', 'HEADER_NAMES', 'HashAlgorithm', 'HashSource',
    'HostSource', 'KeywordSource', 'NonceSource', 'OpaqueSource', 'Policy',
    'SchemeSource', 'Source', 'SourceValue', 'apply_policy', 'classify',
    'find_policy_header', 'generate_nonce', 'parse_directive',
]
