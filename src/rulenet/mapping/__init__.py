"""
Gene identifier mapping and resolution.

Modules:
    id_mapping: Mapping facilities (mygene.info, annotation tables)
    resolver: Total, order-preserving resolution with namespace fallbacks
"""

from rulenet.mapping.id_mapping import (
    LookupUnavailableError,
    IDMapper,
    MyGeneInfoMapper,
    AnnotationTableMapper,
)
from rulenet.mapping.resolver import (
    DEFAULT_FALLBACK_CHAINS,
    ResolutionReport,
    IdentifierResolver,
)

__all__ = [
    'LookupUnavailableError',
    'IDMapper',
    'MyGeneInfoMapper',
    'AnnotationTableMapper',
    'DEFAULT_FALLBACK_CHAINS',
    'ResolutionReport',
    'IdentifierResolver',
]
