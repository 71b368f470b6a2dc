"""
Property Indexer - Core Module

Foundations shared by every other package:
- Error hierarchy
- Retry policy
- Content identifier codec

Usage:
    from core import derive_content_id, IndexerError

    cid = derive_content_id(root_hash)
"""

from core.cid import (
    CID_LENGTH,
    HASH_LENGTH,
    derive_content_id,
    encode_base32,
    from_hex,
    to_hex,
)
from core.errors import (
    ErrorContext,
    ErrorSeverity,
    IndexerCodecError,
    IndexerConfigError,
    IndexerError,
    IndexerFetchError,
    IndexerPipelineError,
    IndexerStoreError,
    IndexerValidationError,
    classify_error,
)
from core.resilience import RetryConfig, RetryPolicy

__all__ = [
    # Codec
    "CID_LENGTH",
    "HASH_LENGTH",
    "derive_content_id",
    "encode_base32",
    "from_hex",
    "to_hex",
    # Errors
    "ErrorContext",
    "ErrorSeverity",
    "IndexerCodecError",
    "IndexerConfigError",
    "IndexerError",
    "IndexerFetchError",
    "IndexerPipelineError",
    "IndexerStoreError",
    "IndexerValidationError",
    "classify_error",
    # Resilience
    "RetryConfig",
    "RetryPolicy",
]
