"""ingestkit-unnest -- Extract EML messages from nested ZIP/EML containers.

Re-exports all public types: router, engine, config, models, errors,
extraction path tracker, classifier helpers, and output components.
"""

from ingestkit_unnest.classifier import (
    classify,
    make_ignorable_text_predicate,
    order_for_traversal,
)
from ingestkit_unnest.config import UnnestConfig
from ingestkit_unnest.engine import ExtractionEngine
from ingestkit_unnest.errors import (
    ErrorCode,
    IngestError,
    InputNotFound,
    InvalidFormatPath,
    IoFailure,
    MessageParseFailure,
    OutputLimitExceeded,
    PathInvariantViolation,
    UnnestException,
    UnsupportedFormatTag,
)
from ingestkit_unnest.models import (
    ExtractionOutcome,
    FormatTag,
    PartKind,
    PathNode,
    PathNodeKind,
    ProcessingResult,
)
from ingestkit_unnest.output import (
    OutputFileNameGenerator,
    OutputSizeCounter,
    OutputWriter,
    prepare_output_directory,
)
from ingestkit_unnest.router import UnnestRouter, create_default_router
from ingestkit_unnest.security import UnnestSecurityScanner, validate_format_path
from ingestkit_unnest.tracking import ExtractionPath

__all__ = [
    # Router
    "UnnestRouter",
    "create_default_router",
    # Engine
    "ExtractionEngine",
    "ExtractionPath",
    # Config
    "UnnestConfig",
    # Errors
    "ErrorCode",
    "IngestError",
    "UnnestException",
    "InputNotFound",
    "InvalidFormatPath",
    "UnsupportedFormatTag",
    "MessageParseFailure",
    "IoFailure",
    "OutputLimitExceeded",
    "PathInvariantViolation",
    # Models
    "FormatTag",
    "PartKind",
    "PathNode",
    "PathNodeKind",
    "ExtractionOutcome",
    "ProcessingResult",
    # Classifier
    "classify",
    "order_for_traversal",
    "make_ignorable_text_predicate",
    # Output
    "OutputSizeCounter",
    "OutputFileNameGenerator",
    "OutputWriter",
    "prepare_output_directory",
    # Security
    "UnnestSecurityScanner",
    "validate_format_path",
]
