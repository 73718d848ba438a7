"""Name Normalizer library initialization."""

from .errors import AnalysisCancelled, HostUnavailableError, NameNormalizerError, StorageError
from .host import CreatorSource, StaticCreatorSource
from .learning import LearningConfig, LearningEngine
from .models import (
    AnalysisResult,
    ApplyResult,
    CreatorRecord,
    ItemSummary,
    RecordUpdate,
    Suggestion,
    collapse_creators,
)
from .parsing import NameParser, ParsedName
from .pipeline import NameNormalizer, NormalizerConfig
from .runner import normalize_file
from .storage import MemoryStore, SQLiteStore
from .variants import generate as generate_variants

__all__ = [
    "AnalysisCancelled",
    "AnalysisResult",
    "ApplyResult",
    "CreatorRecord",
    "CreatorSource",
    "HostUnavailableError",
    "ItemSummary",
    "LearningConfig",
    "LearningEngine",
    "MemoryStore",
    "NameNormalizer",
    "NameNormalizerError",
    "NameParser",
    "NormalizerConfig",
    "ParsedName",
    "RecordUpdate",
    "SQLiteStore",
    "StaticCreatorSource",
    "StorageError",
    "Suggestion",
    "collapse_creators",
    "generate_variants",
    "normalize_file",
]
