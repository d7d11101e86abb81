"""Match-pattern compilation and redirect-chain resolution for URL measurement."""

__version__ = "0.1.0"

from .config import ResolverConfig
from .errors import (
    FetchError,
    InvalidPatternError,
    InvalidUrlError,
    LinkscopeError,
    NotInitializedError,
    RedirectLoopError,
    ResolutionCancelledError,
    ResolutionError,
    ResolutionTimeoutError,
    TooManyRedirectsError,
)
from .matching import MatchSet, normalize_url
from .models import ParsedPattern, Resolution, ResponseEvent
from .network import NetworkLayer, RequestsNetwork
from .patterns import (
    compile_domains,
    compile_pattern,
    compile_patterns,
    domains_to_match_patterns,
    escape_regex,
    parse_pattern,
)
from .resolver import RedirectResolver

__all__ = [
    "__version__",
    "FetchError",
    "InvalidPatternError",
    "InvalidUrlError",
    "LinkscopeError",
    "MatchSet",
    "NetworkLayer",
    "NotInitializedError",
    "ParsedPattern",
    "RedirectLoopError",
    "RedirectResolver",
    "RequestsNetwork",
    "Resolution",
    "ResolutionCancelledError",
    "ResolutionError",
    "ResolutionTimeoutError",
    "ResolverConfig",
    "ResponseEvent",
    "TooManyRedirectsError",
    "compile_domains",
    "compile_pattern",
    "compile_patterns",
    "domains_to_match_patterns",
    "escape_regex",
    "normalize_url",
    "parse_pattern",
]
