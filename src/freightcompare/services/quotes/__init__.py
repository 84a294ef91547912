"""Quote computation across vendor families."""

from .cache import CompareCache
from .service import ComparisonResult, QuoteService, QuoteSet, call_with_retry, request_fingerprint
