"""Quote ranking."""

from .policy import (
    AllowListClassificationPolicy,
    AvailableOnlyPolicy,
    ClassificationPolicy,
    DefaultClassificationPolicy,
    resolve_policy,
)
from .ranker import natural_key, normalize_eta, rank_quotes, vendor_key
