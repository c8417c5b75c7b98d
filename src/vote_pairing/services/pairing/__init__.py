from .candidates import Candidate, VoterHistory, filter_candidates
from .sampling import rank_weights, weighted_sample
from .selector import Insufficient, PairSelector, Paired, SelectionResult, order_by_priority

__all__ = [
    "Candidate",
    "Insufficient",
    "PairSelector",
    "Paired",
    "SelectionResult",
    "VoterHistory",
    "filter_candidates",
    "order_by_priority",
    "rank_weights",
    "weighted_sample",
]
