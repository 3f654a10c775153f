from cardlens.analysis.ranker import (
    matches_card_number,
    rank_candidates,
    score_candidates,
)

__all__ = ["matches_card_number", "rank_candidates", "score_candidates"]
