from .composite import compute_composite_score
from .fitts import effective_width, euclidean, format_target_size, index_of_difficulty

__all__ = [
    "compute_composite_score", "effective_width", "euclidean",
    "format_target_size", "index_of_difficulty",
]
