from marc_evaluator.core.field_comparator.normalizer import normalize
from rapidfuzz.distance                              import Levenshtein

# -------------------- Scoring Constants --------------------

# Classification bands for fuzzy matches (strictly greater than). Fixed for every run.
HIGH_SIMILARITY_THRESHOLD   = 0.8
MEDIUM_SIMILARITY_THRESHOLD = 0.5

# Partial credit when neither side has a value.
BOTH_MISSING_SCORE = 0.5

EXACT_SCORE     = 1.0
SUBSTRING_FLOOR = 0.8

def edit_distance(first: str, second: str) -> int:
    """
    Levenshtein distance with unit cost for insertion, deletion and substitution.
    """
    return Levenshtein.distance(first, second)

def field_distance(first: str | None, second: str | None) -> int:
    """
    Edit distance between two values after normalization; an empty side
    costs the full length of the other.
    """
    return edit_distance(normalize(first), normalize(second))

def similarity(first: str | None, second: str | None) -> float:
    """
    Bounded similarity of two values after normalization.

    Returns:
        float: 1 - distance / longer length. Equal strings short-circuit to 1.0,
        one empty side scores 0.0 and two empty sides return BOTH_MISSING_SCORE.
    """
    first, second = normalize(first), normalize(second)

    if not first and not second:
        return BOTH_MISSING_SCORE
    if not first or not second:
        return 0.0
    if first == second:
        return EXACT_SCORE

    return 1.0 - edit_distance(first, second) / max(len(first), len(second))

def classify_similarity(score: float) -> str:
    """
    Maps a similarity score onto the 'high' / 'medium' / 'low' bands.
    """
    if score > HIGH_SIMILARITY_THRESHOLD:
        return 'high'
    if score > MEDIUM_SIMILARITY_THRESHOLD:
        return 'medium'
    return 'low'
