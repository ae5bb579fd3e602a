"""String and vector similarity measures."""

from typing import Sequence

import numpy as np


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit insert/delete/substitute costs."""
    rows = len(a) + 1
    cols = len(b) + 1
    matrix = [[0] * cols for _ in range(rows)]

    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if a[i - 1] == b[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = 1 + min(
                    matrix[i - 1][j - 1],
                    matrix[i][j - 1],
                    matrix[i - 1][j],
                )

    return matrix[rows - 1][cols - 1]


def lexical_similarity(a: str, b: str) -> float:
    """Case-insensitive edit-distance similarity in [0, 1].

    Args:
        a: First string
        b: Second string

    Returns:
        ``1 - distance / longer_length``; 0.0 when both strings are empty
    """
    a, b = a.lower(), b.lower()
    # lower() may lengthen a string, so measure after folding
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return 1.0 - edit_distance(a, b) / longest


def cosine_similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Cosine similarity clamped into [0, 1].

    Empty vectors, mismatched lengths and zero norms all score 0.0.
    """
    if len(v1) == 0 or len(v2) == 0 or len(v1) != len(v2):
        return 0.0

    a = np.asarray(v1, dtype=float)
    b = np.asarray(v2, dtype=float)
    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0 or not np.isfinite(norm):
        return 0.0

    score = float(np.dot(a, b) / norm)
    return min(1.0, max(0.0, score))
