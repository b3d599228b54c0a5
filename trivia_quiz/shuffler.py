"""
Answer option shuffling for quiz questions.
"""
import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Return a uniformly shuffled copy of items (Fisher-Yates).

    Args:
        items: Sequence to shuffle; it is never modified
        rng: Optional random source, defaults to the module generator

    Returns:
        New list containing a permutation of items
    """
    rng = rng or random
    # Make a copy to avoid modifying the caller's sequence
    shuffled = list(items)

    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

    return shuffled
