import math

def round_half_up(x: float) -> int:
    """
    Round to the nearest integer with .5 going up, the way the portal's
    front end and the stored figures round (Python's round() is banker's).
    """
    return int(math.floor(x + 0.5))

def round_to(x: float, places: int) -> float:
    """Half-up rounding to a fixed number of decimal places."""
    factor = 10 ** places
    return round_half_up(x * factor) / factor

def first_words(text: str, n: int) -> str:
    """First n whitespace-separated words of text."""
    return " ".join(text.split()[:n])

def fnv1a_32(s: str) -> int:
    """Deterministic, fast hash for seed generation."""
    h = 0x811c9dc5
    for c in s.encode("utf-8"):
        h ^= c
        h = (h * 0x01000193) & 0xFFFFFFFF
    return h

def seeded_rand(seed: int, n: int = 1) -> list[float]:
    """
    Stateless pseudo-random generator (Mulberry32-like) so
    same seed → same outputs without storing PRNG state.
    """
    out = []
    t = (seed + 0x6D2B79F5) & 0xFFFFFFFF
    for _ in range(n):
        t = (t ^ (t >> 15)) * (t | 1) & 0xFFFFFFFF
        t ^= t + ((t ^ (t >> 7)) * (t | 61) & 0xFFFFFFFF)
        r = ((t ^ (t >> 14)) & 0xFFFFFFFF) / 4294967296.0
        out.append(r)
    return out
