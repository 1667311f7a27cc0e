"""Goldilocks field GF(p) and cubic extension GF(p^3).

Uses galois library for all field arithmetic. FF and FF3 are the field types:
base-trace rows live in FF, extended-trace rows, challenges and initials live
in FF3.

Constructing FF3 with galois.GF() takes several seconds. If a pickled copy
(ff3_cache.pkl) sits next to this module it is loaded instead. To write one:
    python -c "from primitives.field import _regenerate_ff3_cache; _regenerate_ff3_cache()"
"""

import pickle
from pathlib import Path
from typing import List

import galois
import numpy as np

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001

FIELD_EXTENSION_DEGREE = 3

FF = galois.GF(GOLDILOCKS_PRIME)
"""Base field GF(p) - Goldilocks prime field."""

_FF3_CACHE_PATH = Path(__file__).parent / "ff3_cache.pkl"


def _build_ff3():
    # x^3 - x - 1, coefficients in descending order
    irr_poly = galois.Poly([1, 0, GOLDILOCKS_PRIME - 1, GOLDILOCKS_PRIME - 1], field=FF)
    return galois.GF(GOLDILOCKS_PRIME**3, irreducible_poly=irr_poly)


if _FF3_CACHE_PATH.exists():
    with open(_FF3_CACHE_PATH, "rb") as _f:
        FF3 = pickle.load(_f)
else:
    FF3 = _build_ff3()
"""Cubic extension field GF(p^3) with irreducible polynomial x^3 - x - 1."""


def _regenerate_ff3_cache():
    """Write the FF3 cache file. Only needed if galois version changes."""
    with open(_FF3_CACHE_PATH, "wb") as f:
        pickle.dump(_build_ff3(), f)
    print(f"Regenerated {_FF3_CACHE_PATH}")


# --- Coefficient Order Conversion ---
# Galois uses descending order [a2, a1, a0], we use ascending [a0, a1, a2].


def ff3(coeffs: List[int]) -> FF3:
    """Construct FF3 element from ascending-order coefficients [a0, a1, a2]."""
    return FF3.Vector(coeffs[::-1])


def ff3_coeffs(elem: FF3) -> List[int]:
    """Extract ascending-order coefficients [a0, a1, a2] from FF3 element."""
    return [int(c) for c in elem.vector()[::-1]]


# --- Conversions ---

def to_ff(values) -> FF:
    """Reduce integers (possibly negative, scalar or nested sequence) into FF."""
    if isinstance(values, FF):
        return values
    if isinstance(values, (int, np.integer)):
        return FF(int(values) % GOLDILOCKS_PRIME)
    shape = np.shape(values)
    flat = [int(v) % GOLDILOCKS_PRIME for v in np.ravel(np.asarray(values, dtype=object))]
    return FF(flat).reshape(shape)


def lift(values) -> FF3:
    """Embed base field values (scalar or array) into the extension field."""
    if isinstance(values, FF3):
        return values
    return FF3(np.asarray(to_ff(values), dtype=np.uint64))


def lift_like(values, field):
    """Return values in `field`, lifting from FF when field is FF3."""
    if field is FF3:
        return lift(values)
    return to_ff(values)


# --- Sampling ---

def random_ff(shape, seed=None) -> FF:
    """Uniform FF array. Same seed (int or np.random.Generator) -> same values."""
    rng = np.random.default_rng(seed)
    return FF(rng.integers(0, GOLDILOCKS_PRIME, size=shape, dtype=np.uint64))


def random_ff3(shape, seed=None) -> FF3:
    """Uniform FF3 array, sampled component-wise over FF."""
    if isinstance(shape, int):
        shape = (shape,)
    return FF3.Vector(random_ff(tuple(shape) + (FIELD_EXTENSION_DEGREE,), seed))


# --- Roots of Unity ---

# Domain shift for coset LDE
SHIFT = FF(7)

# Precomputed roots of unity: W[n] is a primitive 2^n-th root of unity
W: List[int] = [
    1,
    18446744069414584320,
    281474976710656,
    16777216,
    4096,
    64,
    8,
    2198989700608,
    4404853092538523347,
    6434636298004421797,
    4255134452441852017,
    9113133275150391358,
    4355325209153869931,
    4308460244895131701,
    7126024226993609386,
    1873558160482552414,
    8167150655112846419,
    5718075921287398682,
    3411401055030829696,
    8982441859486529725,
    1971462654193939361,
    6553637399136210105,
    8124823329697072476,
    5936499541590631774,
    2709866199236980323,
    8877499657461974390,
    3757607247483852735,
    4969973714567017225,
    2147253751702802259,
    2530564950562219707,
    1905180297017055339,
    3524815499551269279,
    7277203076849721926,
]


def log2_exact(size: int) -> int:
    """Compute log2 of size (must be power of 2)."""
    if size <= 0 or size & (size - 1) != 0:
        raise ValueError(f"{size} is not a power of two")
    return size.bit_length() - 1


def get_omega(n_bits: int) -> int:
    """Return primitive 2^n_bits-th root of unity."""
    if n_bits < 0 or n_bits >= len(W):
        raise ValueError(f"n_bits must be in [0, {len(W) - 1}], got {n_bits}")
    return W[n_bits]


def primitive_root_of_unity(order: int) -> FF:
    """Return the primitive root of unity of the given power-of-two order."""
    return FF(get_omega(log2_exact(order)))


def powers_of(base, count: int) -> FF:
    """Return [1, base, base^2, ..., base^(count-1)] as an FF array."""
    if count == 0:
        return FF.Zeros(0)
    # Build [1, b, b, ...] then cumprod gives [1, b, b^2, ...]
    ones = FF.Ones(count)
    ones[1:] = FF(int(base))
    return np.cumprod(ones)


def batch_inverse(values):
    """Invert every element of a 1D FF or FF3 array with a single field inversion.

    Raises ZeroDivisionError if any element is zero.
    """
    n = len(values)
    if n == 0:
        return values
    field = type(values)

    prefix = field.Zeros(n)
    prefix[0] = values[0]
    for i in range(1, n):
        prefix[i] = prefix[i - 1] * values[i]

    acc = prefix[n - 1] ** -1
    inverses = field.Zeros(n)
    for i in range(n - 1, 0, -1):
        inverses[i] = acc * prefix[i - 1]
        acc = acc * values[i]
    inverses[0] = acc
    return inverses
