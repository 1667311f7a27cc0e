"""Polynomial operations used by tables and evaluation domains.

Tables convert between evaluations and coefficients through these helpers;
whether an NTT does the work underneath is not their concern.

Polynomials are coefficient arrays in ascending order. A 2D array is a batch
of polynomials, one per column.
"""

import numpy as np

from primitives.field import FF, lift_like, powers_of
from primitives.ntt import intt, ntt


def to_coefficients(evaluations, generator):
    """Interpolate values given at generator^i into coefficient form."""
    return intt(evaluations, generator)


def to_evaluations(coefficients, generator):
    """Evaluate coefficients at generator^i; len(coefficients) = order of generator."""
    return ntt(coefficients, generator)


def scale_rows(values, factors: FF):
    """Multiply row i of values by factors[i] (factors are base field)."""
    factors = lift_like(factors, type(values))
    if values.ndim == 1:
        return values * factors
    return values * factors[:, np.newaxis]


def zero_pad(coefficients, size: int):
    """Zero-pad coefficients (along axis 0) up to size."""
    if len(coefficients) > size:
        raise ValueError(f"Cannot pad {len(coefficients)} coefficients down to {size}")
    field = type(coefficients)
    padded = field.Zeros((size,) + coefficients.shape[1:])
    padded[:len(coefficients)] = coefficients
    return padded


def add_vanishing_multiple(coefficients, randomizers):
    """Return p(X) + (X^n - 1) * r(X), n = len(coefficients).

    The result still agrees with p on the order-n subgroup, so randomizing r
    hides the trace without changing its values there.
    """
    n = len(coefficients)
    r = len(randomizers)
    result = zero_pad(coefficients, n + r)
    result[n:] += randomizers
    result[:r] -= randomizers
    return result


def evaluate_on_subgroup(coefficients, generator, size: int):
    """Evaluate coefficients (any length) at generator^i for i < size.

    Coefficients are first reduced modulo X^size - 1.
    """
    field = type(coefficients)
    folded = field.Zeros((size,) + coefficients.shape[1:])
    for start in range(0, len(coefficients), size):
        chunk = coefficients[start:start + size]
        folded[:len(chunk)] += chunk
    return ntt(folded, generator)


def coset_powers(offset, size: int) -> FF:
    """Return [1, offset, offset^2, ...] used to shift onto a coset."""
    return powers_of(offset, size)
