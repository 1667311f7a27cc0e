"""Number Theoretic Transform for Goldilocks field.

Radix-2 Cooley-Tukey over an explicit generator, so any power-of-two subgroup
(trace domain of order padded_height, commitment domain of order N) can be
transformed. FF3 arrays are transformed component-wise over FF, which is valid
because the generator lies in the base field.
"""

import numpy as np

from primitives.field import FF, FF3, log2_exact, powers_of


def ntt(values, generator):
    """Forward NTT: coefficients -> evaluations at generator^i.

    values is a 1D or 2D FF/FF3 array; 2D arrays are transformed column-wise
    along axis 0. len(values) must equal the order of generator.
    """
    return _transform(values, FF(int(generator)))


def intt(values, generator):
    """Inverse NTT: evaluations at generator^i -> coefficients."""
    n = len(values)
    if n == 0:
        return values
    coeffs = _transform(values, FF(int(generator)) ** -1)
    n_inv = FF(n) ** -1
    if isinstance(coeffs, FF3):
        return coeffs * FF3(int(n_inv))
    return coeffs * n_inv


def _transform(values, omega: FF):
    n = len(values)
    if n == 0:
        return values
    log2_exact(n)

    if isinstance(values, FF3):
        # (n, ..., 3) base field components
        components = values.vector()
        out = _ntt_columns(components.reshape(n, -1), omega)
        return FF3.Vector(out.reshape(components.shape))

    out = _ntt_columns(values.reshape(n, -1), omega)
    return out.reshape(values.shape)


def _ntt_columns(matrix: FF, omega: FF) -> FF:
    """Iterative butterfly NTT on each column of an (n, k) FF matrix."""
    n, k = matrix.shape
    a = matrix[_bit_reverse_indices(n)]

    half = 1
    while half < n:
        # Primitive (2*half)-th root of unity
        w = omega ** (n // (2 * half))
        twiddles = powers_of(w, half)

        blocks = a.reshape(n // (2 * half), 2 * half, k)
        even = blocks[:, :half, :]
        odd = blocks[:, half:, :] * twiddles[:, np.newaxis]

        out = FF.Zeros(blocks.shape)
        out[:, :half, :] = even + odd
        out[:, half:, :] = even - odd
        a = out.reshape(n, k)
        half *= 2

    return a


def _bit_reverse_indices(n: int) -> np.ndarray:
    n_bits = log2_exact(n)
    indices = np.zeros(n, dtype=np.int64)
    for i in range(n):
        rev = 0
        x = i
        for _ in range(n_bits):
            rev = (rev << 1) | (x & 1)
            x >>= 1
        indices[i] = rev
    return indices
