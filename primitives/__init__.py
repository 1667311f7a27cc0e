"""Primitives - field arithmetic, transforms and polynomials."""

from primitives.domain import EvaluationDomain
from primitives.field import (
    FF,
    FF3,
    GOLDILOCKS_PRIME,
    SHIFT,
    W,
    batch_inverse,
    ff3,
    ff3_coeffs,
    get_omega,
    lift,
    primitive_root_of_unity,
    random_ff,
    random_ff3,
    to_ff,
)
from primitives.mpolynomial import MPolynomial
from primitives.ntt import intt, ntt

__all__ = [
    # Field
    "FF",
    "FF3",
    "ff3",
    "ff3_coeffs",
    "GOLDILOCKS_PRIME",
    "W",
    "SHIFT",
    "batch_inverse",
    "get_omega",
    "lift",
    "primitive_root_of_unity",
    "random_ff",
    "random_ff3",
    "to_ff",
    # NTT
    "ntt",
    "intt",
    # Domains
    "EvaluationDomain",
    # Polynomials
    "MPolynomial",
]
