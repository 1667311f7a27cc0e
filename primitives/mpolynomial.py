"""Sparse multivariate polynomials over FF or FF3.

Constraints are MPolynomials over the variables of two adjacent rows. The
same polynomial is evaluated on scalars (verifier, one point) or on whole
columns (prover, every row at once); galois broadcasting makes these the
same code path.
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np

from primitives.field import FF, FF3, GOLDILOCKS_PRIME, lift, lift_like

Exponents = Tuple[int, ...]


def _strip(exponents: Sequence[int]) -> Exponents:
    exponents = list(exponents)
    while exponents and exponents[-1] == 0:
        exponents.pop()
    return tuple(exponents)


def _pad(exponents: Exponents, length: int) -> Exponents:
    return exponents + (0,) * (length - len(exponents))


def _common_field(*fields):
    return FF3 if any(f is FF3 for f in fields) else FF


class MPolynomial:
    """Polynomial stored as {exponent tuple: coefficient}.

    Exponent tuples have trailing zeros stripped, so the constant term is
    keyed by (). Zero coefficients are never stored.
    """

    # Make numpy defer to our reflected operators (FF(3) * poly).
    __array_ufunc__ = None

    def __init__(self, terms: Dict[Exponents, object] = None, field=FF):
        self.field = field
        self.terms: Dict[Exponents, object] = {}
        for exponents, coefficient in (terms or {}).items():
            coefficient = lift_like(coefficient, field)
            if int(coefficient) == 0:
                continue
            key = _strip(exponents)
            if key in self.terms:
                coefficient = self.terms[key] + coefficient
                if int(coefficient) == 0:
                    del self.terms[key]
                    continue
            self.terms[key] = coefficient

    # --- Constructors ---

    @staticmethod
    def zero(field=FF) -> "MPolynomial":
        return MPolynomial({}, field)

    @staticmethod
    def constant(value, field=None) -> "MPolynomial":
        if field is None:
            field = FF3 if isinstance(value, FF3) else FF
        return MPolynomial({(): value}, field)

    @staticmethod
    def variables(count: int, field=FF) -> List["MPolynomial"]:
        """Return [x_0, ..., x_{count-1}]."""
        return [
            MPolynomial({(0,) * i + (1,): 1}, field)
            for i in range(count)
        ]

    # --- Coercion ---

    def lift(self) -> "MPolynomial":
        """Return this polynomial with coefficients in FF3."""
        if self.field is FF3:
            return self
        return MPolynomial({k: lift(v) for k, v in self.terms.items()}, FF3)

    def _coerce(self, other) -> "MPolynomial":
        if isinstance(other, MPolynomial):
            return other
        if isinstance(other, FF3):
            return MPolynomial.constant(other, FF3)
        if isinstance(other, FF):
            return MPolynomial.constant(other, FF)
        if isinstance(other, (int, np.integer)):
            return MPolynomial.constant(int(other) % GOLDILOCKS_PRIME, self.field)
        return NotImplemented

    def _promote(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented, NotImplemented, None
        field = _common_field(self.field, other.field)
        left = self.lift() if field is FF3 else self
        right = other.lift() if field is FF3 else other
        return left, right, field

    # --- Arithmetic ---

    def __add__(self, other):
        left, right, field = self._promote(other)
        if field is None:
            return NotImplemented
        terms = dict(left.terms)
        for k, v in right.terms.items():
            terms[k] = terms[k] + v if k in terms else v
        return MPolynomial(terms, field)

    __radd__ = __add__

    def __neg__(self):
        return MPolynomial({k: -v for k, v in self.terms.items()}, self.field)

    def __sub__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self + (-other)

    def __rsub__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other + (-self)

    def __mul__(self, other):
        left, right, field = self._promote(other)
        if field is None:
            return NotImplemented
        accumulated: Dict[Exponents, object] = {}
        for k1, v1 in left.terms.items():
            for k2, v2 in right.terms.items():
                length = max(len(k1), len(k2))
                key = _strip(tuple(a + b for a, b in zip(_pad(k1, length), _pad(k2, length))))
                product = v1 * v2
                accumulated[key] = accumulated[key] + product if key in accumulated else product
        return MPolynomial(accumulated, field)

    __rmul__ = __mul__

    def __pow__(self, exponent: int):
        if not isinstance(exponent, int) or exponent < 0:
            raise ValueError(f"Exponent must be a non-negative integer, got {exponent!r}")
        result = MPolynomial.constant(1, self.field)
        base = self
        while exponent:
            if exponent & 1:
                result = result * base
            base = base * base
            exponent >>= 1
        return result

    # --- Queries ---

    def is_zero(self) -> bool:
        return not self.terms

    def num_variables(self) -> int:
        """Smallest n such that only x_0..x_{n-1} occur."""
        return max((len(k) for k in self.terms), default=0)

    def degree(self) -> int:
        """Total degree; -1 for the zero polynomial."""
        return max((sum(k) for k in self.terms), default=-1)

    def symbolic_degree_bound(self, max_degrees: Sequence[int]) -> int:
        """Degree of the univariate polynomial obtained by substituting
        polynomials of degree max_degrees[i] for x_i."""
        if self.num_variables() > len(max_degrees):
            raise ValueError(
                f"Need degree bounds for {self.num_variables()} variables, got {len(max_degrees)}"
            )
        return max(
            (sum(e * d for e, d in zip(k, max_degrees)) for k in self.terms),
            default=-1,
        )

    def evaluate(self, point):
        """Evaluate at point, a sequence of values, one per variable.

        Values may be scalars or equal-length arrays (one entry per row). A
        2D array is read column-wise: point[:, i] is variable i.
        """
        if isinstance(point, np.ndarray) and point.ndim >= 1:
            values = [point[..., i] for i in range(point.shape[-1])]
        else:
            values = list(point)

        if self.num_variables() > len(values):
            raise ValueError(
                f"Polynomial has {self.num_variables()} variables, point has {len(values)}"
            )

        field = _common_field(self.field, *(type(v) for v in values))
        values = [lift_like(v, field) for v in values]

        result = field(0)
        for exponents, coefficient in self.terms.items():
            term = lift_like(coefficient, field)
            for i, e in enumerate(exponents):
                if e:
                    term = term * values[i] ** e
            result = result + term
        return result

    # --- Comparison / display ---

    def __eq__(self, other):
        if not isinstance(other, MPolynomial):
            return NotImplemented
        if self.terms.keys() != other.terms.keys():
            return False
        field = _common_field(self.field, other.field)
        return all(
            bool(lift_like(v, field) == lift_like(other.terms[k], field))
            for k, v in self.terms.items()
        )

    __hash__ = None

    def __repr__(self):
        if self.is_zero():
            return "MPolynomial(0)"
        parts = []
        for exponents, coefficient in sorted(self.terms.items()):
            monomial = "*".join(
                f"x{i}" if e == 1 else f"x{i}^{e}" for i, e in enumerate(exponents) if e
            )
            parts.append(f"{coefficient}*{monomial}" if monomial else f"{coefficient}")
        return f"MPolynomial({' + '.join(parts)})"
