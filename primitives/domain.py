"""Evaluation domains: power-of-two subgroups of FF*, optionally coset-shifted."""

from dataclasses import dataclass

from primitives.field import FF, SHIFT, batch_inverse, primitive_root_of_unity
from primitives.polynomial import coset_powers, scale_rows, to_coefficients, to_evaluations, zero_pad


@dataclass(frozen=True)
class EvaluationDomain:
    """The set {offset * generator^i : 0 <= i < size}.

    generator must have multiplicative order exactly `size`.
    """

    generator: FF
    size: int
    offset: FF = 1

    def __post_init__(self):
        object.__setattr__(self, "generator", FF(int(self.generator)))
        object.__setattr__(self, "offset", FF(int(self.offset)))
        object.__setattr__(self, "size", int(self.size))

    @classmethod
    def from_size(cls, size: int, offset=SHIFT) -> "EvaluationDomain":
        return cls(primitive_root_of_unity(size), size, offset)

    def domain_values(self) -> FF:
        """Return the domain points in order."""
        return coset_powers(self.generator, self.size) * self.offset

    def evaluate(self, coefficients):
        """Evaluate polynomial(s) on the domain.

        coefficients: 1D array (one polynomial) or 2D array (one per column),
        ascending order, at most `size` coefficients.
        """
        padded = zero_pad(coefficients, self.size)
        if int(self.offset) != 1:
            padded = scale_rows(padded, coset_powers(self.offset, self.size))
        return to_evaluations(padded, self.generator)

    def interpolate(self, values):
        """Inverse of evaluate: values on the domain -> coefficients."""
        if len(values) != self.size:
            raise ValueError(f"Expected {self.size} values, got {len(values)}")
        coefficients = to_coefficients(values, self.generator)
        if int(self.offset) != 1:
            coefficients = scale_rows(coefficients, batch_inverse(coset_powers(self.offset, self.size)))
        return coefficients

    def __eq__(self, other):
        if not isinstance(other, EvaluationDomain):
            return NotImplemented
        return (
            int(self.generator) == int(other.generator)
            and self.size == other.size
            and int(self.offset) == int(other.offset)
        )

    def __hash__(self):
        return hash((int(self.generator), self.size, int(self.offset)))

    def __repr__(self):
        return f"EvaluationDomain(generator={int(self.generator)}, size={self.size}, offset={int(self.offset)})"

