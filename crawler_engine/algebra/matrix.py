"""
2x2 integer matrix value type and the spell operation set.

Matrices are immutable. Every operation returns a new Matrix.

Cell layout:

    (a, b)      a = (0, 0)   b = (0, 1)
    (c, d)      c = (1, 0)   d = (1, 1)

Usage:
    from crawler_engine.algebra import Matrix, Operation, apply

    hp = Matrix(2, 2, 2, 2)
    hit = Matrix(1, 0, 0, 0)
    apply(Operation.SUBTRACT, hp, hit)  # Matrix(1, 2, 2, 2)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator


@dataclass(frozen=True)
class Matrix:
    """
    Immutable 2x2 integer matrix.

    Attributes:
        a: Top-left cell
        b: Top-right cell
        c: Bottom-left cell
        d: Bottom-right cell
    """
    a: int = 0
    b: int = 0
    c: int = 0
    d: int = 0

    @classmethod
    def zero(cls) -> Matrix:
        """The all-zero matrix."""
        return cls(0, 0, 0, 0)

    @classmethod
    def identity(cls) -> Matrix:
        """The multiplicative identity (1, 0; 0, 1)."""
        return cls(1, 0, 0, 1)

    @classmethod
    def filled(cls, value: int) -> Matrix:
        """Matrix with every cell set to value."""
        return cls(value, value, value, value)

    @classmethod
    def from_cells(cls, cells: list[int] | tuple[int, ...]) -> Matrix:
        """Build from a flat (a, b, c, d) sequence."""
        if len(cells) != 4:
            raise ValueError(f"A 2x2 matrix needs 4 cells, got {len(cells)}")
        return cls(*(int(v) for v in cells))

    @property
    def cells(self) -> tuple[int, int, int, int]:
        """Cells in row-major order."""
        return (self.a, self.b, self.c, self.d)

    @property
    def rows(self) -> tuple[tuple[int, int], tuple[int, int]]:
        """Row vectors."""
        return ((self.a, self.b), (self.c, self.d))

    @property
    def magnitude(self) -> int:
        """Sum of absolute cell values."""
        return sum(abs(v) for v in self.cells)

    @property
    def is_zero(self) -> bool:
        """True when all four cells are zero."""
        return self.a == 0 and self.b == 0 and self.c == 0 and self.d == 0

    @property
    def zero_cells(self) -> int:
        """Number of cells equal to zero."""
        return sum(1 for v in self.cells if v == 0)

    def cell(self, row: int, col: int) -> int:
        """Get a cell by (row, col)."""
        return self.rows[row][col]

    def map(self, fn: Callable[[int], int]) -> Matrix:
        """Apply fn to each cell."""
        return Matrix(*(fn(v) for v in self.cells))

    def clamp(self, floor: int | None = 0, ceiling: int | None = None) -> Matrix:
        """Clamp every cell into [floor, ceiling]. None disables a bound."""
        def _clamp(v: int) -> int:
            if floor is not None and v < floor:
                v = floor
            if ceiling is not None and v > ceiling:
                v = ceiling
            return v
        return self.map(_clamp)

    def scaled(self, factor: int) -> Matrix:
        """Multiply every cell by an integer factor."""
        return self.map(lambda v: v * factor)

    def transpose(self) -> Matrix:
        return Matrix(self.a, self.c, self.b, self.d)

    def __iter__(self) -> Iterator[int]:
        return iter(self.cells)

    def to_list(self) -> list[int]:
        return list(self.cells)


class Operation(Enum):
    """
    Spell operations.

    All operations are binary except RESET, which ignores its right operand.
    """
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    AVERAGE = "average"
    RESET = "reset"
    DOT_PRODUCT = "dot_product"

    @property
    def is_unary(self) -> bool:
        return self is Operation.RESET


def _zip_cells(
    left: Matrix,
    right: Matrix,
    fn: Callable[[int, int], int],
) -> Matrix:
    return Matrix(*(fn(x, y) for x, y in zip(left.cells, right.cells)))


def _average(x: int, y: int) -> int:
    # Round half toward +infinity: avg(1, 2) == 2, avg(-1, 0) == 0
    return (x + y + 1) // 2


def _dot_product(left: Matrix, right: Matrix) -> Matrix:
    # Row-vector convention: cell (i, j) = row_i(left) . row_j(right)
    lrows = left.rows
    rrows = right.rows
    return Matrix(*(
        lrows[i][0] * rrows[j][0] + lrows[i][1] * rrows[j][1]
        for i in range(2)
        for j in range(2)
    ))


_HANDLERS: dict[Operation, Callable[[Matrix, Matrix], Matrix]] = {
    Operation.ADD: lambda l, r: _zip_cells(l, r, lambda x, y: x + y),
    Operation.SUBTRACT: lambda l, r: _zip_cells(l, r, lambda x, y: x - y),
    Operation.MULTIPLY: lambda l, r: _zip_cells(l, r, lambda x, y: x * y),
    Operation.AVERAGE: lambda l, r: _zip_cells(l, r, _average),
    Operation.RESET: lambda l, r: Matrix.zero(),
    Operation.DOT_PRODUCT: _dot_product,
}


def apply(op: Operation, left: Matrix, right: Matrix | None = None) -> Matrix:
    """
    Apply an operation.

    Args:
        op: Operation to apply
        left: Left operand (the matrix being modified)
        right: Right operand; ignored by unary operations

    Returns:
        New matrix
    """
    if right is None:
        right = Matrix.zero()
    return _HANDLERS[op](left, right)
