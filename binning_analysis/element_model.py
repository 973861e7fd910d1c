"""Element classification and the arithmetic rules that go with it.

A binner accumulates one of four element categories: real or complex values,
either as scalars or as fixed-shape arrays. The category is decided once, when
the binner is built, and fixes the accumulator dtype (``float64`` or
``complex128``), the accumulator shape and the squaring rule.

Complex values are squared component-wise, ``real(x)**2 + 1j * imag(x)**2``,
not as ``x**2``: the variance of a complex series is the sum of the variances
of its real and imaginary parts, which needs both sums of squares.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Tuple

import numpy as np

from .exceptions import DimensionMismatchError, ElementTypeError, InvalidZeroPrototypeError

# bool, signed/unsigned int, float, complex
_NUMERIC_KINDS = frozenset("biufc")

_REAL_DTYPE = np.dtype(np.float64)
_COMPLEX_DTYPE = np.dtype(np.complex128)


class ElementKind(Enum):
    """Closed set of element categories a binner can accumulate."""

    SCALAR_REAL = "scalar-real"
    SCALAR_COMPLEX = "scalar-complex"
    ARRAY_REAL = "array-real"
    ARRAY_COMPLEX = "array-complex"

    @property
    def is_array(self) -> bool:
        return self in (ElementKind.ARRAY_REAL, ElementKind.ARRAY_COMPLEX)

    @property
    def is_complex(self) -> bool:
        return self in (ElementKind.SCALAR_COMPLEX, ElementKind.ARRAY_COMPLEX)

    @classmethod
    def of(cls, is_array: bool, is_complex: bool) -> "ElementKind":
        if is_array:
            return cls.ARRAY_COMPLEX if is_complex else cls.ARRAY_REAL
        return cls.SCALAR_COMPLEX if is_complex else cls.SCALAR_REAL


def _square_real(x):
    return x * x


def _square_complex(x):
    return x.real * x.real + 1j * (x.imag * x.imag)


def _component_sum_real(acc):
    return acc


def _component_sum_complex(acc):
    return acc.real + acc.imag


def _squared_norm_real(acc):
    return acc * acc


def _squared_norm_complex(acc):
    return acc.real * acc.real + acc.imag * acc.imag


def _as_numeric_array(value: Any, error_type: type, what: str) -> np.ndarray:
    """Convert ``value`` to an ndarray, rejecting ragged and non-numeric input."""
    try:
        arr = np.asarray(value)
    except (ValueError, TypeError) as err:
        raise error_type(f"Cannot interpret {what} of type {type(value).__name__} as numbers.") from err
    if arr.dtype.kind not in _NUMERIC_KINDS:
        raise error_type(
            f"Cannot determine element category of {what} with dtype {arr.dtype}; "
            "only real or complex numbers and arrays of them are supported."
        )
    return arr


@dataclass(frozen=True)
class ElementModel:
    """Element category plus the shape of a single element.

    Attributes:
        kind: Scalar/array and real/complex category.
        shape: Shape of one element, ``()`` for scalars.
    """

    kind: ElementKind
    shape: Tuple[int, ...] = ()

    @classmethod
    def from_prototype(cls, prototype: Any) -> "ElementModel":
        """Classify a zero-valued prototype element.

        Raises:
            InvalidZeroPrototypeError: If the prototype is non-numeric, an empty
                array, or contains any non-zero entry.
        """
        arr = _as_numeric_array(prototype, InvalidZeroPrototypeError, "prototype")
        model = cls._from_array(arr)
        if np.any(arr != 0):
            raise InvalidZeroPrototypeError(
                "The element prototype must contain only zeros; use "
                "LogBinner.from_series to build a binner from data."
            )
        return model

    @classmethod
    def from_sample(cls, sample: Any) -> "ElementModel":
        """Classify the first sample of a time series."""
        arr = _as_numeric_array(sample, InvalidZeroPrototypeError, "sample")
        return cls._from_array(arr)

    @classmethod
    def from_dtype(cls, dtype: Any) -> "ElementModel":
        """Scalar model for a numeric dtype such as ``float`` or ``np.complex64``."""
        try:
            dt = np.dtype(dtype)
        except TypeError as err:
            raise InvalidZeroPrototypeError(f"{dtype!r} is not a numeric dtype.") from err
        if dt.kind not in _NUMERIC_KINDS:
            raise InvalidZeroPrototypeError(f"{dtype!r} is not a numeric dtype.")
        return cls(ElementKind.of(is_array=False, is_complex=dt.kind == "c"))

    @classmethod
    def _from_array(cls, arr: np.ndarray) -> "ElementModel":
        if arr.ndim > 0 and arr.size == 0:
            raise InvalidZeroPrototypeError(f"Cannot accumulate empty arrays (shape {arr.shape}).")
        kind = ElementKind.of(is_array=arr.ndim > 0, is_complex=arr.dtype.kind == "c")
        return cls(kind, tuple(arr.shape))

    @property
    def dtype(self) -> np.dtype:
        """Accumulator dtype: ``complex128`` for complex kinds, else ``float64``."""
        return _COMPLEX_DTYPE if self.kind.is_complex else _REAL_DTYPE

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def is_array(self) -> bool:
        return self.kind.is_array

    @property
    def is_complex(self) -> bool:
        return self.kind.is_complex

    @property
    def square(self) -> Callable[[Any], Any]:
        """Squaring rule used for the sum-of-squares accumulator."""
        return _square_complex if self.is_complex else _square_real

    @property
    def component_sum(self) -> Callable[[Any], Any]:
        """Collapse a sum-of-squares accumulator to a real value.

        For complex accumulators this adds the real-part and imaginary-part
        sums of squares.
        """
        return _component_sum_complex if self.is_complex else _component_sum_real

    @property
    def squared_norm(self) -> Callable[[Any], Any]:
        """``|sum|**2`` taken per component, always real-valued."""
        return _squared_norm_complex if self.is_complex else _squared_norm_real

    def zeros(self, n_levels: int) -> np.ndarray:
        """Zero-initialised accumulator with one row per level."""
        return np.zeros((n_levels,) + self.shape, dtype=self.dtype)

    def coerce(self, value: Any) -> Any:
        """Validate ``value`` and convert it to the accumulator dtype.

        Array elements are copied so later mutation by the caller cannot reach
        the binner's state.

        Raises:
            ElementTypeError: If ``value`` is non-numeric, or complex while the
                model is real.
            DimensionMismatchError: If the shape of ``value`` differs from the
                model's element shape.
        """
        arr = _as_numeric_array(value, ElementTypeError, "value")
        if arr.dtype.kind == "c" and not self.is_complex:
            raise ElementTypeError("Cannot push a complex value into a binner of real elements.")
        if arr.shape != self.shape:
            raise DimensionMismatchError(self.shape, tuple(arr.shape))
        if self.is_array:
            return arr.astype(self.dtype, copy=True)
        return self.dtype.type(arr)
