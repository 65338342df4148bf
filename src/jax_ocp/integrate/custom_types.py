"""Type aliases to improve type hint readability."""

from typing import Callable, Sequence, TypeAlias, Union
from jax import Array

LinearMap: TypeAlias = Callable[[Array], Array]
JacobianConstructor: TypeAlias = Callable[[Array], Array]
DynamicsFunction: TypeAlias = Callable[..., Array]
ControlInput: TypeAlias = Union[None, Array, Callable[[float], Array]]
CollocationPoints: TypeAlias = Sequence[Array]
