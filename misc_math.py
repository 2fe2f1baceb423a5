import jax.numpy as jnp

from params import DEFAULT_PARAMS


def clamp(x, lo, hi):
    return jnp.clip(x, lo, hi)


def clamped_sqrt(x):
    # Square root of positive numbers, zero otherwise
    return jnp.sqrt(jnp.maximum(x, 0.0))


def equal(a, b, tol: float = 1e-6) -> bool:
    """Absolute comparison of two scalars."""
    return bool(jnp.abs(a - b) <= tol)


def vector_equal(a: jnp.ndarray, b: jnp.ndarray, tol: float = 1e-6) -> bool:
    """Component-wise absolute comparison of two vectors."""
    return bool(jnp.all(jnp.abs(a - b) <= tol))


def sort3(a, b, c) -> jnp.ndarray:
    return jnp.sort(jnp.stack([a, b, c]))


def normalize_angle(theta):
    """Wrap an angle into (-pi, pi]."""
    theta = jnp.arctan2(jnp.sin(theta), jnp.cos(theta))
    return jnp.where(theta <= -jnp.pi, jnp.pi, theta)


def angle2(v: jnp.ndarray, tol: float = DEFAULT_PARAMS.direction_tolerance):
    """Angle between a 2-vector and the x axis.

    Vectors with a squared length below `tol` have no meaningful direction and
    get an angle of zero."""
    assert v.shape == (2,)
    if v @ v < tol:
        return jnp.zeros((), dtype=v.dtype)
    return jnp.arctan2(v[1], v[0])


def angle_error(a, b):
    # Compare through sin and cos so that -pi and pi are considered close
    return (jnp.sin(a) - jnp.sin(b)) ** 2 + (jnp.cos(a) - jnp.cos(b)) ** 2
