from __future__ import annotations

import jax.numpy as jnp
import jaxlie

from params import DEFAULT_PARAMS

###############################################################################
# S3 lie group (quaternions)
###############################################################################

# A 90 degree pitch. Exchanges the first and last axes:
#     ┌          ┐
#     │  0  0  1 │
#     │  0  1  0 │
#     │ -1  0  0 │
#     └          ┘
QUARTER_PITCH = jaxlie.SO3.from_y_radians(jnp.pi / 2)

# Not a rotation. Returned when an orientation cannot be determined.
ZERO_ROTATION = jaxlie.SO3(wxyz=jnp.zeros(4))


def is_unit(rotation: jaxlie.SO3, tol: float = DEFAULT_PARAMS.tolerance) -> bool:
    """Checks that the quaternion of a rotation has unit norm."""
    return bool(jnp.abs(jnp.linalg.norm(rotation.wxyz) - 1.0) <= tol)


def allclose(a: jaxlie.SO3, b: jaxlie.SO3, **kwargs) -> bool:
    """Checks equality between two rotations

    Note that two quaterions correspond to the same rotation when they
    are pointing in opposite directions."""
    return bool(
        jnp.allclose(a.wxyz, b.wxyz, **kwargs)
        or jnp.allclose(a.wxyz, -b.wxyz, **kwargs)
    )
