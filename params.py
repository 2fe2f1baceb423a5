import jax
import jax_dataclasses as jdc

# The closed-form decomposition needs double precision to resolve repeated
# moments, so make float64 available before any arrays are created.
jax.config.update("jax_enable_x64", True)


@jdc.pytree_dataclass
class Params:
    # Relative tolerance of the decomposition, scaled by the largest diagonal moment
    tolerance: jdc.Static[float] = 1e-6
    # Relative tolerance used when comparing masses
    mass_tolerance: jdc.Static[float] = 1e-6
    # 2-vectors with a squared length below this have no direction
    direction_tolerance: jdc.Static[float] = 1e-12


DEFAULT_PARAMS = Params()
