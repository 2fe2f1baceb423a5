import jax
import jax.numpy as jnp
import jaxlie

from lie import *

SEED = 0
NUM_TESTS = 5


def test_quarter_pitch():
    expected = jnp.array(
        [
            [0.0, 0.0, 1.0],
            [0.0, 1.0, 0.0],
            [-1.0, 0.0, 0.0],
        ]
    )
    assert jnp.allclose(QUARTER_PITCH.as_matrix(), expected)
    assert allclose(QUARTER_PITCH, jaxlie.SO3.from_rpy_radians(0.0, jnp.pi / 2, 0.0))


def test_is_unit():
    assert is_unit(jaxlie.SO3.identity())
    assert not is_unit(ZERO_ROTATION)
    assert not is_unit(jaxlie.SO3(wxyz=jnp.array([2.0, 0.0, 0.0, 0.0])))

    prng_key = jax.random.PRNGKey(SEED)
    for subkey in jax.random.split(prng_key, NUM_TESTS):
        assert is_unit(jaxlie.SO3.sample_uniform(subkey))


def test_allclose():
    prng_key = jax.random.PRNGKey(SEED)
    for subkey in jax.random.split(prng_key, NUM_TESTS):
        q = jaxlie.SO3.sample_uniform(subkey)

        # Negating the quaternion should result in the same rotation
        assert allclose(q, jaxlie.SO3(wxyz=-q.wxyz))
        assert allclose(q, q.inverse().inverse())
        assert not allclose(q, q @ QUARTER_PITCH)
