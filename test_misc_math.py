import jax.numpy as jnp

from misc_math import *


def test_clamp():
    assert clamp(2.0, -1.0, 1.0) == 1.0
    assert clamp(-2.0, -1.0, 1.0) == -1.0
    assert clamp(0.5, -1.0, 1.0) == 0.5


def test_clamped_sqrt():
    assert clamped_sqrt(4.0) == 2.0
    assert clamped_sqrt(0.0) == 0.0
    # Negative values from round-off are treated as zero
    assert clamped_sqrt(-1e-12) == 0.0
    assert clamped_sqrt(-4.0) == 0.0


def test_equal():
    assert equal(1.0, 1.0 + 1e-7)
    assert not equal(1.0, 1.0 + 1e-5)
    assert equal(1.0, 1.1, tol=0.2)

    a = jnp.array([1.0, 2.0, 3.0])
    assert vector_equal(a, a + 1e-7)
    assert not vector_equal(a, a.at[2].add(1e-3))
    assert vector_equal(a, a.at[2].add(1e-3), tol=1e-2)
    # A negative tolerance never matches
    assert not vector_equal(a, a, tol=-1.0)


def test_sort3():
    assert jnp.all(sort3(3.0, 1.0, 2.0) == jnp.array([1.0, 2.0, 3.0]))
    assert jnp.all(sort3(1.0, 1.0, 0.0) == jnp.array([0.0, 1.0, 1.0]))


def test_normalize_angle():
    assert jnp.isclose(normalize_angle(0.5), 0.5)
    assert jnp.isclose(normalize_angle(4 * jnp.pi - 0.5), -0.5)
    assert jnp.isclose(normalize_angle(-4 * jnp.pi + 0.5), 0.5)
    # The range is half open, -pi wraps to pi
    assert normalize_angle(-jnp.pi) == jnp.pi
    assert jnp.isclose(normalize_angle(3 * jnp.pi), jnp.pi)
    assert jnp.isclose(jnp.abs(normalize_angle(-3 * jnp.pi)), jnp.pi)
    assert jnp.all(normalize_angle(jnp.linspace(-10.0, 10.0, 101)) > -jnp.pi)


def test_angle2():
    assert jnp.isclose(angle2(jnp.array([1.0, 0.0])), 0.0)
    assert jnp.isclose(angle2(jnp.array([0.0, 2.0])), 0.5 * jnp.pi)
    assert jnp.isclose(angle2(jnp.array([-1.0, -1.0])), -0.75 * jnp.pi)
    # Vectors without a direction
    assert angle2(jnp.zeros(2)) == 0.0
    assert angle2(jnp.array([1e-7, 1e-7])) == 0.0


def test_angle_error():
    assert jnp.isclose(angle_error(0.3, 0.3), 0.0)
    # pi and -pi are the same angle
    assert jnp.isclose(angle_error(jnp.pi, -jnp.pi), 0.0, atol=1e-12)
    assert jnp.isclose(angle_error(0.0, jnp.pi), 4.0)
