"""Mass and moment of inertia of a rigid body.

The principal moments and principal axes are computed in closed form, following
"A Method for Fast Diagonalization of a 2x2 or 3x3 Real Symmetric Matrix" by
Maarten Kronenburg (http://arxiv.org/abs/1306.6291v4). Equation numbers in the
comments below refer to that paper.
"""

from __future__ import annotations

import logging

import jax.numpy as jnp
import jaxlie
from jax.tree_util import register_pytree_node_class

from lie import QUARTER_PITCH, ZERO_ROTATION
from misc_math import (
    angle2,
    angle_error,
    clamp,
    clamped_sqrt,
    equal,
    normalize_angle,
    sort3,
    vector_equal,
)
from params import DEFAULT_PARAMS

_logger = logging.getLogger(__name__)


@register_pytree_node_class
class Inertia:
    """Scalar mass and a symmetric 3x3 moment of inertia matrix.

    The matrix is stored as two vectors, the diagonal moments (Ixx, Iyy, Izz)
    and the off-diagonal moments (Ixy, Ixz, Iyz), expressed in the body frame.
    Nothing is validated on construction or assignment: every setter returns
    whether the resulting inertia is valid instead.
    """

    def __init__(self, mass=0.0, diagonal=None, off_diagonal=None, dtype=None):
        if dtype is None:
            dtype = jnp.result_type(
                float,
                *[jnp.asarray(x) for x in (mass, diagonal, off_diagonal) if x is not None],
            )
        if diagonal is None:
            diagonal = jnp.zeros(3)
        if off_diagonal is None:
            off_diagonal = jnp.zeros(3)

        self._mass = jnp.asarray(mass, dtype=dtype)
        self._diagonal = jnp.asarray(diagonal, dtype=dtype)
        self._off_diagonal = jnp.asarray(off_diagonal, dtype=dtype)
        assert self._mass.shape == ()
        assert self._diagonal.shape == (3,)
        assert self._off_diagonal.shape == (3,)

    @classmethod
    def from_box_dimensions(cls, m, x, y, z, dtype=None) -> Inertia:
        """Solid cuboid of mass `m` with edge lengths `x`, `y` and `z`."""
        return cls(
            mass=m,
            diagonal=[
                m * (y ** 2 + z ** 2) / 12,
                m * (x ** 2 + z ** 2) / 12,
                m * (x ** 2 + y ** 2) / 12,
            ],
            dtype=dtype,
        )

    @classmethod
    def from_principal_moments(
        cls, m, moments, offset: jaxlie.SO3, dtype=None
    ) -> Inertia:
        """Inverse of the decomposition: builds R^T * diag(moments) * R, where R
        is the rotation matrix of the principal axes offset."""
        inertia = cls(mass=m, dtype=dtype)
        R = offset.as_matrix()
        inertia.set_matrix(R.T @ jnp.diag(jnp.asarray(moments)) @ R)
        return inertia

    def copy(self) -> Inertia:
        return Inertia(self._mass, self._diagonal, self._off_diagonal)

    @property
    def dtype(self):
        return self._diagonal.dtype

    ###########################################################################
    # Accessors
    ###########################################################################

    @property
    def mass(self) -> jnp.ndarray:
        return self._mass

    @property
    def diagonal_moments(self) -> jnp.ndarray:
        return self._diagonal

    @property
    def off_diagonal_moments(self) -> jnp.ndarray:
        return self._off_diagonal

    @property
    def ixx(self) -> jnp.ndarray:
        return self._diagonal[0]

    @property
    def iyy(self) -> jnp.ndarray:
        return self._diagonal[1]

    @property
    def izz(self) -> jnp.ndarray:
        return self._diagonal[2]

    @property
    def ixy(self) -> jnp.ndarray:
        return self._off_diagonal[0]

    @property
    def ixz(self) -> jnp.ndarray:
        return self._off_diagonal[1]

    @property
    def iyz(self) -> jnp.ndarray:
        return self._off_diagonal[2]

    def set_mass(self, m) -> bool:
        self._mass = jnp.asarray(m, dtype=self.dtype)
        return self.is_valid()

    def set_diagonal_moments(self, diagonal) -> bool:
        diagonal = jnp.asarray(diagonal, dtype=self.dtype)
        assert diagonal.shape == (3,)
        self._diagonal = diagonal
        return self.is_valid()

    def set_off_diagonal_moments(self, off_diagonal) -> bool:
        off_diagonal = jnp.asarray(off_diagonal, dtype=self.dtype)
        assert off_diagonal.shape == (3,)
        self._off_diagonal = off_diagonal
        return self.is_valid()

    def set_inertia_matrix(self, ixx, iyy, izz, ixy, ixz, iyz) -> bool:
        self._diagonal = jnp.asarray([ixx, iyy, izz], dtype=self.dtype)
        self._off_diagonal = jnp.asarray([ixy, ixz, iyz], dtype=self.dtype)
        return self.is_valid()

    def set_ixx(self, v) -> bool:
        self._diagonal = self._diagonal.at[0].set(v)
        return self.is_valid()

    def set_iyy(self, v) -> bool:
        self._diagonal = self._diagonal.at[1].set(v)
        return self.is_valid()

    def set_izz(self, v) -> bool:
        self._diagonal = self._diagonal.at[2].set(v)
        return self.is_valid()

    def set_ixy(self, v) -> bool:
        self._off_diagonal = self._off_diagonal.at[0].set(v)
        return self.is_valid()

    def set_ixz(self, v) -> bool:
        self._off_diagonal = self._off_diagonal.at[1].set(v)
        return self.is_valid()

    def set_iyz(self, v) -> bool:
        self._off_diagonal = self._off_diagonal.at[2].set(v)
        return self.is_valid()

    def matrix(self) -> jnp.ndarray:
        return jnp.array(
            [
                [self.ixx, self.ixy, self.ixz],
                [self.ixy, self.iyy, self.iyz],
                [self.ixz, self.iyz, self.izz],
            ]
        )

    def set_matrix(self, moi) -> bool:
        """Sets the moments of inertia from a 3x3 matrix. Only the symmetric
        part of the matrix is kept: off-diagonal pairs are averaged."""
        moi = jnp.asarray(moi, dtype=self.dtype)
        assert moi.shape == (3, 3)

        self._diagonal = jnp.diag(moi)
        self._off_diagonal = 0.5 * jnp.stack(
            [
                moi[0, 1] + moi[1, 0],
                moi[0, 2] + moi[2, 0],
                moi[1, 2] + moi[2, 1],
            ]
        )
        return self.is_valid()

    ###########################################################################
    # Validity
    ###########################################################################

    def is_positive(self) -> bool:
        """Positive mass, and a positive definite moment of inertia matrix
        (all leading principal minors are positive)."""
        return (
            bool(self._mass > 0)
            and bool(self.ixx > 0)
            and bool(self.ixx * self.iyy - self.ixy ** 2 > 0)
            and bool(jnp.linalg.det(self.matrix()) > 0)
        )

    def is_valid(self) -> bool:
        """Positive definite, and the principal moments satisfy the triangle
        inequality."""
        return self.is_positive() and Inertia.valid_moments(self.principal_moments())

    @staticmethod
    def valid_moments(moments) -> bool:
        """Checks that principal moments are positive and that none of them
        exceeds the sum of the other two."""
        m = jnp.asarray(moments)
        assert m.shape == (3,)
        return bool(
            jnp.all(m > 0)
            & (m[0] + m[1] > m[2])
            & (m[1] + m[2] > m[0])
            & (m[2] + m[0] > m[1])
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Inertia):
            return NotImplemented
        return (
            bool(
                jnp.isclose(
                    self._mass,
                    other._mass,
                    rtol=DEFAULT_PARAMS.mass_tolerance,
                    atol=0.0,
                )
            )
            and bool(jnp.all(self._diagonal == other._diagonal))
            and bool(jnp.all(self._off_diagonal == other._off_diagonal))
        )

    def __repr__(self) -> str:
        return (
            f"Inertia(mass={self._mass}, diagonal={self._diagonal}, "
            f"off_diagonal={self._off_diagonal})"
        )

    ###########################################################################
    # Decomposition
    ###########################################################################

    def principal_moments(self, tol: float = DEFAULT_PARAMS.tolerance) -> jnp.ndarray:
        """Compute the principal moments of inertia, the eigenvalues of the
        moment of inertia matrix.

        If the matrix is already diagonal the moments are returned in their
        existing order, otherwise they are sorted from smallest to largest.
        `tol` is relative to the largest diagonal moment.
        """
        tol = tol * jnp.max(self._diagonal)
        if vector_equal(self._off_diagonal, jnp.zeros_like(self._off_diagonal), tol):
            return self._diagonal

        Id = self._diagonal
        Ip = self._off_diagonal
        # b = Ixx + Iyy + Izz
        b = jnp.sum(Id)
        # c = Ixx*Iyy - Ixy^2  +  Ixx*Izz - Ixz^2  +  Iyy*Izz - Iyz^2
        c = (
            Id[0] * Id[1] - Ip[0] ** 2
            + Id[0] * Id[2] - Ip[1] ** 2
            + Id[1] * Id[2] - Ip[2] ** 2
        )
        # d = Ixx*Iyz^2 + Iyy*Ixz^2 + Izz*Ixy^2 - Ixx*Iyy*Izz - 2*Ixy*Ixz*Iyz
        d = (
            Id[0] * Ip[2] ** 2
            + Id[1] * Ip[1] ** 2
            + Id[2] * Ip[0] ** 2
            - Id[0] * Id[1] * Id[2]
            - 2 * Ip[0] * Ip[1] * Ip[2]
        )
        # p is a sum of squares (eq 4.7) that only vanishes for a multiple of
        # the identity, and its inverse is needed for delta
        p = b ** 2 - 3 * c
        if p < tol ** 2:
            return b / 3.0 * jnp.ones_like(Id)

        q = 2 * b ** 3 - 9 * b * c - 27 * d
        delta = jnp.arccos(clamp(0.5 * q / p ** 1.5, -1.0, 1.0))

        moments = [
            (b + 2 * jnp.sqrt(p) * jnp.cos((delta + k * 2 * jnp.pi) / 3.0)) / 3.0
            for k in (0, 1, -1)
        ]
        return sort3(*moments)

    def principal_axes_offset(self, tol: float = DEFAULT_PARAMS.tolerance) -> jaxlie.SO3:
        """Compute the rotational offset of the principal axes.

        With R the rotation matrix of the returned offset and L a diagonal
        matrix of the principal moments (ascending), the moment of inertia
        matrix is R^T * L * R.

        If the orientation cannot be determined, ZERO_ROTATION is returned.
        """
        tol = tol * jnp.max(self._diagonal)
        moments = self.principal_moments()
        if vector_equal(moments, self._diagonal, tol):
            # Already aligned with the principal axes, this includes the case
            # of three equal moments
            return jaxlie.SO3.identity()

        # The moments are sorted, so only adjacent values can be repeated
        if equal(moments[0], moments[1], tol):
            return self._repeated_axes_offset(moments, 2, tol)
        if equal(moments[1], moments[2], tol):
            return self._repeated_axes_offset(moments, 0, tol)
        return self._distinct_axes_offset(moments, tol)

    def _f1_f2(self):
        # eq 5.5, 5.6
        f1 = jnp.stack([self.ixy, -self.ixz])
        f2 = jnp.stack([self.iyy - self.izz, -2 * self.iyz])
        return f1, f2

    def _repeated_axes_offset(self, moments, unequal: int, tol) -> jaxlie.SO3:
        """Principal axes offset when moments[1] is repeated and
        moments[unequal] is the other moment."""
        _logger.debug("Repeated principal moments %s", moments)
        f1, f2 = self._f1_f2()

        # lambda - lambda3
        gap = moments[1] - moments[unequal]
        # s = cos(phi2)^2 = (A11 - lambda3) / (lambda - lambda3)
        s = (self.ixx - moments[unequal]) / gap
        # eq 5.23
        phi3 = jnp.zeros_like(s)
        phi2 = jnp.arccos(clamp(clamped_sqrt(s), -1.0, 1.0))

        # eq 5.24, 5.25
        g1 = jnp.stack([jnp.zeros_like(s), 0.5 * gap * jnp.sin(2 * phi2)])
        g2 = jnp.stack([gap * s, jnp.zeros_like(s)])

        # There is a single value of phi12 and one value of phi11 for each
        # sign of phi2. When f1 vanishes phi12 is used as is, otherwise the
        # sign of phi2 is chosen so that phi11 matches phi12. f2 cannot vanish
        # here since that would make the matrix diagonal.
        phi1 = normalize_angle(0.5 * (angle2(g2) - angle2(f2)))
        if f1 @ f1 >= tol ** 2:
            phi11a = normalize_angle(angle2(g1) - angle2(f1))
            phi11b = normalize_angle(angle2(-g1) - angle2(f1))
            if angle_error(phi1, phi11b) < angle_error(phi1, phi11a):
                phi2 = -phi2

        # Eigenvector frame, M = A * L * A^T
        axes = jaxlie.SO3.from_rpy_radians(-phi1, -phi2, -phi3).inverse()
        # The angles above assume the repeated moments come first. When they
        # are the last two, exchange the first and last axes.
        if unequal == 0:
            axes = axes @ QUARTER_PITCH
        return axes.inverse()

    def _distinct_axes_offset(self, moments, tol) -> jaxlie.SO3:
        """Principal axes offset when all three moments differ."""
        f1, f2 = self._f1_f2()
        l0, l1, l2 = moments[0], moments[1], moments[2]

        v = (
            self.ixy ** 2
            + self.ixz ** 2
            + (self.ixx - l2) * (self.ixx + l2 - l0 - l1)
        ) / ((l1 - l2) * (l2 - l0))
        w = (self.ixx - l2 + (l2 - l1) * v) / ((l0 - l1) * v)
        phi1 = jnp.zeros_like(v)
        phi2 = jnp.arccos(clamp(clamped_sqrt(v), -1.0, 1.0))
        phi3 = jnp.arccos(clamp(clamped_sqrt(w), -1.0, 1.0))

        # g1, g2 for phi2, phi3 >= 0 (eq 5.7, 5.8)
        g1 = jnp.stack(
            [
                0.5 * (l0 - l1) * clamped_sqrt(v) * jnp.sin(2 * phi3),
                0.5 * ((l0 - l1) * w + l1 - l2) * jnp.sin(2 * phi2),
            ]
        )
        g2 = jnp.stack(
            [
                (l0 - l1) * (1 + (v - 2) * w) + (l1 - l2) * v,
                (l0 - l1) * jnp.sin(phi2) * jnp.sin(2 * phi3),
            ]
        )

        f1_small = bool(f1 @ f1 < tol ** 2)
        f2_small = bool(f2 @ f2 < tol ** 2)
        if f1_small and f2_small:
            # Both vanish only with a repeated moment, which was ruled out
            _logger.warning(
                "Cannot determine principal axes of %s with moments %s", self, moments
            )
            return ZERO_ROTATION
        elif f1_small:
            phi1 = normalize_angle(0.5 * (angle2(g2) - angle2(f2)))
        elif f2_small:
            phi1 = normalize_angle(angle2(g1) - angle2(f1))
        else:
            # Pick the signs of phi2 and phi3 for which phi11 == phi12
            err = None
            signs = (1, 1)
            for sign2, sign3, g1_scale, g2_scale in (
                (1, 1, (1, 1), (1, 1)),
                (-1, 1, (1, -1), (1, -1)),
                (1, -1, (-1, 1), (1, -1)),
                (-1, -1, (-1, -1), (1, 1)),
            ):
                g1s = g1 * jnp.array(g1_scale, dtype=g1.dtype)
                g2s = g2 * jnp.array(g2_scale, dtype=g2.dtype)
                phi11 = normalize_angle(angle2(g1s) - angle2(f1))
                phi12 = normalize_angle(0.5 * (angle2(g2s) - angle2(f2)))
                e = angle_error(phi11, phi12)
                if err is None or e < err:
                    err = e
                    phi1 = phi11
                    signs = (sign2, sign3)
            phi2 = signs[0] * phi2
            phi3 = signs[1] * phi3

        _logger.debug("Distinct principal moments %s", moments)
        # Orientation of the principal axes in the body frame. The columns of
        # its matrix are the eigenvectors, so M = A * L * A^T, and the offset
        # is its inverse.
        axes = jaxlie.SO3.from_rpy_radians(-phi1, -phi2, -phi3).inverse()
        return axes.inverse()

    ###########################################################################
    # Pytree
    ###########################################################################

    def tree_flatten(self):
        return (self._mass, self._diagonal, self._off_diagonal), None

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        inertia = object.__new__(cls)
        inertia._mass, inertia._diagonal, inertia._off_diagonal = children
        return inertia
