"""
Kinematic constraints and constrained rigid body dynamics

A KinematicConstraintSet collects the active holonomic constraints of one mode (e.g. the feet in contact with the ground) and evaluates the constraint value, the constraint Jacobian, the Jacobian derivative times velocity, and the force-augmented dynamics
    M*dv = B*u - C*v + G + J^T*lambda

All evaluations accept float or AutoDiffXd arrays. The scalar type of the plant is chosen by the dtype of the inputs.

October 19, 2026
"""
import abc
from dataclasses import dataclass

import numpy as np
from pydrake.all import JacobianWrtVariable
from pydrake.autodiffutils import AutoDiffXd
import pydrake.math as dmath

from pydircon.exceptions import ConfigurationError, DimensionMismatch

def _linear_solve(A, b):
    """Solve A*x = b for float or AutoDiffXd arrays"""
    if A.dtype == "float" and b.dtype == "float":
        return np.linalg.solve(A, b)
    else:
        return dmath.inv(A).dot(b)

def _promote(values, dtype):
    """Promote float values to AutoDiffXd to match the scalar type of the plant"""
    values = np.asarray(values)
    if dtype == "float" or values.dtype != "float":
        return values
    return np.array([AutoDiffXd(val) for val in values.flatten()], dtype=object).reshape(values.shape)

@dataclass
class KinematicData():
    """Kinematic and dynamic quantities evaluated at a single (state, control, force) tuple"""
    c: np.ndarray
    J: np.ndarray
    Jdotv: np.ndarray
    cdot: np.ndarray
    cddot: np.ndarray
    vdot: np.ndarray
    xdot: np.ndarray

class KinematicConstraint(abc.ABC):
    """
    Class template for holonomic constraints c(q) = 0 on a multibody system
    """
    def __init__(self, model, length):
        self.model = model
        self._length = length
        self._force_constraints = []

    @property
    def length(self):
        return self._length

    @property
    def force_constraints(self):
        return self._force_constraints

    def add_force_constraint(self, constraint):
        """Attach a linear constraint on the constraint forces associated with this constraint"""
        if constraint.num_forces != self.length:
            raise ConfigurationError(f"Force constraint acts on {constraint.num_forces} forces, but {type(self).__name__} has {self.length}")
        self._force_constraints.append(constraint)

    @abc.abstractmethod
    def value(self, plant, context):
        raise NotImplementedError

    @abc.abstractmethod
    def jacobian(self, plant, context):
        raise NotImplementedError

    @abc.abstractmethod
    def jacobian_dot_times_v(self, plant, context):
        raise NotImplementedError

class PointPositionConstraint(KinematicConstraint):
    """
    Constrains the world position of a point fixed to a body

    The constraint value is the world position of the point minus the target, restricted to the active directions. Planar systems use the x and z directions only.
    """
    def __init__(self, model, body_name, point=None, target=None, xz=False, active_directions=None):
        if active_directions is None:
            active_directions = [0, 2] if xz else [0, 1, 2]
        active_directions = list(active_directions)
        if not active_directions or any(d not in (0, 1, 2) for d in active_directions):
            raise ConfigurationError(f"active directions must be a nonempty subset of (0, 1, 2), got {active_directions}")
        super(PointPositionConstraint, self).__init__(model, len(active_directions))
        self.body_name = body_name
        self.active_directions = active_directions
        self.point = np.zeros((3,)) if point is None else np.asarray(point, dtype=float).reshape((3,))
        if target is None:
            target = np.zeros((self.length,))
        self.target = np.asarray(target, dtype=float).reshape((-1,))
        if self.target.shape[0] != self.length:
            raise ConfigurationError(f"target must have {self.length} elements, got {self.target.shape[0]}")

    def _frames(self, plant, context):
        qtype = plant.GetPositions(context).dtype
        frame = plant.GetBodyByName(self.body_name).body_frame()
        return frame, plant.world_frame(), _promote(self.point, qtype)

    def value(self, plant, context):
        frame, world, point = self._frames(plant, context)
        pos = plant.CalcPointsPositions(context, frame, point.reshape((3, 1)), world)
        return np.reshape(pos, (-1,))[self.active_directions] - self.target

    def jacobian(self, plant, context):
        frame, world, point = self._frames(plant, context)
        J = plant.CalcJacobianTranslationalVelocity(context, JacobianWrtVariable.kV, frame, point, world, world)
        return J[self.active_directions, :]

    def jacobian_dot_times_v(self, plant, context):
        frame, world, point = self._frames(plant, context)
        Jdotv = plant.CalcBiasTranslationalAcceleration(context, JacobianWrtVariable.kV, frame, point, world, world)
        return np.reshape(Jdotv, (-1,))[self.active_directions]

    def add_fixed_normal_friction_constraints(self, mu, normal_index=None):
        """
        Add a linearized friction cone on the constraint force, assuming the contact normal is fixed along one of the active directions

        The constraints are fn >= 0 and mu*fn +/- ft >= 0 for every tangential direction ft

        Arguments:
            mu: friction coefficient
            normal_index: (optional) index of the normal direction among the active rows. Default is the last active row
        """
        if normal_index is None:
            normal_index = self.length - 1
        self.add_force_constraint(FrictionConeConstraint.linearized(self.length, mu, normal_index))
        return self

class FrictionConeConstraint():
    """
    Linear inequality lb <= A*f <= ub on the forces of a single kinematic constraint
    """
    def __init__(self, A, lb, ub):
        self.A = np.atleast_2d(np.asarray(A, dtype=float))
        self.lb = np.asarray(lb, dtype=float).reshape((-1,))
        self.ub = np.asarray(ub, dtype=float).reshape((-1,))
        if self.lb.shape[0] != self.A.shape[0] or self.ub.shape[0] != self.A.shape[0]:
            raise ConfigurationError(f"Bounds must have {self.A.shape[0]} elements")
        self._description = "friction_cone"

    @classmethod
    def linearized(cls, num_forces, mu, normal_index):
        if mu < 0:
            raise ConfigurationError(f"friction coefficient must be nonnegative, got {mu}")
        if normal_index < 0 or normal_index >= num_forces:
            raise ConfigurationError(f"normal index must be between 0 and {num_forces - 1}, got {normal_index}")
        normal = np.zeros((num_forces,))
        normal[normal_index] = 1.
        rows = [normal]
        for n in range(num_forces):
            if n == normal_index:
                continue
            tangent = np.zeros((num_forces,))
            tangent[n] = 1.
            rows.append(mu * normal - tangent)
            rows.append(mu * normal + tangent)
        A = np.vstack(rows)
        return cls(A, np.zeros((A.shape[0],)), np.full((A.shape[0],), np.inf))

    @property
    def num_forces(self):
        return self.A.shape[1]

    @property
    def description(self):
        return self._description

    def eval(self, forces):
        return self.A.dot(forces)

    def addToProgram(self, prog, forces):
        prog.AddLinearConstraint(self.A, self.lb, self.ub, forces).evaluator().set_description(self.description)
        return prog

class KinematicConstraintSet():
    """
    Collection of the kinematic constraints active during a single mode
    """
    def __init__(self, model, constraints):
        if model.num_positions() != model.num_velocities():
            raise ConfigurationError(f"Kinematic constraints require the number of positions ({model.num_positions()}) to equal the number of velocities ({model.num_velocities()})")
        self.model = model
        self.constraints = list(constraints)
        self._data = None

    def count_constraints(self):
        """Total number of constraint rows"""
        return sum(cstr.length for cstr in self.constraints)

    def num_constraint_objects(self):
        return len(self.constraints)

    def constraint(self, index):
        return self.constraints[index]

    def force_constraints(self):
        """Returns a list of (force constraint, rows) pairs, where rows slices the force vector of the set"""
        pairs = []
        start = 0
        for cstr in self.constraints:
            rows = slice(start, start + cstr.length)
            pairs.extend([(fc, rows) for fc in cstr.force_constraints])
            start += cstr.length
        return pairs

    @property
    def num_states(self):
        return self.model.num_states()

    @property
    def num_actuators(self):
        return self.model.num_actuators()

    def _check_dimensions(self, state, control, force=None):
        if state.shape[0] != self.model.num_states():
            raise DimensionMismatch(f"state must have {self.model.num_states()} elements, got {state.shape[0]}")
        if control.shape[0] != self.model.num_actuators():
            raise DimensionMismatch(f"control must have {self.model.num_actuators()} elements, got {control.shape[0]}")
        if force is not None and force.shape[0] != self.count_constraints():
            raise DimensionMismatch(f"force must have {self.count_constraints()} elements, got {force.shape[0]}")

    def _calc_terms(self, state, control):
        """Set the state of a fresh context and return the kinematic and dynamic terms shared by all evaluations"""
        plant, context = self.model.autodiff_or_float(np.concatenate([state, control], axis=0))
        dtype = "float" if plant is self.model.multibody else object
        state, control = _promote(state, dtype), _promote(control, dtype)
        plant.SetPositionsAndVelocities(context, state)
        nv = self.model.num_velocities()
        v = state[-nv:]
        if self.constraints:
            c = np.concatenate([cstr.value(plant, context) for cstr in self.constraints], axis=0)
            J = np.concatenate([cstr.jacobian(plant, context) for cstr in self.constraints], axis=0)
            Jdotv = np.concatenate([cstr.jacobian_dot_times_v(plant, context) for cstr in self.constraints], axis=0)
        else:
            c = np.zeros((0,))
            J = np.zeros((0, nv))
            Jdotv = np.zeros((0,))
        M = self.model.mass_matrix(plant, context)
        B = self.model.actuation_matrix(plant)
        f = B.dot(control) - self.model.bias_forces(plant, context)
        return v, c, J, Jdotv, M, f

    def evaluate(self, state, control, force):
        """
        Evaluate the kinematic constraints and the force-augmented dynamics

        evaluate has no side effects and is safe to use inside constraint evaluators

        Arguments:
            state: (nx,) array, the state (q, v)
            control: (nu,) array
            force: (nc,) array of constraint forces
        Return values:
            KinematicData
        """
        state, control, force = np.asarray(state), np.asarray(control), np.asarray(force)
        self._check_dimensions(state, control, force)
        v, c, J, Jdotv, M, f = self._calc_terms(state, control)
        vdot = _linear_solve(M, f + J.transpose().dot(force))
        return KinematicData(c=c,
                            J=J,
                            Jdotv=Jdotv,
                            cdot=J.dot(v),
                            cddot=J.dot(vdot) + Jdotv,
                            vdot=vdot,
                            xdot=np.concatenate([v, vdot], axis=0))

    def constrained_dynamics(self, state, control):
        """
        Solve the constrained dynamics
            [M  -J^T][dv    ] = [B*u - C*v + G]
            [J    0 ][lambda] = [-Jdot*v      ]
        for the acceleration and the consistent constraint force

        The system is solved by eliminating the acceleration using the mass matrix

        Return values:
            (vdot, force) tuple
        """
        state, control = np.asarray(state), np.asarray(control)
        self._check_dimensions(state, control)
        _, _, J, Jdotv, M, f = self._calc_terms(state, control)
        Minv_f = _linear_solve(M, f)
        if J.shape[0] == 0:
            return Minv_f, np.zeros((0,))
        Minv_Jt = _linear_solve(M, J.transpose())
        force = _linear_solve(J.dot(Minv_Jt), -Jdotv - J.dot(Minv_f))
        return Minv_f + Minv_Jt.dot(force), force

    def update_data(self, state, control, force):
        """Evaluate the constraint set and store the result for the getter methods"""
        self._data = self.evaluate(state, control, force)
        return self._data

    @property
    def data(self):
        if self._data is None:
            raise RuntimeError("No kinematic data is available. Call update_data first")
        return self._data

    def getC(self):
        return self.data.c

    def getJ(self):
        return self.data.J

    def getJdotv(self):
        return self.data.Jdotv

    def getCDot(self):
        return self.data.cdot

    def getCDDot(self):
        return self.data.cddot

    def getXDot(self):
        return self.data.xdot
