"""
Constraint implementations for hybrid direct collocation

October 19, 2026
"""
import enum
import abc

import numpy as np
import pydrake.autodiffutils as ad

from pydircon.exceptions import DimensionMismatch, ConfigurationError

class KinematicConstraintType(enum.Enum):
    """Enforcement level of a kinematic constraint row at a knot point"""
    ALL = 3         # value, velocity, and acceleration
    VALUE_ONLY = 2  # value and acceleration
    OMIT = 0        # not enforced

    @classmethod
    def from_value(cls, value):
        """Convert a KinematicConstraintType or its name to a KinematicConstraintType"""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ConfigurationError(f"Unknown kinematic constraint type {value}. Must be one of {[t.name for t in cls]}")

class MultibodyConstraint(abc.ABC):
    """
    Class template for implementing constraints related to multibody dynamics
    """
    def __init__(self, constraint_set):
        self.constraint_set = constraint_set
        self._description = "multibody_constraint"

    def __call__(self, dvals):
        """Wrapper for eval, supports single input needed to work with MathematicalProgram"""
        dvals = np.asarray(dvals)
        if dvals.shape[0] != self.num_vars:
            raise DimensionMismatch(f"{type(self).__name__} expects {self.num_vars} decision variables, got {dvals.shape[0]}")
        args = self.parse(dvals)
        return self.eval(*args)

    @abc.abstractmethod
    def eval(self, *args):
        raise NotImplementedError

    @abc.abstractmethod
    def parse(self, dvals):
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def num_vars(self):
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def num_constraints(self):
        raise NotImplementedError

    @property
    def lower_bound(self):
        return np.zeros((self.num_constraints,))

    @property
    def upper_bound(self):
        return np.zeros((self.num_constraints,))

    @property
    def num_states(self):
        return self.constraint_set.num_states

    @property
    def num_actuators(self):
        return self.constraint_set.num_actuators

    @property
    def num_forces(self):
        return self.constraint_set.count_constraints()

    def addToProgram(self, prog, *args):
        dvars = np.concatenate(args)
        prog.AddConstraint(self, lb=self.lower_bound, ub=self.upper_bound, vars=dvars, description=self.description)
        return prog

    def linearize(self, *args):
        """
        returns a linearization of the constraint
        For the constraint function:
            g(x)
        The linearization returns the parameters (A, b) such that
            g(x + dx) ~= A*dx + b
        The parameters:
            b = g(x)
            A = dg/dx
        """
        dvals = np.concatenate(args)
        # Promote to AutoDiffType
        ad_vals = np.squeeze(ad.InitializeAutoDiff(dvals), axis=1)
        fcn_ad = self(ad_vals)
        return ad.ExtractGradient(fcn_ad), np.reshape(ad.ExtractValue(fcn_ad), (-1,))

    @property
    def description(self):
        return self._description

    @description.setter
    def description(self, text):
        self._description = str(text)

class DynamicsCollocationConstraint(MultibodyConstraint):
    """
    Implicit Hermite-Simpson collocation of the constrained dynamics over a single interval

    The decision variables are ordered
        (h, x_k, x_{k+1}, u_k, u_{k+1}, lambda_k, lambda_{k+1}, lambda_c, gamma_c)
    where lambda_c is the constraint force at the midpoint and gamma_c is a slack on the constraint velocity at the midpoint, entering the position derivative as J^T*gamma_c.
    """
    def __init__(self, constraint_set):
        super(DynamicsCollocationConstraint, self).__init__(constraint_set)
        self._description = "collocation_dynamics"

    @property
    def num_vars(self):
        return 1 + 2*self.num_states + 2*self.num_actuators + 4*self.num_forces

    @property
    def num_constraints(self):
        return self.num_states

    def addToProgram(self, prog, timestep, state0, state1, control0, control1, force0, force1, collocation_force, collocation_slack):
        """Thin wrapper showing call syntax for DynamicsCollocationConstraint.addToProgram"""
        return super(DynamicsCollocationConstraint, self).addToProgram(prog, timestep, state0, state1, control0, control1, force0, force1, collocation_force, collocation_slack)

    def parse(self, dvals):
        nx, nu, nl = self.num_states, self.num_actuators, self.num_forces
        splits = np.cumsum([1, nx, nx, nu, nu, nl, nl, nl])
        return np.split(dvals, splits)

    def eval(self, timestep, state0, state1, control0, control1, force0, force1, collocation_force, collocation_slack):
        h = timestep[0]
        # Constrained dynamics at the knot points
        xdot0 = self.constraint_set.evaluate(state0, control0, force0).xdot
        xdot1 = self.constraint_set.evaluate(state1, control1, force1).xdot
        # Hermite interpolation at the midpoint
        state_c = 0.5 * (state0 + state1) + h/8. * (xdot0 - xdot1)
        xdot_interp = -1.5 * (state0 - state1)/h - 0.25 * (xdot0 + xdot1)
        control_c = 0.5 * (control0 + control1)
        # Constrained dynamics at the midpoint, with the velocity slack
        data = self.constraint_set.evaluate(state_c, control_c, collocation_force)
        nv = data.J.shape[1]
        slack = np.concatenate([data.J.transpose().dot(collocation_slack), np.zeros((nv,))], axis=0)
        return data.xdot + slack - xdot_interp

class KinematicPointConstraint(MultibodyConstraint):
    """
    Enforces the kinematic constraints of a mode at a single knot point

    The decision variables are ordered (x, u, lambda, offset). For each constraint row i, the value residual is
        c_i(q) - offset_j   if row i is relative (offset_j is the offset of the j-th relative row)
        c_i(q)              otherwise
    Depending on the KinematicConstraintType of the row, the value, velocity, and acceleration residuals are enforced. The output is ordered as the enforced values, then the enforced velocities, then the enforced accelerations.
    """
    def __init__(self, constraint_set, relative=None, constraint_type=KinematicConstraintType.ALL):
        super(KinematicPointConstraint, self).__init__(constraint_set)
        nc = self.num_forces
        if relative is None:
            relative = [False] * nc
        relative = [bool(r) for r in relative]
        if len(relative) != nc:
            raise ConfigurationError(f"relative must have {nc} elements, got {len(relative)}")
        if isinstance(constraint_type, (list, tuple)):
            types = [KinematicConstraintType.from_value(t) for t in constraint_type]
        else:
            types = [KinematicConstraintType.from_value(constraint_type)] * nc
        if len(types) != nc:
            raise ConfigurationError(f"constraint_type must have {nc} elements, got {len(types)}")
        self.relative = relative
        self.constraint_type = types
        # Map from offset variables to constraint rows
        rel_rows = [n for n, r in enumerate(relative) if r]
        self._offset_map = np.zeros((nc, len(rel_rows)))
        for j, n in enumerate(rel_rows):
            self._offset_map[n, j] = 1.
        self._value_rows = [n for n, t in enumerate(types) if t is not KinematicConstraintType.OMIT]
        self._velocity_rows = [n for n, t in enumerate(types) if t is KinematicConstraintType.ALL]
        self._accel_rows = list(self._value_rows)
        self._description = "kinematic_constraint"

    @property
    def num_relative(self):
        return self._offset_map.shape[1]

    @property
    def num_vars(self):
        return self.num_states + self.num_actuators + self.num_forces + self.num_relative

    @property
    def num_constraints(self):
        return len(self._value_rows) + len(self._velocity_rows) + len(self._accel_rows)

    def addToProgram(self, prog, state, control, force, offset):
        """Thin wrapper showing call syntax for KinematicPointConstraint.addToProgram"""
        return super(KinematicPointConstraint, self).addToProgram(prog, state, control, force, offset)

    def parse(self, dvals):
        splits = np.cumsum([self.num_states, self.num_actuators, self.num_forces])
        return np.split(dvals, splits)

    def eval(self, state, control, force, offset):
        data = self.constraint_set.evaluate(state, control, force)
        value = data.c - self._offset_map.dot(offset)
        return np.concatenate([value[self._value_rows], data.cdot[self._velocity_rows], data.cddot[self._accel_rows]], axis=0)
