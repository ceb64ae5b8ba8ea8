"""
Hybrid direct collocation for systems with kinematic constraints

ModeSequenceTranscription transcribes a trajectory optimization problem over a fixed sequence of modes. Each mode has its own set of active kinematic constraints (for example, a set of feet in contact with the ground). Within each mode, the dynamics are enforced by Hermite-Simpson collocation of the constrained dynamics, and the kinematic constraints are enforced at every knot point.

Consecutive modes share a knot point: the last knot of one mode and the first knot of the next have the same time, positions, and controls. The velocity at the first knot of every mode after the first is a separate post-impact velocity variable, so the velocity may jump across the mode transition.

October 19, 2026
"""
import warnings
from datetime import date

import numpy as np
from pydrake.all import PiecewisePolynomial, SnoptSolver, IpoptSolver

import pydircon.utilities as utils
from pydircon.exceptions import ConfigurationError, DimensionMismatch, SolverFailure
from pydircon.trajopt.constraints import DynamicsCollocationConstraint, KinematicPointConstraint
from pydircon.trajopt.options import ModeOptions
from pydircon.trajopt.optimization import OptimizationMixin

class ModeSequenceTranscription(OptimizationMixin):
    """
    Implements hybrid trajectory optimization with direct collocation of the constrained dynamics
    """
    def __init__(self, model, num_time_samples, minimum_timestep, maximum_timestep, constraints, options):
        """
        Create MathematicalProgram with decision variables and add constraints for the constrained dynamics and the kinematic constraints of every mode

            Arguments:
                model: a MultibodyDynamics model
                num_time_samples: (list of int) the number of knot points in each mode
                minimum_timestep: (list of float) the minimum timestep in each mode
                maximum_timestep: (list of float) the maximum timestep in each mode
                constraints: (list of KinematicConstraintSet) the active constraints in each mode
                options: (list of ModeOptions) the options for each mode
        """
        num_time_samples = [int(N) for N in np.atleast_1d(num_time_samples)]
        minimum_timestep = [float(h) for h in np.atleast_1d(minimum_timestep)]
        maximum_timestep = [float(h) for h in np.atleast_1d(maximum_timestep)]
        constraints, options = list(constraints), list(options)
        self._validate(model, num_time_samples, minimum_timestep, maximum_timestep, constraints, options)
        super(ModeSequenceTranscription, self).__init__()
        # Store parameters
        self.model = model
        self.constraints = constraints
        self.options = options
        self.mode_lengths = num_time_samples
        self.minimum_timestep = minimum_timestep
        self.maximum_timestep = maximum_timestep
        self.num_modes = len(num_time_samples)
        self._mode_start = [0]
        for N in num_time_samples[:-1]:
            self._mode_start.append(self._mode_start[-1] + N - 1)
        self.num_time_samples = sum(num_time_samples) - (self.num_modes - 1)
        # Create a string for recording the optimization parameters
        self._text = {"header": f"{type(self).__name__} with {self.model.str()}\n",
        "StateConstraints": '',
        "RunningCosts": '',
        "FinalCosts": '',
        "ControlLimits": 'None',
        "EqualTime": 'False'}
        self._text['header'] += f"\tModes: {self.num_modes}\n\tKnot points: {self.num_time_samples}\n\tTime range: [{self._time_range(minimum_timestep)},{self._time_range(maximum_timestep)}]\n"
        # Add decision variables and constraints
        self._add_decision_variables()
        for mode in range(self.num_modes):
            self._add_mode_variables(mode)
            self._add_timestep_constraints(mode)
            self._add_dynamic_constraints(mode)
            self._add_kinematic_constraints(mode)
            self._add_force_constraints(mode)
            self._add_force_cost(mode)
        # Initialize the timesteps
        self.set_initial_timesteps()

    @staticmethod
    def _validate(model, num_time_samples, minimum_timestep, maximum_timestep, constraints, options):
        """Check the problem definition before creating any decision variables"""
        num_modes = len(num_time_samples)
        if num_modes == 0:
            raise ConfigurationError("At least one mode is required")
        if model.num_positions() != model.num_velocities():
            raise ConfigurationError(f"The model must have equal numbers of positions and velocities. Got {model.num_positions()} positions and {model.num_velocities()} velocities")
        for name, values in zip(['minimum_timestep', 'maximum_timestep', 'constraints', 'options'], [minimum_timestep, maximum_timestep, constraints, options]):
            if len(values) != num_modes:
                raise ConfigurationError(f"{name} must have one entry per mode. Expected {num_modes}, got {len(values)}")
        for mode, (N, hmin, hmax, cset, opts) in enumerate(zip(num_time_samples, minimum_timestep, maximum_timestep, constraints, options)):
            if N < 2:
                raise ConfigurationError(f"Mode {mode} must have at least 2 knot points, got {N}")
            if not 0 < hmin <= hmax:
                raise ConfigurationError(f"Mode {mode} timestep bounds must satisfy 0 < minimum <= maximum, got [{hmin}, {hmax}]")
            if cset.model is not model:
                raise ConfigurationError(f"The constraints for mode {mode} are defined on a different model")
            if opts.num_constraints != cset.count_constraints():
                raise ConfigurationError(f"The options for mode {mode} describe {opts.num_constraints} constraints, but the mode has {cset.count_constraints()}")

    def _time_range(self, timesteps):
        return sum((N - 1) * h for N, h in zip(self.mode_lengths, timesteps))

    def _new_variables(self, rows, cols, name):
        """Create a (rows, cols) array of decision variables. Empty arrays are returned when there are no rows"""
        if rows == 0:
            return np.empty((0, cols), dtype=object)
        return self.prog.NewContinuousVariables(rows=rows, cols=cols, name=name)

    def _add_decision_variables(self):
        """
            adds the decision variables for timesteps, states, and controls to the mathematical program, but does not initialize the values of the decision variables.

            _add_decision_variables is called during object construction
        """
        # Add time variables to the program
        self.h = self.prog.NewContinuousVariables(self.num_time_samples - 1, 'h')
        # Add state and control variables to the program
        self.x = self.prog.NewContinuousVariables(rows=self.model.num_states(), cols=self.num_time_samples, name='x')
        self.u = self.prog.NewContinuousVariables(rows=self.model.num_actuators(), cols=self.num_time_samples, name='u')
        # Storage for the per-mode variables
        self._forces = []
        self._collocation_forces = []
        self._collocation_slacks = []
        self._offsets = []
        self._v_post = []

    def _add_mode_variables(self, mode):
        """Add the constraint force, collocation force, collocation slack, offset, and post-impact velocity variables for a single mode"""
        N = self.mode_lengths[mode]
        nc = self.constraints[mode].count_constraints()
        self._forces.append(self._new_variables(nc, N, f'lambda[{mode}]'))
        self._collocation_forces.append(self._new_variables(nc, N-1, f'lambda_c[{mode}]'))
        self._collocation_slacks.append(self._new_variables(nc, N-1, f'gamma_c[{mode}]'))
        nrel = self.options[mode].num_relative
        if nrel > 0:
            self._offsets.append(self.prog.NewContinuousVariables(nrel, f'offset[{mode}]'))
        else:
            self._offsets.append(np.empty((0,), dtype=object))
        if mode > 0:
            self._v_post.append(self.prog.NewContinuousVariables(self.model.num_velocities(), f'v_post[{mode}]'))
        else:
            self._v_post.append(None)

    def _mode_intervals(self, mode):
        start = self._mode_start[mode]
        return list(range(start, start + self.mode_lengths[mode] - 1))

    def _add_timestep_constraints(self, mode):
        """Bound the timesteps of the mode and constrain them to be equal"""
        intervals = self._mode_intervals(mode)
        for k in intervals:
            self.prog.AddBoundingBoxConstraint(self.minimum_timestep[mode], self.maximum_timestep[mode], self.h[k]).evaluator().set_description('TimestepLimits')
        num_h = len(intervals)
        if num_h > 1:
            M = np.eye(num_h-1, num_h) - np.eye(num_h-1, num_h, 1)
            self.prog.AddLinearEqualityConstraint(Aeq=M, beq=np.zeros((num_h-1,)), vars=self.h[intervals]).evaluator().set_description('ModeTimestepConstraints')

    def _add_dynamic_constraints(self, mode):
        """Add collocation constraints on the constrained dynamics between every pair of knot points in the mode"""
        dynamics = DynamicsCollocationConstraint(self.constraints[mode])
        forces = self._forces[mode]
        for j, k in enumerate(self._mode_intervals(mode)):
            dynamics.addToProgram(self.prog,
                                self.h[k:k+1],
                                self.state_vars_by_mode(mode, j),
                                self.state_vars_by_mode(mode, j+1),
                                self.u[:, k],
                                self.u[:, k+1],
                                forces[:, j],
                                forces[:, j+1],
                                self._collocation_forces[mode][:, j],
                                self._collocation_slacks[mode][:, j])

    def _add_kinematic_constraints(self, mode):
        """Add the kinematic constraints at every knot point, with separate enforcement at the first and last knots"""
        cset, opts = self.constraints[mode], self.options[mode]
        if cset.count_constraints() == 0:
            return
        N = self.mode_lengths[mode]
        start = KinematicPointConstraint(cset, opts.relative, opts.start_type)
        start.description = 'kinematic_start'
        interior = KinematicPointConstraint(cset, opts.relative, opts.interior_type)
        interior.description = 'kinematic_interior'
        end = KinematicPointConstraint(cset, opts.relative, opts.end_type)
        end.description = 'kinematic_end'
        knot_constraints = [(0, start)] + [(j, interior) for j in range(1, N-1)] + [(N-1, end)]
        for j, cstr in knot_constraints:
            if cstr.num_constraints == 0:
                continue
            cstr.addToProgram(self.prog,
                            self.state_vars_by_mode(mode, j),
                            self.u[:, self._mode_start[mode] + j],
                            self._forces[mode][:, j],
                            self._offsets[mode])

    def _add_force_constraints(self, mode):
        """Add the force constraints (e.g. friction cones) of every kinematic constraint at every knot point"""
        forces = self._forces[mode]
        for fcstr, rows in self.constraints[mode].force_constraints():
            for j in range(self.mode_lengths[mode]):
                fcstr.addToProgram(self.prog, forces[rows, j])

    def _add_force_cost(self, mode):
        """Add a quadratic regularization on the constraint forces"""
        weight = self.options[mode].force_cost
        nc = self.constraints[mode].count_constraints()
        if weight == 0 or nc == 0:
            return
        Q = 2 * weight * np.eye(nc)
        b = np.zeros((nc,))
        for j in range(self.mode_lengths[mode]):
            self.prog.AddQuadraticCost(Q, b, self._forces[mode][:, j]).evaluator().set_description('ForceCost')

    def generate_report(self, result=None):
        # Generate a report string. Start with the header
        report = self._text['header']
        # Add in the date
        report += f"\nDate: {date.today().strftime('%B %d, %Y')}\n"
        # Add the total number of variables, the number of costs, and the number of constraints
        report += f"\nProblem has {self.prog.num_vars()} variables, {len(self.prog.GetAllCosts())} cost terms, and {len(self.prog.GetAllConstraints())} constraints\n"
        # Describe the modes
        for mode in range(self.num_modes):
            report += f"\nMode {mode}: {self.mode_lengths[mode]} knot points starting at knot {self._mode_start[mode]}, timesteps in [{self.minimum_timestep[mode]}, {self.maximum_timestep[mode]}], {self.constraints[mode].count_constraints()} kinematic constraints\n"
            report += str(self.options[mode])
        report += f"\nEqual time steps enforced? {self._text['EqualTime']}\n"
        report += f"\nControl Limits: {self._text['ControlLimits']}\n"
        report += f"\nState Constraints: {self._text['StateConstraints']}\n"
        report += f"\nRunning Costs: {self._text['RunningCosts']}\n"
        report += f"\nFinal Costs: {self._text['FinalCosts']}\n"
        # Concatenate the report from the solver
        if result is not None:
            report += "\n" + utils.printProgramReport(result, self.prog, terminal=False)
        if self.solver_options:
            report += f"\nSolver options:\n"
            for key, value in self.solver_options.items():
                report += f"\t {key}: {value}\n"
        return report

    @classmethod
    def build_from_config(cls, config, model, constraints):
        """
        Create a ModeSequenceTranscription from a TranscriptionConfig

        Arguments:
            config: a TranscriptionConfig
            model: a MultibodyDynamics model
            constraints: list of KinematicConstraintSets, one per mode in the configuration
        """
        constraints = list(constraints)
        if len(config.modes) != len(constraints):
            raise ConfigurationError(f"The configuration has {len(config.modes)} modes, but {len(constraints)} constraint sets were given")
        options = [ModeOptions.build_from_config(mode, cset.count_constraints()) for mode, cset in zip(config.modes, constraints)]
        trajopt = cls(model,
                    [mode.num_knots for mode in config.modes],
                    [mode.minimum_timestep for mode in config.modes],
                    [mode.maximum_timestep for mode in config.modes],
                    constraints,
                    options)
        if config.solver == 'SNOPT':
            trajopt.useSnoptSolver()
        elif config.solver == 'IPOPT':
            trajopt.useIpoptSolver()
        else:
            trajopt.useBestSolver()
        # Options are taken from the configuration matching the solver in use
        solver_configs = {SnoptSolver.id().name(): config.snopt, IpoptSolver.id().name(): config.ipopt}
        solver_config = solver_configs.get(trajopt.solver.solver_id().name())
        if solver_config is not None:
            trajopt.setSolverOptions(solver_config.solver_options)
        if config.equal_time:
            trajopt.add_equal_time_constraints()
        return trajopt

    def state_vars_by_mode(self, mode, knot):
        """
        Returns the state variables at a knot point of a mode

        The first knot of every mode after the first shares its positions with the last knot of the previous mode, but uses the post-impact velocity variables of the mode
        """
        if knot < 0 or knot >= self.mode_lengths[mode]:
            raise IndexError(f"Knot {knot} is out of range for mode {mode} with {self.mode_lengths[mode]} knots")
        k = self._mode_start[mode] + knot
        if mode > 0 and knot == 0:
            nq = self.model.num_positions()
            return np.concatenate([self.x[:nq, k], self._v_post[mode]], axis=0)
        return self.x[:, k]

    def force_vars(self, mode):
        """Returns the (nc, N) array of constraint force variables for the mode"""
        return self._forces[mode]

    def force(self, mode, knot):
        """Returns the constraint force variables at a knot point of a mode"""
        return self._forces[mode][:, knot]

    def collocation_force_vars(self, mode):
        return self._collocation_forces[mode]

    def collocation_slack_vars(self, mode):
        return self._collocation_slacks[mode]

    def offset_vars(self, mode):
        return self._offsets[mode]

    def v_post_impact_vars_by_mode(self, mode):
        """Returns the post-impact velocity variables at the start of the mode. The first mode has no post-impact velocity and returns None"""
        return self._v_post[mode]

    def num_kinematic_constraints(self, mode):
        return self.constraints[mode].count_constraints()

    def mode_start(self, mode):
        """Returns the global index of the first knot point of the mode"""
        return self._mode_start[mode]

    def timestep(self, index):
        return self.h[index]

    def state(self, index):
        return self.x[:, index]

    def input(self, index):
        return self.u[:, index]

    def set_initial_timesteps(self):
        """Set the initial timesteps to their maximum values"""
        for mode in range(self.num_modes):
            intervals = self._mode_intervals(mode)
            self.prog.SetInitialGuess(self.h[intervals], self.maximum_timestep[mode] * np.ones((len(intervals),)))

    def set_initial_guess(self, xtraj=None, utraj=None):
        """
        Set the initial guess for the states and controls

        Arguments:
            xtraj: (nx, N) array of states at the knot points
            utraj: (nu, N) array of controls at the knot points

        The post-impact velocities are initialized with the velocities at the corresponding knot points of xtraj
        """
        if xtraj is not None:
            xtraj = np.asarray(xtraj)
            if xtraj.shape != self.x.shape:
                raise DimensionMismatch(f"State guess must have shape {self.x.shape}, got {xtraj.shape}")
            self.prog.SetInitialGuess(self.x, xtraj)
            nq = self.model.num_positions()
            for mode in range(1, self.num_modes):
                self.prog.SetInitialGuess(self._v_post[mode], xtraj[nq:, self._mode_start[mode]])
        if utraj is not None:
            utraj = np.asarray(utraj)
            if utraj.shape != self.u.shape:
                raise DimensionMismatch(f"Control guess must have shape {self.u.shape}, got {utraj.shape}")
            self.prog.SetInitialGuess(self.u, utraj)

    def set_initial_force_trajectory(self, mode, force_traj=None, collocation_force_traj=None, collocation_slack_traj=None):
        """
        Set the initial guess for the force variables of a mode by sampling trajectories

        The trajectories are sampled in the time of the mode, starting at zero, using the current guess of the mode's timestep. Forces are sampled at the knot points and the collocation forces and slacks are sampled at the midpoints of the intervals. Trajectories that are None are replaced by zeros.

        Arguments:
            mode: (int) the mode index
            force_traj: PiecewisePolynomial guess for the constraint forces
            collocation_force_traj: PiecewisePolynomial guess for the collocation forces
            collocation_slack_traj: PiecewisePolynomial guess for the collocation slacks
        """
        nc = self.constraints[mode].count_constraints()
        if nc == 0:
            return
        N = self.mode_lengths[mode]
        h = self.prog.GetInitialGuess(self.h[self._mode_start[mode]])
        if np.isnan(h):
            h = self.maximum_timestep[mode]
        knots = h * np.arange(N)
        midpoints = h * (np.arange(N-1) + 0.5)
        self.prog.SetInitialGuess(self._forces[mode], self._sample_trajectory(force_traj, knots, nc))
        self.prog.SetInitialGuess(self._collocation_forces[mode], self._sample_trajectory(collocation_force_traj, midpoints, nc))
        self.prog.SetInitialGuess(self._collocation_slacks[mode], self._sample_trajectory(collocation_slack_traj, midpoints, nc))

    @staticmethod
    def _sample_trajectory(traj, times, rows):
        if traj is None:
            return np.zeros((rows, times.shape[0]))
        if traj.rows() != rows:
            raise DimensionMismatch(f"Trajectory must have {rows} rows, got {traj.rows()}")
        return traj.vector_values(times)

    def initialize_from_previous(self, result):
        """ Initialize the program from a previous solution to the same program """
        dvars = self.prog.decision_variables()
        dvals = result.GetSolution(dvars)
        self.prog.SetInitialGuess(dvars, dvals)

    def add_running_cost(self, cost_func, vars=None, name="RunningCost"):
        """
        Add a running cost to the program, integrated using the trapezoidal rule

        For each interval k, adds the cost
            h[k]/2 * (g(z[k]) + g(z[k+1]))

        When the full state array self.x is among vars, the first interval of every mode after the first starts from the post-impact state of the mode

        Arguments:
            cost_func: a scalar function of the stacked variables z
            vars: a list of (n, N) arrays of decision variables, e.g. [self.u]
            name (str, optional): a description of the cost function
        """
        if vars is None:
            return
        if type(vars) != list:
            vars = [vars]
        nz = sum(var.shape[0] for var in vars)
        integrated_cost = lambda z: 0.5 * z[0] * (cost_func(z[1:1+nz]) + cost_func(z[1+nz:]))
        for k in range(0, self.num_time_samples-1):
            new_vars = [self.h[k:k+1]] + [self._interval_start_vars(var, k) for var in vars] + [var[:, k+1] for var in vars]
            self.prog.AddCost(integrated_cost, np.concatenate(new_vars, axis=0), description=name)
        # Add string representing the cost
        varnames = ', '.join([var.item(0).get_name().split('(')[0] for var in vars])
        self._text['RunningCosts'] += f"\n\t{name}: {getattr(cost_func, '__name__', 'cost')} on {varnames}"

    def _interval_mode(self, k):
        """Returns the mode containing the interval between knots k and k+1"""
        return max(mode for mode in range(self.num_modes) if self._mode_start[mode] <= k)

    def _interval_start_vars(self, var, k):
        """Returns the variables at the start of interval k. States are taken from the mode containing the interval"""
        if var is self.x:
            mode = self._interval_mode(k)
            return self.state_vars_by_mode(mode, k - self._mode_start[mode])
        return var[:, k]

    def add_quadratic_running_cost(self, Q, b, vars=None, name="QuadraticCost"):
        """
        Add a quadratic running cost to the program

        Arguments:
            Q (numpy.array[n,n]): a square numpy array of cost weights
            b (numpy.array[n,]): a vector of offset values
            vars (list): a list of program decision variables subject to the cost
            name (str, optional): a description of the cost function
        """
        Q, b = np.atleast_2d(Q), np.reshape(b, (-1,))
        quadratic = lambda z: (z - b).dot(Q.dot(z - b))
        self.add_running_cost(quadratic, vars, name)
        self._text['RunningCosts'] += f" with weights Q = \n{Q} \n\tand bias b = \n{b}"

    def add_final_cost(self, cost_func, vars=None, name="FinalCost"):
        """Add a final cost to the program"""
        if vars is None:
            self.prog.AddCost(cost_func, self.final_state(), description=name)
            varnames = 'x'
        else:
            if type(vars) != list:
                vars = [vars]
            self.prog.AddCost(cost_func, np.concatenate(vars, axis=0), description=name)
            varnames = ', '.join([var.item(0).get_name().split('(')[0] for var in vars])
        # Add string representing the cost
        self._text['FinalCosts'] += f"\n\t{name}: {getattr(cost_func, '__name__', 'cost')} on {varnames}"

    def add_equal_time_constraints(self):
        """impose that all timesteps be equal, across all modes"""
        num_h = self.h.shape[0]
        if num_h < 2:
            return
        M = np.eye(num_h-1, num_h) - np.eye(num_h-1, num_h, 1)
        b = np.zeros((num_h-1,))
        self.prog.AddLinearEqualityConstraint(Aeq=M, beq=b, vars=self.h).evaluator().set_description('EqualTimeConstraints')
        self._text['EqualTime'] = 'True'

    def add_state_constraint(self, knotpoint, value, subset_index=None):
        """
        add a constraint to the state vector at a particular knotpoint

        Arguments:
            knotpoint (int): the global index of the knotpoint at which to add the constraint
            value (numpy.array): an array of constraint values
            subset_index: optional list of indices specifying which state variables are subject to constraint
        """
        if knotpoint < 0:
            knotpoint += self.num_time_samples
        if knotpoint < 0 or knotpoint >= self.num_time_samples:
            raise ConfigurationError(f"knotpoint must be between 0 and {self.num_time_samples - 1}")
        if subset_index is None:
            subset_index = np.array(range(0, self.x.shape[0]))
        subset_index = np.asarray(subset_index)
        value = np.reshape(np.asarray(value, dtype=float), (-1,))
        if value.shape[0] != subset_index.shape[0]:
            raise DimensionMismatch(f"value must have {subset_index.shape[0]} elements, got {value.shape[0]}")
        # Check that the input is within the joint limits
        nq = self.model.num_positions()
        qmin = self.model.multibody.GetPositionLowerLimits()
        qmax = self.model.multibody.GetPositionUpperLimits()
        q_subset = subset_index[subset_index < nq]
        q = value[subset_index < nq]
        if any(q < qmin[q_subset]):
            raise ConfigurationError("State constraint violates position lower limits")
        if any(q > qmax[q_subset]):
            raise ConfigurationError("State constraint violates position upper limits")
        # Create the constraint
        A = np.eye(value.shape[0])
        self.prog.AddLinearEqualityConstraint(Aeq=A, beq=value, vars=self.x[subset_index, knotpoint]).evaluator().set_description("StateConstraint")
        # Add string representing the state constraint
        self._text['StateConstraints'] += f"\n\tx[{subset_index}, {knotpoint}] = {value}"

    def add_control_limits(self, umin, umax):
        """
        adds actuation limit constraints at every knot point

        Arguments:
            umin (numpy.array): array of minimum control effort limits
            umax (numpy.array): array of maximum control effort limits

        umin and umax must have as many entries as there are actuators in the problem. If the control has no effort limit, use np.inf
        """
        umin, umax = np.reshape(umin, (-1,)), np.reshape(umax, (-1,))
        if umin.shape[0] != self.u.shape[0] or umax.shape[0] != self.u.shape[0]:
            raise DimensionMismatch(f"Control limits must have {self.u.shape[0]} elements")
        u_valid = np.logical_or(np.isfinite(umin), np.isfinite(umax))
        for n in range(0, self.num_time_samples):
            self.prog.AddBoundingBoxConstraint(umin[u_valid], umax[u_valid], self.u[u_valid, n]).evaluator().set_description("ControlLimits")
        self._text['ControlLimits'] = f"[{umin}, {umax}]"

    def initial_state(self):
        """returns the initial state vector"""
        return self.x[:, 0]

    def final_state(self):
        """returns the final state vector"""
        return self.x[:, -1]

    def total_time(self):
        """returns the sum of the timesteps"""
        return sum(self.h)

    def _check_result(self, result):
        if not result.is_success():
            warnings.warn(f"Reconstructing trajectories from an unsuccessful result ({result.get_solution_result()})", SolverFailure)

    @staticmethod
    def _get_solution(result, dvars):
        if dvars.size == 0:
            return np.zeros(dvars.shape)
        return result.GetSolution(dvars)

    def get_solution_times(self, result):
        """Returns a vector of times for the knotpoints in the solution"""
        h = result.GetSolution(self.h)
        t = np.concatenate((np.zeros(1,), h), axis=0)
        return np.cumsum(t)

    def reconstruct_state_trajectory(self, result):
        """
        Returns the state trajectory from the solution

        The state trajectory is a cubic Hermite spline in each mode, with the derivatives given by the constrained dynamics at the solution. At the transition between modes, the trajectory returns the state at the start of the later mode, including the post-impact velocity
        """
        self._check_result(result)
        return self._state_trajectory(result)

    def _state_trajectory(self, result):
        t = self.get_solution_times(result)
        xtraj = None
        for mode in range(self.num_modes):
            cset = self.constraints[mode]
            start = self._mode_start[mode]
            knots = range(self.mode_lengths[mode])
            states = np.column_stack([result.GetSolution(self.state_vars_by_mode(mode, j)) for j in knots])
            derivs = np.column_stack([cset.evaluate(states[:, j], result.GetSolution(self.u[:, start + j]), self._get_solution(result, self._forces[mode][:, j])).xdot for j in knots])
            mode_traj = PiecewisePolynomial.CubicHermite(t[start:start + self.mode_lengths[mode]], states, derivs)
            if xtraj is None:
                xtraj = mode_traj
            else:
                xtraj.ConcatenateInTime(mode_traj)
        return xtraj

    def reconstruct_input_trajectory(self, result):
        """Returns the input trajectory from the solution"""
        self._check_result(result)
        return self._input_trajectory(result)

    def _input_trajectory(self, result):
        t = self.get_solution_times(result)
        return PiecewisePolynomial.FirstOrderHold(t, result.GetSolution(self.u))

    def reconstruct_force_trajectory(self, result):
        """Returns a list of the constraint force trajectories in each mode. Modes without kinematic constraints return None"""
        self._check_result(result)
        return self._force_trajectories(result)

    def _force_trajectories(self, result):
        t = self.get_solution_times(result)
        ftraj = []
        for mode in range(self.num_modes):
            if self.constraints[mode].count_constraints() == 0:
                ftraj.append(None)
                continue
            start = self._mode_start[mode]
            times = t[start:start + self.mode_lengths[mode]]
            ftraj.append(PiecewisePolynomial.FirstOrderHold(times, result.GetSolution(self._forces[mode])))
        return ftraj

    def reconstruct_all_trajectories(self, result):
        """Returns state, input, and force trajectories from the solution"""
        self._check_result(result)
        state = self._state_trajectory(result)
        input = self._input_trajectory(result)
        forces = self._force_trajectories(result)
        return (state, input, forces)

    def plot_solution(self, result, show=False, savename=None):
        """Plot the state, control, and contact force trajectories in the solution"""
        state, input, forces = self.reconstruct_all_trajectories(result)
        return utils.plot_trajectories(state, input, forces, show=show, savename=savename)

    def result_to_dict(self, result):
        """ unpack the knot point values from the program result and store in a dictionary"""
        soln = super(ModeSequenceTranscription, self).result_to_dict(result)
        soln['time'] = self.get_solution_times(result)
        soln['state'] = result.GetSolution(self.x)
        soln['control'] = result.GetSolution(self.u)
        soln['force'] = [self._get_solution(result, force) for force in self._forces]
        soln['v_post'] = [None if v is None else result.GetSolution(v) for v in self._v_post]
        soln['mode_start'] = list(self._mode_start)
        return soln
