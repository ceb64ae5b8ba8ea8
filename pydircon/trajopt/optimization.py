"""
Solver selection, result reporting, and logging for MathematicalProgram-based optimization problems

October 19, 2026
"""
import re, time, warnings
from collections import defaultdict

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.ticker import FormatStrFormatter
from pydrake.all import MathematicalProgram, SnoptSolver, IpoptSolver, ChooseBestSolver, MakeSolver

import pydircon.utilities as utils
import pydircon.decorators as deco
from pydircon.exceptions import SolverFailure

# Name of the exit status field in the solver details, by solver name
_EXITCODE_FIELDS = {SnoptSolver.id().name(): 'info', IpoptSolver.id().name(): 'status'}

class OptimizationMixin():
    def __init__(self):
        super().__init__()
        self._prog = MathematicalProgram()
        self._solver = None
        self.solver_options = {}
        self._logger = OptimizationLogger(self)
        self._log_enabled = False

    def enableLogging(self):
        self._log_enabled = True

    def disableLogging(self):
        self._log_enabled = False

    def useIpoptSolver(self):
        self.solver = IpoptSolver()

    def useSnoptSolver(self):
        self.solver = SnoptSolver()

    def setSolverOptions(self, options_dict):
        self.solver_options.update(options_dict)

    def useBestSolver(self):
        """Use the solver Drake chooses for the current costs and constraints"""
        self.solver = MakeSolver(ChooseBestSolver(self.prog))

    def _prepare_solver(self):
        """Choose a solver if none is set, check it can handle the program, and pass it the solver options"""
        if self._solver is None:
            # Bypass the setter, which clears options set before the solver was chosen
            self._solver = MakeSolver(ChooseBestSolver(self.prog))
        solver_id = self.solver.solver_id()
        if not self.solver.AreProgramAttributesSatisfied(self.prog):
            raise ValueError(f"The costs and constraints of {type(self).__name__} cannot be solved with {solver_id.name()}. Choose a different solver")
        for key, value in self.solver_options.items():
            self.prog.SetSolverOption(solver_id, key, value)
        return solver_id.name()

    @deco.timer
    def solve(self):
        """Solve the optimization problem, warning with SolverFailure when the solver reports failure"""
        name = self._prepare_solver()
        print(f"Solving {type(self).__name__} with {name}")
        start = time.perf_counter()
        result = self.solver.Solve(self.prog)
        elapsed = time.perf_counter() - start
        if not result.is_success():
            warnings.warn(f"{name} failed to solve {type(self).__name__}: {result.get_solution_result()}", SolverFailure)
        if self._log_enabled:
            self._logger.log(result, elapsed)
        return result

    def get_decision_variable_dictionary(self):
        """
            Returns the decision variables in a dictionary, organized by variable name
            Variables added as matrices are returned as 2D arrays, variables added as vectors are returned as 1D arrays
        """
        named_vars = defaultdict(list)
        for dvar in self.prog.decision_variables():
            name_parts = re.split(r'\(|\)', dvar.get_name())
            index = tuple(int(idx) for idx in name_parts[1].split(',')) if len(name_parts) > 1 and name_parts[1] else (0,)
            named_vars[name_parts[0]].append((index, dvar))
        var_dict = {}
        for name, values in named_vars.items():
            shape = tuple(max(idx[n] for idx, _ in values) + 1 for n in range(len(values[0][0])))
            array = np.empty(shape, dtype=object)
            for index, dvar in values:
                array[index] = dvar
            var_dict[name] = array
        return var_dict

    def _values_source(self, result=None):
        """Returns a function mapping decision variables to the solution in result, or to the initial guess when result is None"""
        return self.prog.GetInitialGuess if result is None else result.GetSolution

    def _variable_values(self, result=None):
        getter = self._values_source(result)
        return {name: getter(dvars) for name, dvars in self.get_decision_variable_dictionary().items()}

    @staticmethod
    def exitcode(result):
        """Solver-specific exit status of a MathematicalProgramResult, or 0 for solvers without one"""
        attribute = _EXITCODE_FIELDS.get(result.get_solver_id().name())
        if attribute is None:
            return 0
        return getattr(result.get_solver_details(), attribute)

    def result_to_dict(self, result):
        """
            Store the data in MathematicalProgramResult in a dictionary
        """
        soln = self._variable_values(result)
        soln.update({'total_cost': result.get_optimal_cost(),
                    'costs': self.get_costs(result),
                    'constraints': self.get_constraints(result),
                    'success': result.is_success(),
                    'solver': result.get_solver_id().name(),
                    'exitcode': self.exitcode(result)})
        return soln

    def get_costs(self, result=None):
        """Total value of each cost, grouped by description"""
        getter = self._values_source(result)
        costs = defaultdict(float)
        for binding in self.prog.GetAllCosts():
            value = binding.evaluator().Eval(getter(binding.variables()))
            costs[binding.evaluator().get_description()] += float(np.sum(value))
        return costs

    def get_constraints(self, result=None):
        """Total absolute violation of each constraint, grouped by description"""
        getter = self._values_source(result)
        cstrs = defaultdict(float)
        for binding in self.prog.GetAllConstraints():
            evaluator = binding.evaluator()
            value = evaluator.Eval(getter(binding.variables()))
            cstrs[evaluator.get_description()] += bound_violation(value, evaluator.lower_bound(), evaluator.upper_bound())
        return cstrs

    def initial_guess_dictionary(self):
        """Create a results dictionary based on the initial guess"""
        soln = self._variable_values()
        soln['costs'] = self.get_costs()
        soln['constraints'] = self.get_constraints()
        return soln

    @property
    def solver(self):
        return self._solver

    @solver.setter
    def solver(self, solver):
        name = solver.solver_id().name()
        assert solver.available(), f"{name} is not available in this installation of Drake"
        assert solver.enabled(), f"{name} is not enabled at runtime"
        self._solver = solver
        self.solver_options = {}

    @property
    def prog(self):
        return self._prog

    @property
    def logger(self):
        return self._logger

def bound_violation(value, lb, ub):
    """Sum of the absolute distances from value to the interval [lb, ub]. Infinite bounds are never violated"""
    below = np.where(np.isinf(lb), 0., np.maximum(lb - value, 0.))
    above = np.where(np.isinf(ub), 0., np.maximum(value - ub, 0.))
    return float(np.sum(below) + np.sum(above))

class OptimizationLogger():
    """Records the outcome and initial guess of every solve of an OptimizationMixin problem"""
    def __init__(self, problem):
        if not isinstance(problem, OptimizationMixin):
            raise TypeError(f"Cannot log problems of type {type(problem).__name__}, problem must inherit from OptimizationMixin")
        self.problem = problem
        self.logs = []
        self.guess_logs = []

    def __len__(self):
        return len(self.logs)

    def save(self, filename):
        """
            Save the logs to a file. The problem itself is not saved
        """
        utils.save(filename, {'logs': self.logs, 'guess_logs': self.guess_logs})

    @classmethod
    def load(cls, filename):
        """
            Load the logs from a file. The returned logger is attached to an empty OptimizationMixin
        """
        data = utils.load(utils.FindResource(filename))
        logger = cls(OptimizationMixin())
        logger.logs, logger.guess_logs = data['logs'], data['guess_logs']
        return logger

    def log(self, result, elapsed=None):
        """Log the solution and the initial guess used to obtain it"""
        entry = self.problem.result_to_dict(result)
        if elapsed is not None:
            entry['solvetime'] = elapsed
        self.logs.append(entry)
        self.guess_logs.append(self.problem.initial_guess_dictionary())

    def history(self, field):
        """
            Collect a logged dictionary field ('costs' or 'constraints') across all solves

            Returns a dictionary of arrays, one entry per solve. Terms missing from a solve are recorded as zero
        """
        keys = sorted({key for entry in self.logs for key in entry[field]})
        return {key: np.array([entry[field].get(key, 0.) for entry in self.logs]) for key in keys}

    def cost_log_array(self):
        return self.history('costs')

    def constraint_log_array(self):
        return self.history('constraints')

    @deco.showable_fig
    @deco.saveable_fig
    def plot(self):
        """
            Plots the exit code, solve time, costs, and constraint violations against the problem number
        """
        fig, axs = plt.subplots(4, 1, sharex=True, figsize=(8, 10))
        problems = np.arange(len(self.logs))
        axs[0].scatter(problems, [entry['exitcode'] for entry in self.logs])
        axs[0].set_ylabel('Exit Code')
        axs[1].plot(problems, [entry.get('solvetime', np.nan) for entry in self.logs], 'o-', linewidth=1.5)
        axs[1].set_ylabel('Solve time (s)')
        self._plot_history(axs[2], self.cost_log_array(), 'Cost')
        self._plot_history(axs[3], self.constraint_log_array(), 'Violation')
        axs[3].yaxis.set_major_formatter(FormatStrFormatter('%.2e'))
        axs[-1].set_xlabel('Problem Number')
        return fig, axs

    @staticmethod
    def _plot_history(ax, history, label):
        for key, value in history.items():
            ax.plot(np.arange(value.shape[0]), value, linewidth=1.5, label=key)
        ax.set_ylabel(label)
        ax.set_yscale('symlog', linthresh=1e-6)
        ax.grid(True)
        if history:
            ax.legend(fontsize='small')
