"""
General utilities for saving results, locating package resources, checking programs, and plotting trajectories
"""
import os
import pickle
import numpy as np
from pydrake.autodiffutils import AutoDiffXd
from pydrake.solvers import SnoptSolver
import matplotlib.pyplot as plt

import pydircon.decorators as deco

# SNOPT INFO codes reported through SnoptSolverDetails
SNOPT_DECODER = {
    1: "optimality conditions satisfied",
    2: "feasible point found",
    3: "requested accuracy could not be achieved",
    11: "infeasible linear constraints",
    12: "infeasible linear equalities",
    13: "nonlinear infeasibilities minimized",
    14: "infeasibilities minimized",
    21: "unbounded objective",
    22: "constraint violation limit reached",
    31: "iteration limit reached",
    32: "major iteration limit reached",
    33: "the superbasics limit is too small",
    41: "current point cannot be improved",
    42: "singular basis",
    43: "cannot satisfy the general constraints",
    44: "ill-conditioned null-space basis",
    51: "incorrect objective derivatives",
    52: "incorrect constraint derivatives",
    61: "undefined function at the first feasible point",
    62: "undefined function at the initial point",
    63: "unable to proceed in undefined region",
}

def save(filename, data):
    """ pickle data in the specified filename, creating the directory if necessary """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filename, "wb") as output:
        pickle.dump(data, output, pickle.HIGHEST_PROTOCOL)

def load(filename):
    """ unpickle the data in the specified filename """
    with open(filename, "rb") as source:
        return pickle.load(source)

def FindResource(filename):
    """Return the absolute path to filename, searching the working directory and then the package directory"""
    candidates = [os.path.abspath(filename), os.path.join(os.path.dirname(os.path.abspath(__file__)), filename)]
    for candidate in candidates:
        if os.path.isfile(candidate):
            return candidate
    raise FileNotFoundError(f"{filename} not found in the working directory or in the pydircon package")

def _evaluates(binding, value):
    """Evaluate the binding at a constant point, returning the name of the exception raised or None"""
    try:
        binding.evaluator().Eval([value] * len(binding.variables()))
    except (RuntimeError, ValueError) as err:
        return type(err).__name__
    return None

def CheckProgram(prog):
    """
    Return true if all the generic costs and constraints in the MathematicalProgram evaluate with both floats and AutoDiffXd

    Failures are printed with the description of the offending cost or constraint

    Arguments:
        prog: a MathematicalProgram pyDrake object
    """
    status = True
    for binding in prog.generic_costs() + prog.generic_constraints():
        for label, value in [('floats', 1.), ('AutoDiffs', AutoDiffXd(1.))]:
            error = _evaluates(binding, value)
            if error is not None:
                status = False
                print(f"Evaluating {binding.evaluator().get_description()} with {label} produces a {error}")
    return status

def GetKnotsFromTrajectory(trajectory):
    """Return the breaks of a PiecewisePolynomial and its values at the breaks"""
    breaks = np.asarray(trajectory.get_segment_times())
    return breaks, trajectory.vector_values(breaks)

def printProgramReport(result, prog=None, filename=None, terminal=True):
    """print out information about the result of the mathematical program """
    solver = result.get_solver_id().name()
    lines = [f"Optimization successful? {result.is_success()}",
            f"Optimal cost = {result.get_optimal_cost()}",
            f"Solved with {solver}"]
    if solver == SnoptSolver.id().name():
        code = result.get_solver_details().info
        lines.append(f"SNOPT Exit Status {code}: {SNOPT_DECODER.get(code, 'unknown exit code')}")
        if prog is not None:
            # Keep only the constraint names, dropping the row indices
            infeasible = {name.split("[")[0] for name in result.GetInfeasibleConstraintNames(prog)}
            lines.append(f"Infeasible constraints: {infeasible}")
    report = "\n".join(lines) + "\n"
    if filename is not None:
        with open(filename, "w") as file:
            file.write(report)
    elif terminal:
        print(report)
    return report

@deco.showable_fig
@deco.saveable_fig
def plot_trajectories(state, control, forces=None):
    """
    Plot reconstructed trajectories at their knot points

    Arguments:
        state: PiecewisePolynomial state trajectory
        control: PiecewisePolynomial control trajectory
        forces: (optional) list of PiecewisePolynomial force trajectories, one per mode. Modes without forces may be None
    """
    forces = [force for force in (forces or []) if force is not None and force.rows() > 0]
    fig, axs = plt.subplots(3 if forces else 2, 1, sharex=True)
    for ax, traj, label in zip(axs, [state, control], ['State', 'Control']):
        t, values = GetKnotsFromTrajectory(traj)
        ax.plot(t, values.transpose(), linewidth=1.5)
        ax.set_ylabel(label)
    for force in forces:
        t, values = GetKnotsFromTrajectory(force)
        axs[2].plot(t, values.transpose(), linewidth=1.5)
    if forces:
        axs[2].set_ylabel('Force')
    axs[-1].set_xlabel('Time (s)')
    return fig, axs
