"""
Integration tests solving hybrid trajectory optimization problems

October 19, 2026
"""
import os
import tempfile
import unittest
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from pydrake.all import PiecewisePolynomial

from pydircon.trajopt.hybrid import ModeSequenceTranscription
from pydircon.trajopt.options import ModeOptions
from pydircon.trajopt.constraints import KinematicConstraintType
from pydircon.trajopt.kinematics import KinematicConstraintSet
from pydircon.systems.block.block import PlanarBlock
from pydircon.systems.pendulum.double_pendulum import DoublePendulum

class PendulumSwingupTest(unittest.TestCase):
    """Swing the double pendulum from hanging to inverted with bounded torques"""
    @classmethod
    def setUpClass(cls):
        cls.pendulum = DoublePendulum()
        cls.N = 10
        cls.umax = 8.
        cls.x0 = cls.pendulum.hanging_state()
        cls.xf = cls.pendulum.inverted_state()
        cset = KinematicConstraintSet(cls.pendulum, [])
        cls.trajopt = ModeSequenceTranscription(cls.pendulum, [cls.N], [0.01], [0.5], [cset], [ModeOptions(0)])
        cls.trajopt.add_state_constraint(0, cls.x0)
        cls.trajopt.add_state_constraint(cls.N-1, cls.xf)
        cls.trajopt.add_control_limits(-cls.umax * np.ones((2,)), cls.umax * np.ones((2,)))
        R = 10.
        cls.trajopt.add_running_cost(lambda u: R * u.dot(u), [cls.trajopt.u], name='ControlCost')
        xguess = np.linspace(cls.x0, cls.xf, cls.N).transpose()
        cls.trajopt.set_initial_guess(xtraj=xguess, utraj=np.zeros((2, cls.N)))
        cls.result = cls.trajopt.solve()

    def test_success(self):
        self.assertTrue(self.result.is_success(), msg=f"Swingup failed to solve with {self.result.get_solver_id().name()}")

    def test_boundary_conditions(self):
        """Check the initial and final states"""
        x = self.result.GetSolution(self.trajopt.x)
        np.testing.assert_allclose(x[:, 0], self.x0, atol=1e-6, err_msg="Initial state does not match")
        np.testing.assert_allclose(x[:, -1], self.xf, atol=1e-6, err_msg="Final state does not match")

    def test_control_limits(self):
        u = self.result.GetSolution(self.trajopt.u)
        self.assertTrue(np.all(np.abs(u) <= self.umax + 1e-6), msg="Control exceeds the torque limit")

    def test_timesteps(self):
        """Check the timesteps are equal and within bounds"""
        h = self.result.GetSolution(self.trajopt.h)
        np.testing.assert_allclose(h, h[0] * np.ones(h.shape), atol=1e-8, err_msg="Timesteps are not equal")
        self.assertTrue(np.all(h >= 0.01 - 1e-8) and np.all(h <= 0.5 + 1e-8), msg="Timesteps violate their bounds")

    def test_reconstruction(self):
        """Check the reconstructed trajectories pass through the knots with the dynamics as derivatives"""
        t = self.trajopt.get_solution_times(self.result)
        x = self.result.GetSolution(self.trajopt.x)
        u = self.result.GetSolution(self.trajopt.u)
        xtraj = self.trajopt.reconstruct_state_trajectory(self.result)
        utraj = self.trajopt.reconstruct_input_trajectory(self.result)
        np.testing.assert_allclose(xtraj.vector_values(t), x, atol=1e-10, err_msg="State trajectory does not pass through the knots")
        np.testing.assert_allclose(utraj.vector_values(t), u, atol=1e-10, err_msg="Input trajectory does not pass through the knots")
        cset = self.trajopt.constraints[0]
        for k in range(self.N):
            xdot = cset.evaluate(x[:, k], u[:, k], np.zeros((0,))).xdot
            np.testing.assert_allclose(xtraj.EvalDerivative(t[k], 1).flatten(), xdot, atol=1e-8, err_msg=f"State derivative does not match the dynamics at knot {k}")
        self.assertIsNone(self.trajopt.reconstruct_force_trajectory(self.result)[0])

    def test_result_dictionary(self):
        soln = self.trajopt.result_to_dict(self.result)
        for key in ['time', 'state', 'control', 'force', 'v_post', 'costs', 'constraints', 'success', 'solver']:
            self.assertIn(key, soln)
        self.assertEqual(soln['state'].shape, (4, self.N))
        self.assertIn('ControlCost', soln['costs'])

    def test_report(self):
        report = self.trajopt.generate_report(self.result)
        self.assertIn("Optimization successful? True", report)
        self.assertIn("ControlCost", report)

class BlockStanceTest(unittest.TestCase):
    """Hold the block on the ground with an unknown horizontal foot position"""
    @classmethod
    def setUpClass(cls):
        cls.block = PlanarBlock()
        cls.N = 6
        cls.xpos = 0.3
        stance = cls.block.stance_constraints(friction=1.0)
        options = ModeOptions(2)
        options.set_constraint_relative(0)
        cls.trajopt = ModeSequenceTranscription(cls.block, [cls.N], [0.1], [0.1], [stance], [options])
        cls.trajopt.add_state_constraint(0, cls.block.resting_state(cls.xpos))
        cls.trajopt.add_state_constraint(cls.N-1, cls.block.resting_state(cls.xpos))
        cls.trajopt.add_quadratic_running_cost(np.eye(1), np.zeros((1,)), [cls.trajopt.u], name='ControlCost')
        cls.trajopt.set_initial_guess(xtraj=np.tile(cls.block.resting_state(), (cls.N, 1)).transpose(), utraj=np.zeros((1, cls.N)))
        ftraj = PiecewisePolynomial.ZeroOrderHold(np.array([0., 1.]), np.array([[0., 0.], [9.81, 9.81]]))
        cls.trajopt.set_initial_force_trajectory(0, ftraj, ftraj)
        cls.result = cls.trajopt.solve()

    def test_success(self):
        self.assertTrue(self.result.is_success(), msg=f"Stance failed to solve with {self.result.get_solver_id().name()}")

    def test_offset(self):
        """Check the shared offset takes the value of the relative constraint"""
        offset = self.result.GetSolution(self.trajopt.offset_vars(0))
        np.testing.assert_allclose(offset, np.array([self.xpos]), atol=1e-6, err_msg="Offset does not match the foot position")
        x = self.result.GetSolution(self.trajopt.x)
        np.testing.assert_allclose(x[0, :], self.xpos * np.ones((self.N,)), atol=1e-6, err_msg="Foot moves while in contact")

    def test_contact_forces(self):
        """Check the contact forces support the weight of the block"""
        forces = self.result.GetSolution(self.trajopt.force_vars(0))
        np.testing.assert_allclose(forces[1, :], 9.81 * np.ones((self.N,)), atol=1e-5, err_msg="Normal force does not support the block")
        np.testing.assert_allclose(forces[0, :], np.zeros((self.N,)), atol=1e-5, err_msg="Friction force is nonzero for a block at rest")
        ftraj = self.trajopt.reconstruct_force_trajectory(self.result)[0]
        np.testing.assert_allclose(ftraj.vector_values(self.trajopt.get_solution_times(self.result)), forces, atol=1e-10)

class LandingTest(unittest.TestCase):
    """Drop the block onto the ground: a flight mode followed by a stance mode"""
    @classmethod
    def setUpClass(cls):
        cls.block = PlanarBlock()
        cls.drop = 0.2
        cls.g = 9.81
        cls.N = [5, 5]
        constraints = [cls.block.flight_constraints(), cls.block.stance_constraints(friction=1.0)]
        stance = ModeOptions(2)
        stance.relative = [True, False]
        stance.start_type = KinematicConstraintType.VALUE_ONLY
        cls.trajopt = ModeSequenceTranscription(cls.block, cls.N, [0.01, 0.01], [0.2, 0.2], constraints, [ModeOptions(0), stance])
        x0 = cls.block.resting_state()
        x0[1] += cls.drop
        cls.trajopt.add_state_constraint(0, x0)
        cls.trajopt.add_state_constraint(-1, np.array([0.5, 0., 0.]), subset_index=[1, 2, 3])
        cls.trajopt.add_control_limits(-10*np.ones((1,)), 10*np.ones((1,)))
        cls.trajopt.add_running_cost(lambda u: u.dot(u), [cls.trajopt.u], name='ControlCost')
        # Initial guess: fall linearly, then rest
        nk = cls.trajopt.num_time_samples
        xguess = np.tile(cls.block.resting_state(), (nk, 1)).transpose()
        xguess[1, :cls.N[0]] = np.linspace(x0[1], 0.5, cls.N[0])
        cls.trajopt.set_initial_guess(xtraj=xguess, utraj=np.zeros((1, nk)))
        ftraj = PiecewisePolynomial.ZeroOrderHold(np.array([0., 1.]), np.array([[0., 0.], [cls.g, cls.g]]))
        cls.trajopt.set_initial_force_trajectory(1, ftraj)
        cls.result = cls.trajopt.solve()
        cls.seam = cls.trajopt.mode_start(1)

    def test_success(self):
        self.assertTrue(self.result.is_success(), msg=f"Landing failed to solve with {self.result.get_solver_id().name()}")

    def test_free_fall(self):
        """Check the flight mode matches the exact free fall"""
        t = self.trajopt.get_solution_times(self.result)
        x = self.result.GetSolution(self.trajopt.x)
        self.assertAlmostEqual(t[self.seam], np.sqrt(2*self.drop/self.g), places=4, msg="Flight time does not match free fall")
        self.assertAlmostEqual(x[3, self.seam], -np.sqrt(2*self.g*self.drop), places=3, msg="Pre-impact velocity does not match free fall")

    def test_timesteps(self):
        """Check the timesteps are equal within each mode"""
        h = self.result.GetSolution(self.trajopt.h)
        flight, stance = h[:self.seam], h[self.seam:]
        np.testing.assert_allclose(flight, flight[0] * np.ones(flight.shape), atol=1e-8, err_msg="Flight timesteps are not equal")
        np.testing.assert_allclose(stance, stance[0] * np.ones(stance.shape), atol=1e-8, err_msg="Stance timesteps are not equal")

    def test_seam(self):
        """Check positions are continuous and the velocity resets to the post-impact velocity"""
        t = self.trajopt.get_solution_times(self.result)
        x = self.result.GetSolution(self.trajopt.x)
        v_post = self.result.GetSolution(self.trajopt.v_post_impact_vars_by_mode(1))
        xtraj = self.trajopt.reconstruct_state_trajectory(self.result)
        x_seam = xtraj.value(t[self.seam]).flatten()
        np.testing.assert_allclose(x_seam[:2], x[:2, self.seam], atol=1e-8, err_msg="Positions are discontinuous at the seam")
        np.testing.assert_allclose(x_seam[2:], v_post, atol=1e-8, err_msg="Velocity at the seam is not the post-impact velocity")
        # Just before the seam, the trajectory approaches the pre-impact state
        x_before = xtraj.value(t[self.seam] - 1e-9).flatten()
        np.testing.assert_allclose(x_before[2:], x[2:, self.seam], atol=1e-5, err_msg="Trajectory does not reach the pre-impact velocity")

    def test_stance(self):
        """Check the block rests on the ground during stance"""
        x = self.result.GetSolution(self.trajopt.x)
        offset = self.result.GetSolution(self.trajopt.offset_vars(1))
        np.testing.assert_allclose(x[1, self.seam:], 0.5 * np.ones((self.N[1],)), atol=1e-6, err_msg="Block is not on the ground")
        np.testing.assert_allclose(x[0, self.seam:], offset[0] * np.ones((self.N[1],)), atol=1e-6, err_msg="Foot slides during stance")
        forces = self.result.GetSolution(self.trajopt.force_vars(1))
        np.testing.assert_allclose(forces[1, 1:], self.g * np.ones((self.N[1]-1,)), atol=1e-4, err_msg="Normal force does not support the block")

    def test_plot_solution(self):
        """Check the solution plots the state, control, and force trajectories and saves the figure"""
        with tempfile.TemporaryDirectory() as tmpdir:
            savename = os.path.join(tmpdir, 'landing.png')
            _, axs = self.trajopt.plot_solution(self.result, savename=savename)
            self.assertTrue(os.path.isfile(savename), msg="Figure was not saved")
        self.assertEqual(len(axs), 3)
        plt.close('all')

if __name__ == '__main__':
    unittest.main()
