"""
unittests for trajopt.kinematics

October 19, 2026
"""
import unittest
import numpy as np
import pydrake.autodiffutils as ad

from pydircon.trajopt import kinematics as kin
from pydircon.systems.block.block import PlanarBlock
from pydircon.systems.pendulum.double_pendulum import DoublePendulum
from pydircon.exceptions import ConfigurationError, DimensionMismatch

class BlockStanceTest(unittest.TestCase):
    """Test the kinematic constraint set for the block with its foot on the ground"""
    def setUp(self):
        self.block = PlanarBlock()
        self.cset = self.block.stance_constraints(friction=0.5)
        self.state = self.block.resting_state(x=0.3)
        self.control = np.array([2.])

    def test_counts(self):
        """Check the number of constraints and force constraints"""
        self.assertEqual(self.cset.count_constraints(), 2, msg="Unexpected number of constraint rows")
        self.assertEqual(self.cset.num_constraint_objects(), 1, msg="Unexpected number of constraints")
        pairs = self.cset.force_constraints()
        self.assertEqual(len(pairs), 1, msg="Unexpected number of force constraints")
        fcstr, rows = pairs[0]
        self.assertEqual(rows, slice(0, 2), msg="Force constraint applied to the wrong rows")
        self.assertEqual(fcstr.A.shape, (3, 2), msg="Unexpected friction cone shape")

    def test_friction_cone(self):
        """Check the linearized friction cone accepts forces inside the cone and rejects forces outside"""
        fcstr, _ = self.cset.force_constraints()[0]
        inside = fcstr.eval(np.array([0.4, 1.0]))
        outside = fcstr.eval(np.array([0.6, 1.0]))
        self.assertTrue(np.all(inside >= fcstr.lb), msg="Force inside the friction cone violates the constraint")
        self.assertFalse(np.all(outside >= fcstr.lb), msg="Force outside the friction cone satisfies the constraint")

    def test_value_and_jacobian(self):
        """Check the foot position and Jacobian for the block"""
        data = self.cset.evaluate(self.state, self.control, np.zeros((2,)))
        np.testing.assert_allclose(data.c, np.array([0.3, 0.0]), atol=1e-12, err_msg="Unexpected foot position")
        np.testing.assert_allclose(data.J, np.eye(2), atol=1e-12, err_msg="Unexpected foot Jacobian")
        np.testing.assert_allclose(data.Jdotv, np.zeros((2,)), atol=1e-12, err_msg="Unexpected Jacobian derivative")

    def test_constrained_dynamics(self):
        """Check the consistent forces hold the block at rest"""
        vdot, force = self.cset.constrained_dynamics(self.state, self.control)
        g = 9.81
        np.testing.assert_allclose(vdot, np.zeros((2,)), atol=1e-10, err_msg="Block accelerates while in contact")
        np.testing.assert_allclose(force, np.array([-2., g]), rtol=1e-6, err_msg="Unexpected contact force")

    def test_force_augmented_dynamics(self):
        """Check the accelerations are consistent with the forces given to evaluate"""
        data = self.cset.evaluate(self.state, self.control, np.array([-2., 9.81]))
        np.testing.assert_allclose(data.vdot, np.zeros((2,)), atol=1e-6, err_msg="Supporting forces do not balance gravity")
        data = self.cset.evaluate(self.state, self.control, np.zeros((2,)))
        self.assertAlmostEqual(data.vdot[1], -9.81, places=6, msg="Unsupported block does not fall")
        self.assertGreater(data.vdot[0], 0., msg="Pushed block does not accelerate")
        np.testing.assert_allclose(data.xdot[2:], data.vdot, err_msg="State derivative does not contain the accelerations")

    def test_update_data(self):
        """Check update_data caches the same values as evaluate"""
        with self.assertRaises(RuntimeError):
            self.cset.getC()
        force = np.array([1., 3.])
        data = self.cset.evaluate(self.state, self.control, force)
        self.cset.update_data(self.state, self.control, force)
        np.testing.assert_allclose(self.cset.getC(), data.c, err_msg="Cached constraint value does not match")
        np.testing.assert_allclose(self.cset.getJ(), data.J, err_msg="Cached Jacobian does not match")
        np.testing.assert_allclose(self.cset.getCDDot(), data.cddot, err_msg="Cached constraint acceleration does not match")
        np.testing.assert_allclose(self.cset.getXDot(), data.xdot, err_msg="Cached state derivative does not match")

    def test_dimension_mismatch(self):
        """Check that wrong sized inputs raise DimensionMismatch"""
        with self.assertRaises(DimensionMismatch):
            self.cset.evaluate(self.state[:3], self.control, np.zeros((2,)))
        with self.assertRaises(DimensionMismatch):
            self.cset.evaluate(self.state, np.zeros((2,)), np.zeros((2,)))
        with self.assertRaises(DimensionMismatch):
            self.cset.evaluate(self.state, self.control, np.zeros((3,)))

    def test_configuration_errors(self):
        """Check that inconsistent constraint definitions raise ConfigurationError"""
        with self.assertRaises(ConfigurationError):
            kin.PointPositionConstraint(self.block, 'block', active_directions=[0, 3])
        with self.assertRaises(ConfigurationError):
            kin.PointPositionConstraint(self.block, 'block', xz=True, target=np.zeros((3,)))
        foot = kin.PointPositionConstraint(self.block, 'block', xz=True)
        with self.assertRaises(ConfigurationError):
            foot.add_force_constraint(kin.FrictionConeConstraint.linearized(3, 1.0, 2))

class FlightTest(unittest.TestCase):
    """Test the empty constraint set"""
    def setUp(self):
        self.block = PlanarBlock()
        self.cset = self.block.flight_constraints()

    def test_free_fall(self):
        """Check that the block falls freely without constraints"""
        data = self.cset.evaluate(self.block.resting_state(), np.zeros((1,)), np.zeros((0,)))
        self.assertEqual(data.c.shape, (0,), msg="Empty constraint set returns constraint values")
        self.assertEqual(data.J.shape, (0, 2), msg="Empty constraint set has the wrong Jacobian shape")
        np.testing.assert_allclose(data.vdot, np.array([0., -9.81]), atol=1e-8, err_msg="Unexpected free fall acceleration")
        vdot, force = self.cset.constrained_dynamics(self.block.resting_state(), np.zeros((1,)))
        np.testing.assert_allclose(vdot, data.vdot, err_msg="Constrained dynamics differ from free dynamics")
        self.assertEqual(force.shape, (0,), msg="Empty constraint set returns forces")

class PendulumTipTest(unittest.TestCase):
    """Test the constrained dynamics with a state-dependent Jacobian"""
    def setUp(self):
        self.pendulum = DoublePendulum()
        tip = kin.PointPositionConstraint(self.pendulum, 'lower_link', point=np.array([0., 0., -0.5]), active_directions=[0])
        self.cset = kin.KinematicConstraintSet(self.pendulum, [tip])
        self.state = np.array([0.4, -0.7, 1.2, -0.5])
        self.control = np.array([0.3, -0.2])

    def test_tip_position(self):
        """Check the horizontal tip position against the planar kinematics"""
        data = self.cset.evaluate(self.state, self.control, np.zeros((1,)))
        q1, q2 = self.state[:2]
        expected = -0.5 * np.sin(q1) - 0.5 * np.sin(q1 + q2)
        self.assertAlmostEqual(data.c[0], expected, places=10, msg="Unexpected tip position")

    def test_consistent_force_zeroes_acceleration(self):
        """Check the force from constrained_dynamics zeroes the constraint acceleration"""
        vdot, force = self.cset.constrained_dynamics(self.state, self.control)
        data = self.cset.evaluate(self.state, self.control, force)
        np.testing.assert_allclose(data.cddot, np.zeros((1,)), atol=1e-10, err_msg="Consistent force does not zero the constraint acceleration")
        np.testing.assert_allclose(data.vdot, vdot, atol=1e-10, err_msg="Accelerations do not match the constrained dynamics")

    def test_constraint_velocity(self):
        """Check the constraint velocity is the Jacobian times the velocity"""
        data = self.cset.evaluate(self.state, self.control, np.zeros((1,)))
        np.testing.assert_allclose(data.cdot, data.J.dot(self.state[2:]), err_msg="Constraint velocity is not J*v")

    def test_autodiff_matches_float(self):
        """Check the evaluation with AutoDiffXd matches the evaluation with floats"""
        force = np.array([0.7])
        z = np.concatenate([self.state, self.control, force], axis=0)
        z_ad = np.squeeze(ad.InitializeAutoDiff(z), axis=1)
        data_ad = self.cset.evaluate(z_ad[:4], z_ad[4:6], z_ad[6:])
        data = self.cset.evaluate(self.state, self.control, force)
        np.testing.assert_allclose(np.reshape(ad.ExtractValue(data_ad.xdot), (-1,)), data.xdot, atol=1e-10, err_msg="AutoDiff state derivative does not match float")
        np.testing.assert_allclose(np.reshape(ad.ExtractValue(data_ad.cddot), (-1,)), data.cddot, atol=1e-10, err_msg="AutoDiff constraint acceleration does not match float")
        # The gradient of the constraint velocity with respect to velocity is the Jacobian
        grad = ad.ExtractGradient(data_ad.cdot)
        np.testing.assert_allclose(grad[:, 2:4], data.J, atol=1e-10, err_msg="Gradient of constraint velocity is not the Jacobian")

if __name__ == '__main__':
    unittest.main()
