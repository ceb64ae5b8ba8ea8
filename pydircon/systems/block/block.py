"""
Classes and methods for creating the planar block

The block translates in the x-z plane and is pushed horizontally. Contact with the ground is modeled as a point constraint on the bottom of the block.

October 19, 2026
"""
import numpy as np
from pydircon.systems.multibody import MultibodyDynamics
from pydircon.trajopt.kinematics import PointPositionConstraint, KinematicConstraintSet

class PlanarBlock(MultibodyDynamics):
    body_name = "block"
    height = 1.0

    def __init__(self, urdf_file="systems/block/urdf/planar_block.urdf"):
        super(PlanarBlock, self).__init__(file=urdf_file)
        self.Finalize()

    @property
    def foot_point(self):
        """Position of the foot in the block frame"""
        return np.array([0., 0., -self.height/2])

    def resting_state(self, x=0.):
        """State with the foot on the ground and no motion"""
        return np.array([x, self.height/2, 0., 0.])

    def foot_constraint(self, friction=None):
        """
        Returns the xz point constraint holding the foot on the ground

        Arguments:
            friction: (optional) friction coefficient. When given, a linearized friction cone is placed on the contact force
        """
        foot = PointPositionConstraint(self, self.body_name, self.foot_point, xz=True)
        if friction is not None:
            foot.add_fixed_normal_friction_constraints(friction)
        return foot

    def stance_constraints(self, friction=None):
        """Constraint set for the block with its foot on the ground"""
        return KinematicConstraintSet(self, [self.foot_constraint(friction)])

    def flight_constraints(self):
        """Empty constraint set for the block in free flight"""
        return KinematicConstraintSet(self, [])
