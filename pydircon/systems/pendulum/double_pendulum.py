"""
Fully actuated planar double pendulum

The configuration q = (0, 0) hangs straight down and q = (pi, 0) is the inverted equilibrium

October 19, 2026
"""
import numpy as np
from pydircon.systems.multibody import MultibodyDynamics

class DoublePendulum(MultibodyDynamics):
    def __init__(self, urdf_file="systems/pendulum/urdf/double_pendulum.urdf"):
        super(DoublePendulum, self).__init__(file=urdf_file)
        self.Finalize()

    @staticmethod
    def hanging_state():
        return np.zeros((4,))

    @staticmethod
    def inverted_state():
        return np.array([np.pi, 0., 0., 0.])
