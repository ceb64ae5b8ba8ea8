"""
MultibodyDynamics: a container for pyDrake's MultibodyPlant for use with hybrid direct collocation

MultibodyDynamics instantiates pyDrake's MultibodyPlant from a URDF description and provides the rigid body dynamics terms needed by the kinematic constraint sets: the mass matrix, the bias forces, and the actuation matrix. MultibodyDynamics also keeps an AutoDiffXd copy of the plant, so the same constraint code can be evaluated with floats or with AutoDiffXd to provide exact gradients to the solver.

Note that, due to issues with pybind, MultibodyDynamics does NOT subclass MultibodyPlant. Instead, MultibodyDynamics instantiates MultibodyPlant as a property called multibody.

October 19, 2026
"""
import numpy as np
from pydrake.all import MultibodyPlant
from pydrake.multibody.parsing import Parser
from pydircon.utilities import FindResource

class MultibodyDynamics():
    """
    Dynamics oracle for a continuous-time MultibodyPlant
    """
    def __init__(self, file=None, urdf_string=None):
        """
        Initialize MultibodyDynamics with a model from a URDF file or a URDF string. Joints whose parent is the 'world' link are attached to the world frame by the parser.
        """
        self.multibody = MultibodyPlant(time_step=0.0)
        self.model_index = []
        self.files = []
        parser = Parser(self.multibody)
        if file is not None:
            self.model_index.extend(parser.AddModels(FindResource(file)))
            self.files.append(file)
        if urdf_string is not None:
            self.model_index.extend(parser.AddModelsFromString(urdf_string, "urdf"))
        # Create autodiff pointer
        self._autodiff_ptr = None

    def str(self):
        """ String describing the multibody model"""
        text = f"{type(self).__name__} with {self.num_positions()} positions, {self.num_velocities()} velocities, and {self.num_actuators()} actuators\n"
        if self.files:
            text += f"Source files:\n"
            for file in self.files:
                text += f"\t{file}\n"
        return text

    def Finalize(self):
        """Cements the topology of the MultibodyPlant"""
        self.multibody.Finalize()

    def num_positions(self):
        return self.multibody.num_positions()

    def num_velocities(self):
        return self.multibody.num_velocities()

    def num_actuators(self):
        return self.multibody.num_actuators()

    def num_states(self):
        return self.multibody.num_positions() + self.multibody.num_velocities()

    def toAutoDiffXd(self):
        """Convert the MultibodyPlant to use AutoDiffXd instead of float"""
        self._autodiff_ptr = self.multibody.ToAutoDiffXd()
        return self._autodiff_ptr

    def getAutoDiffXd(self):
        """
        Returns a pointer to the autodiff copy of the current plant

        Unlike toAutoDiffXd, which creates a new autodiff plant on each call, getAutoDiffXd returns a pointer to an existing autodiff version, if one exists. If there is no autodiff plant available, getAutoDiffXd creates one
        """
        if self._autodiff_ptr is None:
            return self.toAutoDiffXd()
        else:
            return self._autodiff_ptr

    def autodiff_or_float(self, z):
        """
        Returns the float or autodiff MultibodyPlant and a new Context, based on the dtype of the values z

        A new context is created on every call, so that evaluations never share mutable state
        """
        if np.asarray(z).dtype == "float":
            return self.multibody, self.multibody.CreateDefaultContext()
        else:
            plant_ad = self.getAutoDiffXd()
            return plant_ad, plant_ad.CreateDefaultContext()

    @staticmethod
    def mass_matrix(plant, context):
        """Returns the generalized mass matrix M(q)"""
        return plant.CalcMassMatrixViaInverseDynamics(context)

    @staticmethod
    def bias_forces(plant, context):
        """Returns the bias forces C(q,v)*v - G(q), including the effects of gravity"""
        return plant.CalcBiasTerm(context) - plant.CalcGravityGeneralizedForces(context)

    @staticmethod
    def actuation_matrix(plant):
        """Returns the actuation matrix B mapping controls to generalized forces"""
        return plant.MakeActuationMatrix()
