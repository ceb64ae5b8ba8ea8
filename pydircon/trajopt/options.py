"""
Per-mode options for hybrid direct collocation

ModeOptions stores, for each kinematic constraint row of a mode, whether the row is relative and how strongly the row is enforced at the first, interior, and last knot points of the mode.

October 19, 2026
"""
from pydircon.exceptions import ConfigurationError
from pydircon.trajopt.constraints import KinematicConstraintType

class ModeOptions():
    def __init__(self, num_constraints, force_cost=1.0e-4):
        self._num_constraints = num_constraints
        self._relative = [False] * num_constraints
        self._start_type = [KinematicConstraintType.ALL] * num_constraints
        self._interior_type = [KinematicConstraintType.ALL] * num_constraints
        self._end_type = [KinematicConstraintType.ALL] * num_constraints
        self.force_cost = force_cost

    def __str__(self):
        text = f"{type(self).__name__} for {self.num_constraints} constraints:\n"
        text += f"\tRelative: {self._relative}\n"
        text += f"\tStart type: {[t.name for t in self._start_type]}\n"
        text += f"\tInterior type: {[t.name for t in self._interior_type]}\n"
        text += f"\tEnd type: {[t.name for t in self._end_type]}\n"
        text += f"\tForce cost: {self.force_cost}\n"
        return text

    @classmethod
    def build_from_config(cls, config, num_constraints):
        """Create ModeOptions from a ModeConfig"""
        options = cls(num_constraints, force_cost=config.force_cost)
        if config.relative:
            options.relative = config.relative
        options.start_type = config.start_type
        options.interior_type = config.interior_type
        options.end_type = config.end_type
        return options

    @property
    def num_constraints(self):
        return self._num_constraints

    @property
    def num_relative(self):
        return sum(self._relative)

    @property
    def force_cost(self):
        return self._force_cost

    @force_cost.setter
    def force_cost(self, val):
        if val < 0:
            raise ConfigurationError(f"force cost must be nonnegative, got {val}")
        self._force_cost = val

    @property
    def relative(self):
        return list(self._relative)

    @relative.setter
    def relative(self, vals):
        vals = [bool(v) for v in vals]
        if len(vals) != self._num_constraints:
            raise ConfigurationError(f"relative must have {self._num_constraints} elements, got {len(vals)}")
        self._relative = vals

    def set_constraint_relative(self, index, relative=True):
        if index < 0 or index >= self._num_constraints:
            raise ConfigurationError(f"constraint index must be between 0 and {self._num_constraints - 1}, got {index}")
        self._relative[index] = bool(relative)

    def _expand_types(self, types):
        if isinstance(types, (list, tuple)):
            types = [KinematicConstraintType.from_value(t) for t in types]
            if len(types) != self._num_constraints:
                raise ConfigurationError(f"constraint types must have {self._num_constraints} elements, got {len(types)}")
            return types
        return [KinematicConstraintType.from_value(types)] * self._num_constraints

    @property
    def start_type(self):
        return list(self._start_type)

    @start_type.setter
    def start_type(self, types):
        self._start_type = self._expand_types(types)

    @property
    def interior_type(self):
        return list(self._interior_type)

    @interior_type.setter
    def interior_type(self, types):
        self._interior_type = self._expand_types(types)

    @property
    def end_type(self):
        return list(self._end_type)

    @end_type.setter
    def end_type(self, types):
        self._end_type = self._expand_types(types)
