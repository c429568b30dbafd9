from .simulator import COMPONENT_CATALOGUE, SimulatedPartsBox

__all__ = ["COMPONENT_CATALOGUE", "SimulatedPartsBox"]
