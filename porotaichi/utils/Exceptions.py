class NumericalDivergence(RuntimeError):
    """
    Raised when the explicit integration diverges: a non-finite wave speed
    at a particle or an energy balance violating the dissipation tolerance.
    """
    def __init__(self, message, particle_id=None, element_id=None, energy=None) -> None:
        super().__init__(message)
        self.particle_id = particle_id
        self.element_id = element_id
        self.energy = energy
