class LevelSetError(Exception):
    """ Base class for the errors raised by the segmentation core
    """


class ConfigurationError(LevelSetError, ValueError):
    """ Raised when inputs or parameters are inconsistent, e.g., a seed
    outside of the grid, a negative speed value, or a malformed weight
    """


class NumericalInstability(LevelSetError, ArithmeticError):
    """ Raised when a level set update produces non-finite values. The
    offending grid index and the time step of the failed iteration are
    attached for diagnosis.
    """
    def __init__(self, msg, index=None, time_step=None):
        super().__init__(msg)
        self.index = index
        self.time_step = time_step
