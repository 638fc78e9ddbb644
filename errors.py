# errors.py
# Error taxonomy for the perception overlay.


class PerceptionError(Exception):
    """Base class for every error raised by this package."""


class ModelUnavailable(PerceptionError):
    """A detector was used before its model finished loading (or failed to load)."""


class DetectionFailure(PerceptionError):
    """A single inference call failed. The next tick is unaffected."""


class GeometryDegenerate(PerceptionError):
    """A label or box with zero or negative width/height."""


class RegistrationError(PerceptionError):
    """Registering a face from an image failed."""


class MissingRegistrationField(RegistrationError):
    pass


class NoFaceInImage(RegistrationError):
    pass
