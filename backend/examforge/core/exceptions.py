class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the scheduler is asked to do something it cannot do."""
    def __init__(self, message: str, details: dict = None, status_code: int = 400):
        super().__init__(message, status_code=status_code, details=details)

class InvalidInputError(SchedulerError):
    """Raised when the domain snapshot cannot produce any assignment."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, details=details, status_code=400)

class GenerationInProgressError(SchedulerError):
    """Raised when a second run is started on a generator that is still busy."""
    def __init__(self, message: str = "A timetable generation is already running"):
        super().__init__(message, status_code=409)

class GenerationCancelledError(SchedulerError):
    """Raised at a suspension point once the run's cancellation token is set."""
    def __init__(self, iteration: int):
        super().__init__(
            f"Timetable generation cancelled at iteration {iteration}",
            details={"iteration": iteration},
            status_code=499,
        )

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)

class SchedulerInvariantError(RuntimeError):
    """Programming error inside the engine. Never retried, never mapped to a response."""
