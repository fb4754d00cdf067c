class WorkoutAppException(Exception):
    def __init__(self, detail: str = "Workout operation failed"):
        super().__init__(detail)
        self.detail = detail


class ValidationException(WorkoutAppException):
    def __init__(self, detail: str = "Invalid value"):
        super().__init__(detail=detail)


class InvalidSetDataException(ValidationException):
    def __init__(self, detail: str = "Invalid set data"):
        super().__init__(detail=detail)


class SettingsValidationException(ValidationException):
    def __init__(self, detail: str = "Invalid setting value"):
        super().__init__(detail=detail)


class NotFoundException(WorkoutAppException):
    def __init__(self, detail: str = "Object not found"):
        super().__init__(detail=detail)


class ExerciseNotFoundException(NotFoundException):
    def __init__(self, exercise: str | None = None):
        if exercise is None:
            super().__init__(detail="Set has no exercise")
        else:
            super().__init__(detail=f"Exercise '{exercise}' is not part of this workout")


class SetNotFoundException(NotFoundException):
    def __init__(self, set_id: str):
        super().__init__(detail=f"Set with id={set_id} not found in this workout")


class WorkoutNotFoundException(NotFoundException):
    def __init__(self, workout_id: str):
        super().__init__(detail=f"Workout with id={workout_id} not found")


class TemplateNotFoundException(NotFoundException):
    def __init__(self, template: str):
        super().__init__(detail=f"Template '{template}' not found")


class ExerciseNotEditableException(WorkoutAppException):
    def __init__(self, name: str):
        super().__init__(detail=f"Exercise '{name}' is built in and cannot be changed")


class StorageException(WorkoutAppException):
    def __init__(self, detail: str = "Failed to save changes to database"):
        super().__init__(detail=detail)


class SessionClosedException(WorkoutAppException):
    def __init__(self, workout_id: str):
        super().__init__(detail=f"Workout session id={workout_id} is already closed")
