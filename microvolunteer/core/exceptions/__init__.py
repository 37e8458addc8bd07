"""Business Exceptions

Domain-specific exceptions. Each carries a stable error code, a title and the
HTTP status the API layer answers with.
"""


class MicroVolunteerException(Exception):
    """Base exception for MicroVolunteer"""

    error_code = "BUSINESS_ERROR"
    title = "Business Error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "title": self.title,
            "detail": self.message,
        }


# ========== Not Found ==========


class TaskNotFoundException(MicroVolunteerException):
    """Task not found"""

    error_code = "TASK_NOT_FOUND"
    title = "Task Not Found"
    status_code = 404

    def __init__(self, task_id: str):
        super().__init__(f"Task not found with id: {task_id}")
        self.task_id = task_id


class ParticipationNotFoundException(MicroVolunteerException):
    """No active participation for (task, participant)"""

    error_code = "PARTICIPATION_NOT_FOUND"
    title = "Participation Not Found"
    status_code = 404

    def __init__(self, task_id: str, participant_id: str):
        super().__init__(f"User {participant_id} is not participating in task: {task_id}")
        self.task_id = task_id
        self.participant_id = participant_id


class CategoryNotFoundException(MicroVolunteerException):
    """Category not found"""

    error_code = "CATEGORY_NOT_FOUND"
    title = "Category Not Found"
    status_code = 404

    def __init__(self, category_id: str):
        super().__init__(f"Category not found with id: {category_id}")
        self.category_id = category_id


# ========== Conflicts ==========


class TaskNotOpenException(MicroVolunteerException):
    """Task does not accept joins/leaves in its current status"""

    error_code = "TASK_NOT_OPEN"
    title = "Task Not Open"
    status_code = 409

    def __init__(self, task_id: str, status: str):
        super().__init__(f"Task {task_id} is not open for participation (status: {status})")
        self.task_id = task_id
        self.status = status


class TaskFullException(MicroVolunteerException):
    """No free slots left"""

    error_code = "TASK_FULL"
    title = "Task Full"
    status_code = 409

    def __init__(self, task_id: str, max_participants: int):
        super().__init__(
            f"Task {task_id} has reached its maximum of {max_participants} participants"
        )
        self.task_id = task_id
        self.max_participants = max_participants


class AlreadyParticipatingException(MicroVolunteerException):
    """Principal already holds an active participation"""

    error_code = "ALREADY_PARTICIPATING"
    title = "Already Participating"
    status_code = 409

    def __init__(self, task_id: str):
        super().__init__(f"User is already participating in task: {task_id}")
        self.task_id = task_id


class CannotParticipateOwnTaskException(MicroVolunteerException):
    """Creators cannot join their own task"""

    error_code = "CANNOT_PARTICIPATE_OWN_TASK"
    title = "Cannot Participate in Own Task"
    status_code = 409

    def __init__(self, task_id: str):
        super().__init__(f"Task author cannot participate in their own task: {task_id}")
        self.task_id = task_id


class InvalidStatusTransitionException(MicroVolunteerException):
    """Status change not allowed by the task state machine"""

    error_code = "INVALID_STATUS_TRANSITION"
    title = "Invalid Status Transition"
    status_code = 409

    def __init__(self, current_status: str, target_status: str):
        super().__init__(f"Cannot change task status from {current_status} to {target_status}")
        self.current_status = current_status
        self.target_status = target_status


class CategoryNameTakenException(MicroVolunteerException):
    """Another category already uses the name"""

    error_code = "CATEGORY_NAME_TAKEN"
    title = "Category Name Taken"
    status_code = 409

    def __init__(self, name: str):
        super().__init__(f"Category with name '{name}' already exists")
        self.name = name


class CategoryInactiveException(MicroVolunteerException):
    """Category was deactivated"""

    error_code = "CATEGORY_INACTIVE"
    title = "Category Inactive"
    status_code = 409

    def __init__(self, category_id: str):
        super().__init__(f"Category is inactive: {category_id}")
        self.category_id = category_id


class CategoryInUseException(MicroVolunteerException):
    """Tasks still reference the category"""

    error_code = "CATEGORY_IN_USE"
    title = "Category In Use"
    status_code = 409

    def __init__(self, category_id: str, task_count: int | None = None):
        super().__init__(f"Cannot delete category that has tasks: {category_id}")
        self.category_id = category_id
        self.task_count = task_count


# ========== Access ==========


class UnauthorizedAccessException(MicroVolunteerException):
    """Principal lacks the right to perform the operation"""

    error_code = "UNAUTHORIZED_ACCESS"
    title = "Unauthorized Access"
    status_code = 403

    def __init__(self, operation: str):
        super().__init__(f"Unauthorized access to operation: {operation}")
        self.operation = operation


class InvalidIdentityException(MicroVolunteerException):
    """Verified claims carry no usable subject"""

    error_code = "INVALID_IDENTITY"
    title = "Invalid Identity"
    status_code = 401


# ========== Infrastructure ==========


class StorageUnavailableException(MicroVolunteerException):
    """Store timed out or failed; the unit of work was rolled back"""

    error_code = "STORAGE_UNAVAILABLE"
    title = "Storage Unavailable"
    status_code = 503


__all__ = [
    "AlreadyParticipatingException",
    "CannotParticipateOwnTaskException",
    "CategoryInUseException",
    "CategoryInactiveException",
    "CategoryNameTakenException",
    "CategoryNotFoundException",
    "InvalidIdentityException",
    "InvalidStatusTransitionException",
    "MicroVolunteerException",
    "ParticipationNotFoundException",
    "StorageUnavailableException",
    "TaskFullException",
    "TaskNotFoundException",
    "TaskNotOpenException",
    "UnauthorizedAccessException",
]
