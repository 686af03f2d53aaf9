class AuthError(ValueError):
    """Authentication failure. The message is safe to show to the caller."""


class UserError(ValueError):
    pass


class UserNotFoundError(UserError):
    pass


class UserConflictError(UserError):
    pass


class UserForbiddenError(UserError):
    pass
