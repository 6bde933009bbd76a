class FolderError(Exception):
    """Base for request failures reported to the client as 400 {"err": message}"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidIdError(FolderError):
    pass


class NotFoundError(FolderError):
    pass


class FieldValidationError(FolderError):
    pass


class InvariantError(FolderError):
    """Default-folder, sharing or toggle policy refused the operation"""
