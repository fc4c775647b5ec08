class ApiError(Exception):
    """Raised when the backend answers with a non-2xx status or cannot be reached.

    Attributes:
        status (int): HTTP status code, 0 when the connection failed
        data: decoded error body, {} when the body was empty or not JSON
    """

    def __init__(self, message, status=0, data=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data if data is not None else {}

    @property
    def is_unauthorized(self):
        return self.status == 401

    @property
    def is_not_found(self):
        return self.status == 404

    def validation_messages(self):
        """Flatten a Laravel style ``errors`` mapping into a list of strings."""
        errors = self.data.get("errors") if isinstance(self.data, dict) else None
        if not isinstance(errors, dict):
            return []
        flat = []
        for value in errors.values():
            if isinstance(value, (list, tuple)):
                flat.extend(str(item) for item in value)
            else:
                flat.append(str(value))
        return flat


class PageNotFoundError(Exception):
    """Raised when a configured page cannot be found for the current tenant."""

    def __init__(self, page_type="", page_id=None):
        super().__init__(page_type, page_id)
        self.page_type = page_type
        self.page_id = page_id


class ProtectedFieldError(Exception):
    """Raised when deleting one of the default registration fields."""

    def __init__(self, name):
        super().__init__(name)
        self.name = name


class BuilderError(Exception):
    """Raised when a page builder refuses to save.

    Attributes:
        errors (list): human readable validation messages
    """

    def __init__(self, errors):
        super().__init__("; ".join(errors))
        self.errors = list(errors)
