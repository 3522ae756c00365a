class PostValidationError(ValueError):
    """Raised before persistence when post fields are missing or malformed."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        self.message = message or f"`{field}` is required"
        super().__init__(self.message)
