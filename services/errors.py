class RecordNotFound(ValueError):
    """Missing, or owned by another user; callers answer 404 either way."""


class DuplicateRecord(ValueError):
    """Uniqueness rule violated; callers answer 409."""
