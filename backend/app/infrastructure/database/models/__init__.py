from .user_document import UserDocumentModel

__all__ = [
    "UserDocumentModel",
]
