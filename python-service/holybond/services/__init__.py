from .account_service import AccountService, get_account_service
from .admin_service import AdminService, get_admin_service
from .chat_service import ChatService, get_chat_service
from .exceptions import ServiceError
from .profile_service import ProfileService, get_profile_service
from .relationship_service import RelationshipService, get_relationship_service

__all__ = [
    "AccountService",
    "AdminService",
    "ChatService",
    "ProfileService",
    "RelationshipService",
    "ServiceError",
    "get_account_service",
    "get_admin_service",
    "get_chat_service",
    "get_profile_service",
    "get_relationship_service",
]
