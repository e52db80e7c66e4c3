class RbacError(Exception):
    """Rejected write in role or membership administration."""

class ProtectedRoleError(RbacError):
    pass

class UnknownProjectRoleError(RbacError):
    pass

class DuplicateMemberError(RbacError):
    pass

class MemberNotFoundError(RbacError):
    pass

SYSTEM_ROLE_DELETE = "Cannot delete system roles"
DEFAULT_PROJECT_ROLE_DELETE = "Cannot delete default project roles"
