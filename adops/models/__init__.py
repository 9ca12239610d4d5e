from adops.models.account import Account
from adops.models.brand import Brand
from adops.models.brand_access import FileBrandAccess, FolderBrandAccess
from adops.models.file import File
from adops.models.folder import Folder, NodeStatus
from adops.models.parent_company import ParentCompany
from adops.models.user import User
from adops.models.user_account import RoleType, UserAccount, UserType
from adops.models.user_account_brand import UserAccountBrand
from adops.models.user_permission import UserPermission

__all__ = [
    "Account",
    "Brand",
    "FileBrandAccess",
    "FolderBrandAccess",
    "File",
    "Folder",
    "NodeStatus",
    "ParentCompany",
    "User",
    "RoleType",
    "UserAccount",
    "UserType",
    "UserAccountBrand",
    "UserPermission",
]
