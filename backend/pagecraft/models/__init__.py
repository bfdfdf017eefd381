from pagecraft.models.project import Project
from pagecraft.models.vfs_file import VFSFile
from pagecraft.models.vfs_block import VFSBlock
from pagecraft.models.vfs_version import VFSVersion

__all__ = ["Project", "VFSFile", "VFSBlock", "VFSVersion"]
