import enum


class ProtectionLevel(str, enum.Enum):
    # Block-owned files: no delete, no rename, no raw edit
    PROTECTED = "protected"
    # Schema files: no delete, editable via forms
    SEMI_EDITABLE = "semi_editable"
    # Custom code: full access
    FREE_CODE = "free_code"


class FileType(str, enum.Enum):
    PAGE = "page"
    COMPONENT = "component"
    LOGIC_FLOW = "flow"
    STATE_STORE = "store"
    CONFIG = "config"
    TOKENS = "tokens"
    CUSTOM_CSS = "css"
    CUSTOM_JS = "js"
    HEAD_INJECT = "inject"


class FileOperation(str, enum.Enum):
    DELETE = "delete"
    RENAME = "rename"
    RAW_EDIT = "raw_edit"
    UI_EDIT = "ui_edit"
    MOVE = "move"
    ARCHIVE = "archive"


# Operations that reach persistence only after a policy check
STRUCTURAL_OPERATIONS = frozenset({
    FileOperation.DELETE, FileOperation.RENAME, FileOperation.RAW_EDIT, FileOperation.MOVE,
})


class VersionTrigger(str, enum.Enum):
    AUTO = "auto"
    MANUAL = "manual"
    BEFORE_RISKY_OPERATION = "before_risky_operation"


class EventTrigger(str, enum.Enum):
    CLICK = "click"
    SUBMIT = "submit"
    LOAD = "load"
    HOVER = "hover"
    SCROLL = "scroll"


class ActionType(str, enum.Enum):
    SET_STATE = "setState"
    API_CALL = "apiCall"
    NAVIGATE = "navigate"
    SHOW_HIDE = "showHide"
    CUSTOM = "custom"
