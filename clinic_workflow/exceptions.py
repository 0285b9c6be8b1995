"""
统一错误处理：BaseAppException 及子类
所有异常格式：type, code, message, detail, http_status
"""


class BaseAppException(Exception):
    """基类：统一错误格式"""
    type = "error"
    code = "UNKNOWN"
    message = "Unknown error"
    http_status = 400

    def __init__(self, message=None, code=None, detail=None, http_status=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.code = code or self.code
        self.detail = detail if detail is not None else {}
        if http_status is not None:
            self.http_status = http_status

    def to_dict(self):
        return {
            "success": False,
            "type": self.type,
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }


class ValidationError(BaseAppException):
    """验证错误：输入格式不对（缺字段、年龄越界、枚举值非法），由 serializer 检查"""
    type = "validation"
    code = "VALIDATION_ERROR"
    message = "Validation failed"
    http_status = 400


class AuthorizationError(BaseAppException):
    """权限错误：当前角色不允许对该表执行该操作"""
    type = "authorization"
    code = "PERMISSION_DENIED"
    message = "Role is not permitted to perform this operation"
    http_status = 403


class NotFoundError(BaseAppException):
    """引用的上级记录不存在"""
    type = "not_found"
    code = "NOT_FOUND"
    message = "Record not found"
    http_status = 404


class BlockError(BaseAppException):
    """业务阻止：业务规则不允许"""
    type = "block"
    code = "BLOCK"
    message = "Operation blocked"
    http_status = 409


class DuplicateError(BlockError):
    """唯一约束冲突：上级记录已经有下级记录（如 checkup 已诊断）"""
    code = "DUPLICATE"
    message = "Record already exists"


class AlreadyFulfilledError(BlockError):
    """处方已发药，不能再次发药"""
    code = "ALREADY_FULFILLED"
    message = "Prescription is already fulfilled"


class ImmutableFieldError(AlreadyFulfilledError):
    """处方创建后只有发药相关字段可以修改"""
    code = "PRESCRIPTION_FIELD_IMMUTABLE"
    message = "Only fulfillment status can be updated"
