"""
Prometheus 指标定义
"""
from prometheus_client import Counter, Histogram

# 业务指标
RECORD_CREATED = Counter(
    "clinic_record_created_total",
    "新建记录数（按表）",
    ["table"],
)
STATUS_TRANSITION = Counter(
    "patient_status_transition_total",
    "患者状态流转次数",
    ["from_status", "to_status"],
)
STATUS_TRANSITION_NOOP = Counter(
    "patient_status_transition_noop_total",
    "插入记录但患者状态不变的次数（不在前一状态）",
    ["table"],
)
PRESCRIPTION_FULFILLED = Counter(
    "prescription_fulfilled_total",
    "已发药处方数",
)
DUPLICATE_BLOCK = Counter(
    "duplicate_block_total",
    "因唯一约束被 Block 的提交次数",
    ["table"],
)
AUTHORIZATION_DENIED = Counter(
    "authorization_denied_total",
    "权限策略拒绝次数",
    ["table", "operation"],
)

# 性能指标（Histogram 自动提供 _count, _sum, _bucket）
API_WRITE_DURATION = Histogram(
    "api_write_duration_seconds",
    "POST/PATCH /api/... 响应时间",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0),
)
API_LIST_DURATION = Histogram(
    "api_list_duration_seconds",
    "GET /api/... 响应时间",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 3.0),
)

# 错误指标
HTTP_5XX = Counter("http_5xx_total", "5xx 错误数")
HTTP_4XX = Counter("http_4xx_total", "4xx 错误数", ["code"])
VALIDATION_ERROR = Counter("validation_error_total", "数据格式校验失败次数")
BLOCK_ERROR = Counter("block_error_total", "Block 错误次数", ["code"])
AUTHORIZATION_DENIED_RESPONSE = Counter(
    "authorization_error_response_total",
    "返回给客户端的权限错误次数",
    ["code"],
)
