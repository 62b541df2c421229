"""通知处理流程中的错误类型

每种错误携带对应的 HTTP 状态码和默认提示信息，由 API 层转换为纯文本响应。
"""


class NotificationError(Exception):
    """通知处理失败的基类"""

    status_code: int = 500
    message: str = "Failed to process notification"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class BadRequestBody(NotificationError):
    """Webhook 请求体不是合法 JSON 或不符合预期结构"""

    status_code = 400
    message = "Invalid request body"


class LibraryDiscoveryFailed(NotificationError):
    """无法从 Plex 获取媒体库列表"""

    status_code = 500
    message = "Failed to get libraries"


class NoLibraryForPath(NotificationError):
    """没有任何媒体库的文件夹包含该路径"""

    status_code = 400
    message = "No library found for path"


class ServiceNotReady(NotificationError):
    """应用尚未完成启动，通知处理器或配置不可用"""

    status_code = 503
    message = "Service not ready"
