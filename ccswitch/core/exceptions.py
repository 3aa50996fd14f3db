"""
ccswitch 异常定义
"""


class CCSwitchError(Exception):
    """ccswitch 基础异常类"""

    def __init__(self, errmsg: str):
        self.errmsg = errmsg
        super().__init__(errmsg)


class ConfigError(CCSwitchError):
    """配置读取/写入/校验失败"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Configuration error: {detail}")


class ChannelError(CCSwitchError):
    """上游返回错误，或无法从响应中提取内容"""

    def __init__(self, detail: str, status_code: int = None, body: str = None):
        self.detail = detail
        self.status_code = status_code
        self.body = body
        super().__init__(f"Channel error: {detail}")


class NetworkError(CCSwitchError):
    """传输层失败（连接、超时、TLS、DNS）"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Network error: {detail}")


class SerializationError(CCSwitchError):
    """响应体不是合法 JSON"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Serialization error: {detail}")


class ChannelNotFoundError(CCSwitchError):

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Channel '{name}' not found")


class NoAvailableChannelsError(CCSwitchError):

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"No available channels for model '{model}'")


class AllChannelsFailedError(CCSwitchError):
    """每个候选 channel 都探测失败"""

    def __init__(self, statuses: list = None):
        self.statuses = statuses or []
        super().__init__("All channels failed")


class DuplicateChannelError(ConfigError):
    """同名 channel 已存在"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Channel '{name}' already exists")
