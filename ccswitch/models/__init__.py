from .config import AppConfig, ChannelConfig, get_config_file_path, load_config, save_config
from .schemas import ChannelStatus, RequestOptions, APIResponse

__all__ = [
    'AppConfig', 'ChannelConfig', 'get_config_file_path', 'load_config', 'save_config',
    'ChannelStatus', 'RequestOptions', 'APIResponse',
]
