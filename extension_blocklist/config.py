"""
Configuration management for the application
"""

import os
import yaml
from typing import List
from dataclasses import dataclass

from extension_blocklist.reconciler import find_invalid_chars, find_too_long, normalize_name

DEFAULT_FIXED_EXTENSIONS = ['bat', 'cmd', 'com', 'cpl', 'exe', 'scr', 'js']


@dataclass
class StorageConfig:
    backend: str
    path: str
    fixed_extensions: List[str]


@dataclass
class SupabaseConfig:
    url: str
    api_key: str
    table: str = 'extensions'


@dataclass
class LimitsConfig:
    max_custom: int = 200
    max_length: int = 20


@dataclass
class ServerConfig:
    host: str
    port: int
    debug: bool


@dataclass
class WebUIConfig:
    username: str = None
    password: str = None


@dataclass
class SecurityConfig:
    session_secret: str
    write_rate_limit: str
    max_payload_size: int


@dataclass
class LoggingConfig:
    level: str
    file: str
    max_bytes: int
    backup_count: int
    console: bool


class Config:
    """Main configuration class"""

    def __init__(self, config_file=None):
        self.config_file = config_file or os.getenv('CONFIG_FILE', '/config/config.yaml')
        self.storage = None
        self.supabase = None
        self.limits = None
        self.server = None
        self.webui = None
        self.security = None
        self.logging = None

        # Load configuration
        self._load_config()

    def _load_config(self):
        """Load configuration from file or environment variables"""

        if os.path.exists(self.config_file):
            with open(self.config_file, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        else:
            config_data = self._load_from_env()

        storage = config_data.get('storage') or {}
        supabase = config_data.get('supabase') or {}
        limits = config_data.get('limits') or {}
        server = config_data.get('server') or {}
        webui = config_data.get('webui') or {}
        security = config_data.get('security') or {}
        logging_data = config_data.get('logging') or {}

        self.limits = LimitsConfig(
            max_custom=int(limits.get('max_custom', os.getenv('MAX_CUSTOM_EXTENSIONS', 200))),
            max_length=int(limits.get('max_length', os.getenv('MAX_EXTENSION_LENGTH', 20)))
        )

        # Fixed extensions from env or config
        fixed_extensions = os.getenv('FIXED_EXTENSIONS', '') or \
            storage.get('fixed_extensions', DEFAULT_FIXED_EXTENSIONS)

        self.storage = StorageConfig(
            backend=storage.get('backend', os.getenv('STORAGE_BACKEND', 'json')),
            path=storage.get('path', os.getenv('STORAGE_PATH', 'data/extensions.json')),
            fixed_extensions=self._parse_fixed_extensions(fixed_extensions, self.limits.max_length)
        )

        self.supabase = SupabaseConfig(
            url=supabase.get('url', os.getenv('SUPABASE_URL', '')),
            api_key=supabase.get('api_key', os.getenv('SUPABASE_SERVICE_ROLE_KEY', '')),
            table=supabase.get('table', os.getenv('SUPABASE_TABLE', 'extensions'))
        )

        self.server = ServerConfig(
            host=server.get('host', os.getenv('SERVER_HOST', '0.0.0.0')),
            port=int(server.get('port', os.getenv('SERVER_PORT', 9091))),
            debug=server.get('debug', os.getenv('DEBUG', 'false').lower() == 'true')
        )

        self.webui = WebUIConfig(
            username=webui.get('username', os.getenv('WEB_UI_USERNAME', '')),
            password=webui.get('password', os.getenv('WEB_UI_PASSWORD', ''))
        )

        # Security configuration with defaults
        self.security = SecurityConfig(
            session_secret=security.get('session_secret',
                                        os.getenv('SESSION_SECRET', os.urandom(32).hex())),
            write_rate_limit=security.get('write_rate_limit',
                                          os.getenv('WRITE_RATE_LIMIT', '120/minute')),
            max_payload_size=security.get('max_payload_size',
                                          int(os.getenv('MAX_PAYLOAD_SIZE', 65536)))
        )

        self.logging = LoggingConfig(
            level=logging_data.get('level', os.getenv('LOG_LEVEL', 'INFO')),
            file=logging_data.get('file', os.getenv('LOG_FILE', 'logs/extension-blocklist.log')),
            max_bytes=logging_data.get('max_bytes', 10485760),
            backup_count=logging_data.get('backup_count', 5),
            console=logging_data.get('console', True)
        )

    def _load_from_env(self):
        """Create config structure from environment variables"""
        return {
            'storage': {},
            'supabase': {},
            'limits': {},
            'server': {},
            'webui': {},
            'security': {},
            'logging': {}
        }

    @staticmethod
    def _parse_fixed_extensions(value, max_length):
        """
        Normalize the configured fixed extensions

        Args:
            value: Comma-separated string or list of names
            max_length: Maximum name length

        Returns:
            list: Normalized names, empties dropped

        Raises:
            ValueError: If any name is too long or not [a-z0-9]
        """
        if isinstance(value, str):
            value = value.split(',')

        names = [normalize_name(str(ext)) for ext in value or []]
        names = [name for name in names if name]

        invalid = find_too_long(names, max_length) + find_invalid_chars(names)
        if invalid:
            raise ValueError(f"Invalid fixed extensions: {', '.join(invalid)}")
        return names
